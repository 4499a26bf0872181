"""Validation of parsed JSON model documents against the model graph.

Walks the JSON node tree recursively. Every node is checked against the
property node it is expected to be a value of, starting from the entry node
for the document root. Violations are collected as ``Problem`` records with
the text span they apply to; malformed documents produce problems, never
exceptions.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from src.intellisense import constants
from src.intellisense.constants import DiagnosticMessage, ValueSchema
from src.intellisense.json_tree import (
    JsonNode,
    JsonNodeType,
    PropertyPair,
    find_node_at_location,
    parse_property,
)
from src.intellisense.language_codes import is_language_code
from src.intellisense.nodes import ClassNode, ConstraintNode, PropertyNode
from src.intellisense.query import GraphQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Problem:
    """A diagnostic problem located at ``[offset, offset + length)``."""

    offset: int
    length: int
    message: str


def resolve_context_version(query: GraphQuery, context_node: JsonNode) -> int:
    """Return the version a ``@context`` value declares, 0 if unrecognised.

    A string is looked up directly; for an array the first recognised
    string element wins.
    """
    if context_node.type == JsonNodeType.STRING:
        return query.get_version(context_node.value)
    if context_node.type == JsonNodeType.ARRAY:
        for child in context_node.children:
            if child.type == JsonNodeType.STRING:
                version = query.get_version(child.value)
                if version:
                    return version
    return 0


def resolve_document_version(query: GraphQuery, root: JsonNode) -> int:
    """Return the version declared by the root object's ``@context``, or 0."""
    context_node = find_node_at_location(root, [constants.CONTEXT])
    if context_node is None:
        return 0
    return resolve_context_version(query, context_node)


def _get_name_property_pair(node: JsonNode) -> PropertyPair | None:
    if node.type != JsonNodeType.OBJECT:
        return None
    for child in node.children:
        pair = parse_property(child)
        if pair and pair.name.value == constants.NAME:
            return pair
    return None


def _is_empty_array(node: JsonNode) -> bool:
    return node.type == JsonNodeType.ARRAY and not node.children


def _is_integer(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


class DiagnosticValidator:
    """Validates one JSON node tree at one target version.

    An instance collects the problems of a single pass; create a new one per
    document.
    """

    def __init__(self, query: GraphQuery, version: int) -> None:
        self._query = query
        self._version = version
        self._problems: list[Problem] = []

    def validate(self, json_node: JsonNode, property_node: PropertyNode) -> list[Problem]:
        """Validate ``json_node`` as a value of ``property_node``.

        Returns:
            Problems in document order of discovery.
        """
        self._validate_node(json_node, property_node)
        return list(self._problems)

    # ── Problem helpers ──────────────────────────────────────────

    def _add_problem(self, json_node: JsonNode, message: str, is_container: bool = False) -> None:
        length = 0 if is_container else json_node.length
        self._problems.append(Problem(offset=json_node.offset, length=length, message=message))

    def _add_problem_of_invalid_type(self, json_node: JsonNode, valid_types: list[str]) -> None:
        message = constants.LINE_FEED.join([DiagnosticMessage.INVALID_TYPE, *valid_types])
        self._add_problem(json_node, message)

    def _add_problem_of_wrong_kind(self, json_node: JsonNode, property_node: PropertyNode) -> None:
        self._add_problem_of_invalid_type(json_node, self._query.get_valid_types(property_node, self._version))

    def _add_problem_of_unexpected_property(self, name_node: JsonNode) -> None:
        self._add_problem(name_node, f"{name_node.value} {DiagnosticMessage.UNEXPECTED_PROPERTY}")

    # ── Dispatch ─────────────────────────────────────────────────

    def _validate_node(self, json_node: JsonNode, property_node: PropertyNode) -> None:
        node_type = json_node.type
        if node_type == JsonNodeType.OBJECT:
            self._validate_object_node(json_node, property_node)
        elif node_type == JsonNodeType.ARRAY:
            self._validate_array_node(json_node, property_node)
        elif node_type == JsonNodeType.STRING:
            self._validate_string_node(json_node, property_node)
        elif node_type == JsonNodeType.NUMBER:
            self._validate_number_node(json_node, property_node)
        elif node_type == JsonNodeType.BOOLEAN:
            self._validate_boolean_node(json_node, property_node)

    # ── Object ───────────────────────────────────────────────────

    def _validate_object_node(self, json_node: JsonNode, property_node: PropertyNode) -> None:
        classes = self._query.get_object_classes(property_node, self._version)
        if not classes:
            self._add_problem(json_node, DiagnosticMessage.NOT_OBJECT_TYPE)
            return
        if not json_node.children:
            self._validate_empty_object(json_node, classes, property_node)
            return

        type_node = find_node_at_location(json_node, [constants.TYPE])
        # @type is required when there are multiple choices
        if type_node is None and len(classes) != 1:
            self._add_problem(json_node, DiagnosticMessage.MISSING_TYPE, is_container=True)
            return
        if type_node is not None:
            class_node = self._get_valid_object_type(type_node, classes)
        else:
            class_node = classes[0]
        if class_node is None:
            return

        if self._query.is_language_node(class_node):
            self._validate_language_node(json_node, property_node)
            return

        present: dict[str, JsonNode] = {}
        self._validate_properties(json_node, class_node, present)
        self._validate_required_properties(json_node, class_node, property_node, present)

    def _find_class(self, classes: list[ClassNode], class_type: str) -> ClassNode | None:
        for class_node in classes:
            if self._query.get_class_type(class_node) == class_type:
                return class_node
        return None

    def _get_valid_object_type(self, type_node: JsonNode, classes: list[ClassNode]) -> ClassNode | None:
        """Resolve the ``@type`` value to one of the candidate classes."""
        valid_types = [self._query.get_class_type(c) for c in classes]
        if type_node.type == JsonNodeType.STRING:
            class_node = self._find_class(classes, type_node.value)
            if class_node is None:
                self._add_problem_of_invalid_type(type_node, valid_types)
            return class_node
        if type_node.type == JsonNodeType.ARRAY:
            return self._get_valid_multi_type(type_node, classes, valid_types)
        self._add_problem_of_invalid_type(type_node, valid_types)
        return None

    def _get_valid_multi_type(
        self,
        type_node: JsonNode,
        classes: list[ClassNode],
        valid_types: list[str],
    ) -> ClassNode | None:
        """Resolve an array-valued ``@type``: one concrete class plus semantic types."""
        class_node: ClassNode | None = None
        seen: set[str] = set()
        for child in type_node.children:
            if child.type != JsonNodeType.STRING:
                self._add_problem_of_invalid_type(child, valid_types)
                continue
            name = child.value
            if name in seen:
                self._add_problem(child, f"{name} {DiagnosticMessage.DUPLICATE_TYPE}")
                continue
            seen.add(name)
            current = self._find_class(classes, name)
            if current is not None:
                if class_node is not None and current is not class_node:
                    message = f"{DiagnosticMessage.CONFLICT_TYPE} {class_node.label} and {current.label}"
                    self._add_problem(type_node, message)
                    return None
                class_node = current
            elif not self._query.is_semantic_type(name, self._version):
                self._add_problem_of_invalid_type(child, valid_types)
        if class_node is None:
            self._add_problem_of_invalid_type(type_node, valid_types)
        return class_node

    def _validate_properties(self, json_node: JsonNode, class_node: ClassNode, present: dict[str, JsonNode]) -> None:
        """Validate each member of an object of a settled class."""
        expected: dict[str, PropertyNode] = {}
        for p in self._query.get_properties_of_class_by_version(class_node, self._version):
            if p.label:
                expected[p.label] = p
        required = self._get_required(class_node)

        for child in json_node.children:
            pair = parse_property(child)
            if pair is None:
                continue
            name = pair.name.value
            # duplicate member names are reported by the JSON parser
            present[name] = pair.value
            if name == constants.ID:
                id_node = self._query.get_property_node(constants.ID)
                if id_node:
                    self._validate_node(pair.value, id_node)
            elif name == constants.CONTEXT:
                if constants.CONTEXT not in required:
                    self._add_problem_of_unexpected_property(pair.name)
                elif resolve_context_version(self._query, pair.value) != self._version:
                    self._add_problem(pair.value, DiagnosticMessage.INVALID_CONTEXT)
            elif name == constants.TYPE:
                continue
            else:
                property_node = expected.get(name)
                if property_node is None:
                    self._add_problem_of_unexpected_property(pair.name)
                elif name in required and _is_empty_array(pair.value) and property_node.is_array:
                    # reported once the member scan is complete
                    continue
                else:
                    self._validate_node(pair.value, property_node)

    def _validate_empty_object(self, json_node: JsonNode, classes: list[ClassNode], property_node: PropertyNode) -> None:
        """An empty object of a settled class reports its missing members instead of being empty."""
        missing = self._get_missing_required(classes[0], property_node, {}) if len(classes) == 1 else []
        if missing:
            self._add_problem_of_missing_required(json_node, missing)
        else:
            self._add_problem(json_node, DiagnosticMessage.EMPTY_OBJECT, is_container=True)

    def _add_problem_of_missing_required(self, json_node: JsonNode, missing: list[str]) -> None:
        message = constants.LINE_FEED.join([DiagnosticMessage.MISSING_REQUIRED_PROPERTIES, *missing])
        self._add_problem(json_node, message, is_container=True)

    def _get_missing_required(
        self,
        class_node: ClassNode,
        property_node: PropertyNode,
        present: dict[str, JsonNode],
    ) -> list[str]:
        # @context is not required for an inline interface
        is_interface_schema = property_node.label == constants.SCHEMA
        return [
            name
            for name in self._get_required(class_node)
            if name not in present
            and not (name == constants.CONTEXT and is_interface_schema)
            and self._is_required_available(class_node, name)
        ]

    def _validate_required_properties(
        self,
        json_node: JsonNode,
        class_node: ClassNode,
        property_node: PropertyNode,
        present: dict[str, JsonNode],
    ) -> None:
        required = self._get_required(class_node)
        if not required:
            return
        missing = self._get_missing_required(class_node, property_node, present)
        if missing:
            self._add_problem_of_missing_required(json_node, missing)
        for name in required:
            # an empty @context is already reported as an invalid context
            value = None if name == constants.CONTEXT else present.get(name)
            if value is not None and _is_empty_array(value):
                self._add_problem(value, f"{name} {DiagnosticMessage.EMPTY_REQUIRED_PROPERTY}", is_container=True)

    @staticmethod
    def _get_required(class_node: ClassNode) -> list[str]:
        if class_node.constraint and class_node.constraint.required:
            return class_node.constraint.required
        return []

    def _is_required_available(self, class_node: ClassNode, name: str) -> bool:
        """A required member whose property is gated out at this version is not required."""
        if constants.is_reserved_name(name):
            return True
        for p in class_node.properties or []:
            if p.label == name:
                return self._query.is_available_by_version(p.version, self._version)
        return True

    # ── Language map ─────────────────────────────────────────────

    def _validate_language_node(self, json_node: JsonNode, property_node: PropertyNode) -> None:
        for child in json_node.children:
            pair = parse_property(child)
            if pair is None:
                continue
            if not is_language_code(pair.name.value):
                self._add_problem_of_unexpected_property(pair.name)
            elif pair.value.type != JsonNodeType.STRING:
                self._add_problem(pair.value, DiagnosticMessage.VALUE_NOT_STRING)
            else:
                self._validate_string_constraint(pair.value, property_node.constraint)

    # ── Array ────────────────────────────────────────────────────

    def _validate_array_node(self, json_node: JsonNode, property_node: PropertyNode) -> None:
        if not property_node.is_array:
            self._add_problem_of_wrong_kind(json_node, property_node)
            return
        if not json_node.children:
            self._add_problem(json_node, DiagnosticMessage.EMPTY_ARRAY, is_container=True)
            return

        count = len(json_node.children)
        constraint = property_node.constraint
        if constraint:
            if constraint.min_items and count < constraint.min_items:
                message = f"{DiagnosticMessage.TOO_FEW_ITEMS} {constraint.min_items}."
                self._add_problem(json_node, message, is_container=True)
            if constraint.max_items and count > constraint.max_items:
                message = f"{DiagnosticMessage.TOO_MANY_ITEMS} {constraint.max_items}."
                self._add_problem(json_node, message, is_container=True)

        names: set[str] = set()
        for child in json_node.children:
            pair = _get_name_property_pair(child)
            if pair and pair.value.type == JsonNodeType.STRING:
                object_name = pair.value.value
                if object_name in names:
                    self._add_problem(pair.value, f"{object_name} {DiagnosticMessage.DUPLICATE_ITEM}")
                else:
                    names.add(object_name)
            self._validate_node(child, property_node)

    # ── Scalars ──────────────────────────────────────────────────

    def _validate_string_node(self, json_node: JsonNode, property_node: PropertyNode) -> None:
        if self._query.find_class_node(property_node, ValueSchema.STRING, self._version) is None:
            self._validate_enum_node(json_node, property_node)
            return
        self._validate_string_constraint(json_node, property_node.constraint)

    def _validate_string_constraint(self, json_node: JsonNode, constraint: ConstraintNode | None) -> None:
        value: str = json_node.value
        if not value:
            self._add_problem(json_node, DiagnosticMessage.EMPTY_STRING)
            return
        if constraint is None:
            return
        if constraint.min_length and len(value) < constraint.min_length:
            self._add_problem(json_node, f"{DiagnosticMessage.SHORTER_THAN_MIN_LENGTH} {constraint.min_length}.")
        elif constraint.max_length and len(value) > constraint.max_length:
            self._add_problem(json_node, f"{DiagnosticMessage.LONGER_THAN_MAX_LENGTH} {constraint.max_length}.")
        elif constraint.pattern and not re.search(constraint.pattern, value):
            self._add_problem(json_node, f"{DiagnosticMessage.NOT_MATCH_PATTERN} {constraint.pattern}.")

    def _validate_enum_node(self, json_node: JsonNode, property_node: PropertyNode) -> None:
        enums = self._query.get_enums(property_node, self._version)
        if not enums:
            self._add_problem_of_wrong_kind(json_node, property_node)
        elif json_node.value not in enums:
            message = constants.LINE_FEED.join([DiagnosticMessage.INVALID_ENUM, *enums])
            self._add_problem(json_node, message)

    def _validate_number_node(self, json_node: JsonNode, property_node: PropertyNode) -> None:
        int_node = self._query.find_class_node(property_node, ValueSchema.INT, self._version)
        if int_node is None or not _is_integer(json_node.value):
            self._add_problem_of_wrong_kind(json_node, property_node)

    def _validate_boolean_node(self, json_node: JsonNode, property_node: PropertyNode) -> None:
        if self._query.find_class_node(property_node, ValueSchema.BOOLEAN, self._version) is None:
            self._add_problem_of_wrong_kind(json_node, property_node)


def validate_node(
    query: GraphQuery,
    json_node: JsonNode,
    property_node: PropertyNode,
    version: int,
) -> list[Problem]:
    """Validate a node tree as a value of ``property_node`` at ``version``."""
    return DiagnosticValidator(query, version).validate(json_node, property_node)


def validate_document(query: GraphQuery, root: JsonNode) -> list[Problem]:
    """Validate a whole model document.

    The target version comes from the root ``@context``. Documents without a
    recognised context are not model documents and yield no problems, as do
    documents checked against an uninitialized graph.
    """
    if not query.initialized():
        return []
    version = resolve_document_version(query, root)
    if not version:
        logger.debug("Skipping validation: no recognised @context")
        return []
    entry_node = query.get_entry_node()
    if entry_node is None:
        return []
    problems = validate_node(query, root, entry_node, version)
    logger.debug("Validated model document at version %d: %d problem(s)", version, len(problems))
    return problems
