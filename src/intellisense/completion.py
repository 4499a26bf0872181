"""Completion suggestions for model documents.

Produces the labels and snippet insert texts an editor offers while a member
name or value is being typed. Rendering and cursor handling belong to the
editor; the functions here only look at the JSON tree and the graph.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.intellisense import constants
from src.intellisense.constants import ValueSchema
from src.intellisense.json_tree import (
    JsonNode,
    JsonNodeType,
    get_outer_property_pair,
    parse_property,
    resolve_property_name,
)
from src.intellisense.language_codes import get_language_codes
from src.intellisense.nodes import ClassNode, PropertyNode
from src.intellisense.query import GraphQuery


@dataclass(frozen=True)
class CompletionSuggestion:
    """A single completion item."""

    label: str
    insert_text: str
    is_property: bool


def _format_label(label: str, required: set[str]) -> str:
    return f"{label} {constants.REQUIRED_PROPERTY_LABEL}" if label in required else label


def get_insert_text_for_property(
    query: GraphQuery,
    property_node: PropertyNode,
    include_value: bool,
    separator: str = ",",
) -> str:
    """Return the snippet inserted for a member name (and placeholder value)."""
    name = property_node.label or property_node.id
    if not include_value:
        return name
    value = ""
    if property_node.is_array:
        value = "[$1]"
    elif property_node.range and len(property_node.range) == 1:
        class_node = property_node.range[0]
        if query.is_object_class(class_node):
            value = "{$1}"
        elif not class_node.label:
            if class_node.id == ValueSchema.STRING:
                value = '"$1"'
            elif class_node.id == ValueSchema.INT:
                value = "${1:0}"
            elif class_node.id == ValueSchema.BOOLEAN:
                value = "${1:false}"
    tail = separator if value else ""
    return f'"{name}": {value}{tail}'


def get_insert_text_for_value(value: str, separator: str = ",") -> str:
    return f'"{value}"{separator}'


def get_outer_property_node(query: GraphQuery, object_node: JsonNode) -> PropertyNode | None:
    """Return the graph property an object node is a value of."""
    pair = get_outer_property_pair(object_node)
    if pair is None:
        return None
    return query.get_property_node(resolve_property_name(pair))


def get_object_type(
    query: GraphQuery,
    object_node: JsonNode,
    version: int,
    exclude: JsonNode | None = None,
) -> tuple[ClassNode | None, set[str]]:
    """Infer the class of an object node and collect its member names.

    ``@type`` wins when present; otherwise the class is inferred when the
    outer property (the entry node for the root) has a single candidate.

    Args:
        query: Graph query.
        object_node: Object node whose type is wanted.
        version: Target version.
        exclude: Member node being edited, left out of the scan.
    """
    exist: set[str] = set()
    object_type: ClassNode | None = None
    for child in object_node.children:
        if child is exclude:
            continue
        pair = parse_property(child)
        if pair is None or not pair.name.value:
            continue
        name = pair.name.value
        exist.add(name)
        if name != constants.TYPE:
            continue
        value = pair.value
        if value.type == JsonNodeType.STRING:
            object_type = query.get_class_node(value.value)
        elif value.type == JsonNodeType.ARRAY:
            # a semantic type array carries one supported primary type
            for element in value.children:
                if element.type == JsonNodeType.STRING and element.value in constants.SUPPORT_SEMANTIC_TYPES:
                    object_type = query.get_class_node(element.value)
    if object_type is None:
        property_node = get_outer_property_node(query, object_node)
        if property_node is None and object_node.parent is None:
            property_node = query.get_entry_node()
        if property_node:
            classes = query.get_object_classes(property_node, version)
            if len(classes) == 1:
                object_type = classes[0]
    return object_type, exist


def suggest_properties(
    query: GraphQuery,
    property_node: JsonNode,
    version: int,
    include_value: bool = True,
    separator: str = ",",
) -> list[CompletionSuggestion]:
    """Suggest member names for the object containing ``property_node``.

    Args:
        query: Graph query.
        property_node: The member node whose name is being typed.
        version: Target version.
        include_value: Whether insert texts carry a value placeholder.
        separator: Text appended after a completed member.
    """
    object_node = property_node.parent
    if object_node is None or object_node.type != JsonNodeType.OBJECT:
        return []
    class_node, exist = get_object_type(query, object_node, version, exclude=property_node)
    suggestions: list[CompletionSuggestion] = []

    if class_node is None:
        # ambiguous or invalid @type: the user has to pick a type first
        if constants.TYPE not in exist:
            type_node = PropertyNode(id=constants.TYPE)
            suggestions.append(
                CompletionSuggestion(
                    label=f"{constants.TYPE} {constants.REQUIRED_PROPERTY_LABEL}",
                    insert_text=get_insert_text_for_property(query, type_node, include_value, separator),
                    is_property=True,
                )
            )
        return suggestions

    if query.is_language_node(class_node):
        string_node = ClassNode(id=ValueSchema.STRING)
        for code in get_language_codes():
            if code in exist:
                continue
            code_node = PropertyNode(id=code, range=[string_node])
            suggestions.append(
                CompletionSuggestion(
                    label=code,
                    insert_text=get_insert_text_for_property(query, code_node, include_value, separator),
                    is_property=True,
                )
            )
        return suggestions

    required = set(class_node.constraint.required) if class_node.constraint and class_node.constraint.required else set()
    for child in query.get_properties_of_class_by_version(class_node, version):
        if not child.label or child.label in exist:
            continue
        suggestions.append(
            CompletionSuggestion(
                label=_format_label(child.label, required),
                insert_text=get_insert_text_for_property(query, child, include_value, separator),
                is_property=True,
            )
        )

    reserved: list[PropertyNode] = []
    id_node = query.get_property_node(constants.ID)
    if id_node:
        reserved.append(id_node)
    # @type is offered for an inline interface
    if constants.TYPE in required:
        reserved.append(PropertyNode(id=constants.TYPE))
    for reserved_node in reserved:
        if reserved_node.id in exist:
            continue
        suggestions.append(
            CompletionSuggestion(
                label=_format_label(reserved_node.id, required),
                insert_text=get_insert_text_for_property(query, reserved_node, include_value, separator),
                is_property=True,
            )
        )
    return suggestions


def suggest_values(
    query: GraphQuery,
    property_node: JsonNode,
    version: int,
    separator: str = ",",
) -> list[CompletionSuggestion]:
    """Suggest values for the member ``property_node``."""
    pair = parse_property(property_node)
    if pair is None:
        return []
    name = pair.name.value
    if name == constants.CONTEXT:
        return [
            CompletionSuggestion(
                label=constants.IOT_MODEL_LABEL,
                insert_text=get_insert_text_for_value(constants.CONTEXT_TEMPLATE, separator),
                is_property=False,
            )
        ]

    if name == constants.TYPE:
        object_node = property_node.parent
        if object_node is None:
            return []
        outer = get_outer_property_node(query, object_node)
        # the root object is a value of the entry node
        if outer is None and object_node.parent is None:
            outer = query.get_entry_node()
        if outer is None:
            return []
        values = [query.get_class_type(c) for c in query.get_object_classes(outer, version)]
    else:
        graph_property = query.get_property_node(resolve_property_name(pair))
        if graph_property is None:
            return []
        values = query.get_enums(graph_property, version)

    return [
        CompletionSuggestion(label=value, insert_text=get_insert_text_for_value(value, separator), is_property=False)
        for value in values
    ]
