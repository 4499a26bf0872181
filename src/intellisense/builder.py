"""Compiler from definition documents to the Digital Twin model graph.

Reads three definition documents and populates a ``GraphStore``:

- context document: ``{"@context": {"@vocab": V, shortName: label | {...}}}``
- constraint document: label -> constraint/version gate, plus the reserved
  ``@context`` entry mapping ``"v<N>"`` keys to context URIs
- edge list: ``{"Edges": [{"SourceNode", "TargetNode", "Label"}, ...]}``

Nodes are created on first reference and filled in as edges arrive. A
malformed document never raises: the build stops, a warning is logged and
the partially populated store is returned. Callers check
``GraphStore.initialized()`` before querying.
"""

from __future__ import annotations

import json
import logging
import re
from collections import deque
from pathlib import Path
from typing import Any

from src.intellisense import constants
from src.intellisense.constants import EdgeType, NodeType, ValueSchema
from src.intellisense.nodes import (
    ClassNode,
    ConstraintNode,
    ContainerType,
    ContextNode,
    PropertyNode,
    VersionNode,
)
from src.intellisense.store import GraphStore

logger = logging.getLogger(__name__)

CONTEXT_FILE_NAME = "context.json"
CONSTRAINT_FILE_NAME = "constraint.json"
GRAPH_FILE_NAME = "graph.json"

_CONSTRAINT_FIELDS: dict[str, str] = {
    "minItems": "min_items",
    "maxItems": "max_items",
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
    "required": "required",
}

_VERSION_FIELDS: dict[str, str] = {
    "includeSince": "include_since",
    "excludeSince": "exclude_since",
}


def _is_valid_edge(edge: Any) -> bool:
    return isinstance(edge, dict) and bool(edge.get("SourceNode") and edge.get("TargetNode") and edge.get("Label"))


def _resolve_container_type(term: dict[str, Any]) -> ContainerType:
    """Map a JSON-LD ``@container`` value to a container kind."""
    container = term.get(constants.CONTAINER)
    if not isinstance(container, str):
        return ContainerType.NONE
    if container in (constants.LIST, constants.SET):
        return ContainerType.ARRAY
    if container == constants.LANGUAGE:
        return ContainerType.LANGUAGE
    return ContainerType.NONE


def _parse_constraint(label: str, entry: dict[str, Any]) -> ConstraintNode | None:
    values = {attr: entry[key] for key, attr in _CONSTRAINT_FIELDS.items() if entry.get(key)}
    if "pattern" in values:
        try:
            re.compile(values["pattern"])
        except (re.error, TypeError) as e:
            logger.warning("Dropping invalid pattern of %s: %s", label, e)
            del values["pattern"]
    if not values:
        return None
    if "required" in values:
        values["required"] = list(values["required"])
    return ConstraintNode(**values)


def _parse_version(entry: dict[str, Any]) -> VersionNode | None:
    values = {attr: int(entry[key]) for key, attr in _VERSION_FIELDS.items() if entry.get(key) is not None}
    if not values:
        return None
    return VersionNode(**values)


class GraphBuilder:
    """One-shot compiler that populates a ``GraphStore`` from definitions."""

    def __init__(self) -> None:
        self._store = GraphStore()

    def build(
        self,
        context_json: Any,
        constraint_json: Any,
        graph_json: Any,
    ) -> GraphStore:
        """Build the graph from the three decoded definition documents.

        Args:
            context_json: Decoded context document.
            constraint_json: Decoded constraint document.
            graph_json: Decoded edge-list document.

        Returns:
            The populated store. On malformed input the store is returned
            as far as it was populated.
        """
        self._store = GraphStore()
        try:
            self._build_context(context_json)
            self._build_constraint(constraint_json)
            self._build_graph(graph_json)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            logger.warning("Malformed definition document, graph left partially built: %s", e)
            return self._store

        stats = self._store.stats()
        logger.info(
            "Model graph built: %d classes, %d properties, %d enums, versions %s",
            stats.class_count,
            stats.property_count,
            stats.enum_count,
            stats.versions,
        )
        return self._store

    # ── Context ──────────────────────────────────────────────────

    def _build_context(self, context_json: Any) -> None:
        """Record a context node and reverse-index entry per short name."""
        context = context_json[constants.CONTEXT]
        self._store.vocabulary = str(context[constants.VOCABULARY])
        for key, value in context.items():
            if constants.is_reserved_name(key):
                continue
            if isinstance(value, str):
                node_id = self._store.get_id(value)
                container = ContainerType.NONE
            elif isinstance(value, dict) and isinstance(value.get(constants.ID), str):
                node_id = self._store.get_id(value[constants.ID])
                container = _resolve_container_type(value)
            else:
                logger.warning("Skipping context term %r with unsupported value", key)
                continue
            self._store.context_nodes[node_id] = ContextNode(name=key, container=container)
            self._store.reversed_index[key] = node_id

    # ── Constraint ───────────────────────────────────────────────

    def _build_constraint(self, constraint_json: Any) -> None:
        """Record constraints and version gates by label, and context versions."""
        for key, value in constraint_json.items():
            if key == constants.CONTEXT:
                self._build_context_versions(value)
                continue
            if not isinstance(value, dict):
                continue
            constraint = _parse_constraint(key, value)
            if constraint:
                self._store.constraint_nodes[key] = constraint
            version = _parse_version(value)
            if version:
                self._store.version_nodes[key] = version

    def _build_context_versions(self, versions: dict[str, Any]) -> None:
        # version keys look like "v2"
        for version_key, context_uri in versions.items():
            try:
                version = int(version_key[1:])
            except ValueError:
                logger.warning("Skipping context version key %r", version_key)
                continue
            self._store.context_versions[str(context_uri)] = version

    # ── Edges ────────────────────────────────────────────────────

    def _build_graph(self, graph_json: Any) -> None:
        for edge in graph_json["Edges"]:
            if _is_valid_edge(edge):
                self._handle_edge(edge)
        self._adjust_node()
        self._expand_properties()
        self._build_entry_node()

    def _handle_edge(self, edge: dict[str, Any]) -> None:
        label = edge["Label"]
        if label == EdgeType.TYPE:
            self._handle_edge_of_type(edge)
        elif label == EdgeType.LABEL:
            self._handle_edge_of_label(edge)
        elif label == EdgeType.DOMAIN:
            self._handle_edge_of_domain(edge)
        elif label == EdgeType.RANGE:
            self._handle_edge_of_range(edge)
        elif label == EdgeType.SUB_CLASS_OF:
            self._handle_edge_of_sub_class_of(edge)
        elif label == EdgeType.COMMENT:
            self._handle_edge_of_comment(edge)

    def _handle_edge_of_type(self, edge: dict[str, Any]) -> None:
        """Create a class/property node, or add an enum value to its class."""
        node_id: str = edge["SourceNode"]["Id"]
        node_type: str = edge["TargetNode"]["Id"]
        if node_type == NodeType.CLASS:
            self._ensure_class_node(node_id)
        elif node_type == NodeType.PROPERTY:
            self._ensure_property_node(node_id)
        else:
            context_node = self._store.context_nodes.get(node_id)
            enum_value = context_node.name if context_node else node_id
            enum_node = self._ensure_class_node(node_type)
            if enum_node.enums is None:
                enum_node.enums = []
            enum_node.enums.append(enum_value)

    def _handle_edge_of_label(self, edge: dict[str, Any]) -> None:
        """Set label, constraint and version gate of a class if not yet set.

        Property labels come from their context term, so properties are
        skipped.
        """
        node_id: str = edge["SourceNode"]["Id"]
        label = edge["TargetNode"].get("Value")
        if node_id in self._store.property_nodes:
            return
        class_node = self._ensure_class_node(node_id)
        if not class_node.label and label:
            class_node.label = str(label)
            self._attach_by_label(class_node, class_node.label)

    def _handle_edge_of_domain(self, edge: dict[str, Any]) -> None:
        property_node = self._ensure_property_node(edge["SourceNode"]["Id"])
        class_node = self._ensure_class_node(edge["TargetNode"]["Id"])
        if class_node.properties is None:
            class_node.properties = []
        class_node.properties.append(property_node)

    def _handle_edge_of_range(self, edge: dict[str, Any]) -> None:
        property_node = self._ensure_property_node(edge["SourceNode"]["Id"])
        class_node = self._ensure_class_node(edge["TargetNode"]["Id"])
        if property_node.range is None:
            property_node.range = []
        property_node.range.append(class_node)

    def _handle_edge_of_sub_class_of(self, edge: dict[str, Any]) -> None:
        class_node = self._ensure_class_node(edge["SourceNode"]["Id"])
        base_class_node = self._ensure_class_node(edge["TargetNode"]["Id"])
        if base_class_node.children is None:
            base_class_node.children = []
        base_class_node.children.append(class_node)

    def _handle_edge_of_comment(self, edge: dict[str, Any]) -> None:
        # class comments are not modeled
        property_node = self._store.property_nodes.get(edge["SourceNode"]["Id"])
        if property_node:
            property_node.comment = edge["TargetNode"].get("Value")

    # ── Get-or-create ────────────────────────────────────────────

    def _attach_by_label(self, node: ClassNode | PropertyNode, label: str) -> None:
        constraint = self._store.constraint_nodes.get(label)
        if constraint:
            node.constraint = constraint
        version = self._store.version_nodes.get(label)
        if version:
            node.version = version

    def _ensure_class_node(self, node_id: str) -> ClassNode:
        class_node = self._store.class_nodes.get(node_id)
        if class_node is None:
            class_node = ClassNode(id=node_id)
            context_node = self._store.context_nodes.get(node_id)
            if context_node:
                class_node.label = context_node.name
                self._attach_by_label(class_node, context_node.name)
            self._store.class_nodes[node_id] = class_node
        return class_node

    def _ensure_property_node(self, node_id: str) -> PropertyNode:
        property_node = self._store.property_nodes.get(node_id)
        if property_node is None:
            property_node = PropertyNode(id=node_id)
            context_node = self._store.context_nodes.get(node_id)
            if context_node:
                property_node.label = context_node.name
                property_node.is_array = context_node.container == ContainerType.ARRAY
                if context_node.container == ContainerType.LANGUAGE:
                    language_node = self._ensure_class_node(constants.LANGUAGE)
                    language_node.label = constants.LANGUAGE
                    property_node.range = [language_node]
                self._attach_by_label(property_node, context_node.name)
            self._store.property_nodes[node_id] = property_node
        return property_node

    # ── Fixups ───────────────────────────────────────────────────

    def _adjust_node(self) -> None:
        """Apply the definitions that cannot be expressed as edges."""
        string_node = self._ensure_class_node(ValueSchema.STRING)
        self._build_reserved_property(constants.ID, string_node)

        self._mark_abstract_class(constants.SCHEMA_NODE)
        self._mark_abstract_class(constants.UNIT_NODE)

        self._handle_interface_schema(string_node)

    def _build_reserved_property(self, node_id: str, class_node: ClassNode) -> None:
        property_node = PropertyNode(id=node_id, range=[class_node])
        constraint = self._store.constraint_nodes.get(node_id)
        if constraint:
            property_node.constraint = constraint
        self._store.property_nodes[node_id] = property_node

    def _mark_abstract_class(self, name: str) -> None:
        class_node = self._store.class_nodes.get(self._store.get_id(name))
        if class_node:
            class_node.is_abstract = True

    def _handle_interface_schema(self, string_node: ClassNode) -> None:
        """Let ``schema`` inside ``implements`` accept an interface id or an inline interface."""
        property_node = self._store.property_nodes.get(self._store.get_id(constants.INTERFACE_SCHEMA_NODE))
        if property_node is None:
            return
        property_node.label = constants.SCHEMA
        if property_node.range:
            property_node.range.append(string_node)
            property_node.constraint = self._store.constraint_nodes.get(constants.ID)

    def _expand_properties(self) -> None:
        """Copy every ancestor's properties onto its non-enum descendants.

        Breadth-first from the base class, so a parent's list already holds
        its own ancestors' properties when it is copied to a child.
        """
        base = self._store.class_nodes.get(self._store.get_id(constants.BASE_CLASS))
        if base is None:
            return
        visited: set[str] = {base.id}
        queue: deque[ClassNode] = deque([base])
        while queue:
            class_node = queue.popleft()
            for child in class_node.children or []:
                if child.enums:
                    continue
                if child.id in visited:
                    logger.warning("Class %s reached more than once while expanding properties", child.id)
                    continue
                visited.add(child.id)
                if class_node.properties:
                    if child.properties is None:
                        child.properties = []
                    child.properties.extend(class_node.properties)
                queue.append(child)

    def _build_entry_node(self) -> None:
        """Create the virtual property whose range is the top-level document classes."""
        interface_node = self._store.class_nodes.get(self._store.get_id(constants.INTERFACE_NODE))
        capability_model_node = self._store.class_nodes.get(self._store.get_id(constants.CAPABILITY_MODEL_NODE))
        if interface_node and capability_model_node:
            self._store.property_nodes[constants.ENTRY_NODE] = PropertyNode(
                id=constants.ENTRY_NODE,
                range=[interface_node, capability_model_node],
            )


def _read_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_graph(
    definitions_dir: str | Path,
    context_file_name: str = CONTEXT_FILE_NAME,
    constraint_file_name: str = CONSTRAINT_FILE_NAME,
    graph_file_name: str = GRAPH_FILE_NAME,
) -> GraphStore:
    """Read the definition documents from a directory and build the graph.

    Returns:
        The built store, or an empty (uninitialized) store when a document
        cannot be read or decoded.
    """
    directory = Path(definitions_dir)
    try:
        context_json = _read_json(directory / context_file_name)
        constraint_json = _read_json(directory / constraint_file_name)
        graph_json = _read_json(directory / graph_file_name)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Failed to load model definitions from %s: %s", directory, e)
        return GraphStore()
    return GraphBuilder().build(context_json, constraint_json, graph_json)
