"""JSON node tree consumed by the validator and the IntelliSense helpers.

The tree mirrors what an offset-aware JSON parser produces: every node has a
kind, a character offset and length, its decoded value (for scalars), its
children and a parent link. Property nodes have exactly two children, the
name string node and the value node.

``tree_from_value`` builds such a tree for an already-decoded JSON value by
rendering it in canonical ``json.dumps`` form; offsets refer to that text.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Any

from src.intellisense import constants


class JsonNodeType(enum.StrEnum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    PROPERTY = "property"


@dataclass(eq=False)
class JsonNode:
    """A node of a parsed JSON document."""

    type: JsonNodeType
    offset: int
    length: int = 0
    value: Any = None
    children: list[JsonNode] = field(default_factory=list)
    parent: JsonNode | None = field(default=None, repr=False)


@dataclass
class PropertyPair:
    """Name and value nodes of an object member."""

    name: JsonNode
    value: JsonNode


def parse_property(node: JsonNode) -> PropertyPair | None:
    """Return the name/value pair of a property node, or None."""
    if node.type != JsonNodeType.PROPERTY or len(node.children) != 2:
        return None
    return PropertyPair(name=node.children[0], value=node.children[1])


def find_node_at_location(node: JsonNode, path: list[str | int]) -> JsonNode | None:
    """Follow object keys and array indexes from ``node``."""
    current: JsonNode | None = node
    for segment in path:
        if current is None:
            return None
        if isinstance(segment, str):
            if current.type != JsonNodeType.OBJECT:
                return None
            found = None
            for child in current.children:
                pair = parse_property(child)
                if pair and pair.name.value == segment:
                    found = pair.value
                    break
            current = found
        else:
            if current.type != JsonNodeType.ARRAY or not 0 <= segment < len(current.children):
                return None
            current = current.children[segment]
    return current


def get_outer_property_pair(node: JsonNode) -> PropertyPair | None:
    """Return the property an object node is the value (or an array element) of."""
    if node.type != JsonNodeType.OBJECT:
        return None
    outer = node.parent
    if outer is not None and outer.type == JsonNodeType.ARRAY:
        outer = outer.parent
    return parse_property(outer) if outer is not None else None


def resolve_property_name(pair: PropertyPair) -> str:
    """Resolve the graph property name of an object member.

    The key ``schema`` denotes ``interfaceSchema`` when its object sits
    inside the ``implements`` property; everywhere else the key is the name.
    """
    name = pair.name.value
    if name != constants.SCHEMA:
        return name
    object_node = pair.name.parent.parent if pair.name.parent else None
    if object_node is not None:
        outer = get_outer_property_pair(object_node)
        if outer and outer.name.value == constants.IMPLEMENTS:
            return constants.INTERFACE_SCHEMA
    return name


class _TreeBuilder:
    """Renders a decoded value and records node offsets as it goes."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._pos = 0

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def _emit(self, text: str) -> None:
        self._parts.append(text)
        self._pos += len(text)

    def build(self, value: Any, parent: JsonNode | None = None) -> JsonNode:
        start = self._pos
        if isinstance(value, dict):
            node = JsonNode(JsonNodeType.OBJECT, start, parent=parent)
            self._emit("{")
            for i, (key, item) in enumerate(value.items()):
                if i:
                    self._emit(", ")
                node.children.append(self._build_property(str(key), item, node))
            self._emit("}")
        elif isinstance(value, list | tuple):
            node = JsonNode(JsonNodeType.ARRAY, start, parent=parent)
            self._emit("[")
            for i, item in enumerate(value):
                if i:
                    self._emit(", ")
                node.children.append(self.build(item, node))
            self._emit("]")
        else:
            node = JsonNode(self._scalar_type(value), start, value=value, parent=parent)
            self._emit(json.dumps(value))
        node.length = self._pos - start
        return node

    def _build_property(self, key: str, value: Any, parent: JsonNode) -> JsonNode:
        start = self._pos
        node = JsonNode(JsonNodeType.PROPERTY, start, parent=parent)
        name = self.build(key, node)
        self._emit(": ")
        node.children = [name, self.build(value, node)]
        node.length = self._pos - start
        return node

    @staticmethod
    def _scalar_type(value: Any) -> JsonNodeType:
        if value is None:
            return JsonNodeType.NULL
        if isinstance(value, bool):
            return JsonNodeType.BOOLEAN
        if isinstance(value, int | float):
            return JsonNodeType.NUMBER
        if isinstance(value, str):
            return JsonNodeType.STRING
        raise ValueError(f"Unsupported JSON value: {value!r}")


def tree_from_value(value: Any) -> tuple[JsonNode, str]:
    """Build a node tree for a decoded JSON value.

    Returns:
        The root node and the canonical text its offsets refer to.

    Raises:
        ValueError: If ``value`` contains a non-JSON type.
    """
    builder = _TreeBuilder()
    root = builder.build(value)
    return root, builder.text
