"""Hover text for members of a model document."""

from __future__ import annotations

from src.intellisense import constants
from src.intellisense.json_tree import PropertyPair, resolve_property_name
from src.intellisense.query import GraphQuery

MODEL_NAME = "Digital Twin"

_RESERVED_CONTENT: dict[str, str] = {
    constants.ID: f"An identifier for {MODEL_NAME} Capability Model or interface",
    constants.TYPE: f"The type of {MODEL_NAME} meta model object",
    constants.CONTEXT: f"The context for {MODEL_NAME} Capability Model or interface",
}


def get_hover_content(query: GraphQuery, pair: PropertyPair) -> str:
    """Return the hover text for an object member, or an empty string."""
    property_name = resolve_property_name(pair)
    if not property_name:
        return ""
    if property_name in _RESERVED_CONTENT:
        return _RESERVED_CONTENT[property_name]
    property_node = query.get_property_node(property_name)
    if property_node and property_node.comment:
        return property_node.comment
    return ""
