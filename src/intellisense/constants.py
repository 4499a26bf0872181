"""Reserved names, vocabulary URIs and diagnostic messages for the model graph."""

from __future__ import annotations

import enum


class DiagnosticMessage(enum.StrEnum):
    """Message text for diagnostic problems."""

    MISSING_TYPE = "@type is missing."
    INVALID_TYPE = "Invalid type. Valid types:"
    UNEXPECTED_PROPERTY = "is unexpected."
    MISSING_REQUIRED_PROPERTIES = "Missing required properties:"
    SHORTER_THAN_MIN_LENGTH = "String is shorter than the minimum length of"
    LONGER_THAN_MAX_LENGTH = "String is longer than the maximum length of"
    NOT_MATCH_PATTERN = "String does not match the pattern of"
    NOT_OBJECT_TYPE = "Object is not expected."
    EMPTY_OBJECT = "Object is empty."
    EMPTY_STRING = "String is empty."
    EMPTY_ARRAY = "Array is empty."
    TOO_FEW_ITEMS = "Array has too few items. Minimum count is"
    TOO_MANY_ITEMS = "Array has too many items. Maximum count is"
    DUPLICATE_ITEM = "has been assigned to another item."
    INVALID_ENUM = "Invalid value. Valid values:"
    INVALID_CONTEXT = "Invalid context of DigitalTwin."
    CONFLICT_TYPE = "Conflict type:"
    VALUE_NOT_STRING = "Value is not string."
    DUPLICATE_TYPE = "is duplicated in @type."
    EMPTY_REQUIRED_PROPERTY = "cannot be empty."


class ValueSchema(enum.StrEnum):
    """Plain value schemas a property range may contain."""

    STRING = "http://www.w3.org/2001/XMLSchema#string"
    INT = "http://www.w3.org/2001/XMLSchema#int"
    BOOLEAN = "http://www.w3.org/2001/XMLSchema#boolean"


# Short names shown to users for the plain value schemas
VALUE_SCHEMA_NAMES: dict[str, str] = {
    ValueSchema.STRING: "string",
    ValueSchema.INT: "integer",
    ValueSchema.BOOLEAN: "boolean",
}


class NodeType(enum.StrEnum):
    """Target of a Type edge that declares a class or a property."""

    CLASS = "http://www.w3.org/2000/01/rdf-schema#Class"
    PROPERTY = "http://www.w3.org/1999/02/22-rdf-syntax-ns#Property"


class EdgeType(enum.StrEnum):
    """Predicates understood in the edge-list definition."""

    TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"
    RANGE = "http://www.w3.org/2000/01/rdf-schema#range"
    LABEL = "http://www.w3.org/2000/01/rdf-schema#label"
    DOMAIN = "http://www.w3.org/2000/01/rdf-schema#domain"
    SUB_CLASS_OF = "http://www.w3.org/2000/01/rdf-schema#subClassOf"
    COMMENT = "http://www.w3.org/2000/01/rdf-schema#comment"


BASE_CLASS = "Entity"
NAME = "name"
SCHEMA = "schema"
IMPLEMENTS = "implements"
INTERFACE_SCHEMA = "interfaceSchema"
RESERVED = "@"
CONTEXT = "@context"
VOCABULARY = "@vocab"
ID = "@id"
TYPE = "@type"
CONTAINER = "@container"
LIST = "@list"
SET = "@set"
LANGUAGE = "@language"
ENTRY_NODE = "@entry"
INTERFACE_NODE = "Interface"
CAPABILITY_MODEL_NODE = "CapabilityModel"
SCHEMA_NODE = "Schema"
UNIT_NODE = "Unit"
SEMANTIC_TYPE_NODE = "SemanticType"
INTERFACE_SCHEMA_NODE = "InterfaceInstance/schema"
REQUIRED_PROPERTY_LABEL = "(required)"
IOT_MODEL_LABEL = "IoTModel"
CONTEXT_TEMPLATE = "http://azureiot.com/v1/contexts/IoTModel.json"
LINE_FEED = "\n"

# Classes that may be combined with semantic types in an array-valued @type
SUPPORT_SEMANTIC_TYPES: frozenset[str] = frozenset({"Telemetry", "Property"})


def is_reserved_name(name: str) -> bool:
    """Return True for JSON-LD keywords such as ``@id`` or ``@vocab``."""
    return name.startswith(RESERVED)
