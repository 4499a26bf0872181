"""Node types of the Digital Twin model graph.

Nodes are created as empty stubs the first time an edge references them and
are filled in as further edges arrive, so every field except the identifier
is optional. List fields stay ``None`` until the first item is added.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class ContainerType(enum.Enum):
    """JSON-LD container kind declared for a context term."""

    NONE = 0
    ARRAY = 1
    LANGUAGE = 2


@dataclass
class ConstraintNode:
    """Value constraints declared for a class or property label."""

    min_items: int | None = None
    max_items: int | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    required: list[str] | None = None


@dataclass
class VersionNode:
    """Version gate: absent before ``include_since``, gone from ``exclude_since``."""

    include_since: int | None = None
    exclude_since: int | None = None


@dataclass
class ContextNode:
    """Short name and container kind of a context term (build time only)."""

    name: str
    container: ContainerType = ContainerType.NONE


@dataclass(eq=False)
class ClassNode:
    """A class of the graph: object shape, enumeration or plain value schema.

    Attributes:
        id: Vocabulary-qualified identifier.
        label: Short name used in documents.
        is_abstract: Never used directly; children are substituted.
        children: Direct subclasses.
        properties: Declared and inherited properties.
        enums: Enum value names; marks the class as an enumeration.
        constraint: Constraint attached by label.
        version: Version gate attached by label.
    """

    id: str
    label: str | None = None
    is_abstract: bool = False
    children: list[ClassNode] | None = None
    properties: list[PropertyNode] | None = None
    enums: list[str] | None = None
    constraint: ConstraintNode | None = None
    version: VersionNode | None = None


@dataclass(eq=False)
class PropertyNode:
    """A property of the graph.

    ``range`` is an ordered union of alternatives: a value conforms if it
    conforms to any one of them.
    """

    id: str
    label: str | None = None
    is_array: bool = False
    comment: str | None = None
    range: list[ClassNode] | None = None
    constraint: ConstraintNode | None = None
    version: VersionNode | None = None


@dataclass
class GraphStats:
    """Counts describing a built graph."""

    class_count: int = 0
    property_count: int = 0
    enum_count: int = 0
    versions: list[int] = field(default_factory=list)
