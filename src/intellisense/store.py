"""In-memory store of the Digital Twin model graph.

A GraphStore is populated once by ``GraphBuilder`` and treated as immutable
afterwards. It is owned by the host process and handed to ``GraphQuery`` by
reference; there is no module-level instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.intellisense.nodes import (
    ClassNode,
    ConstraintNode,
    ContextNode,
    GraphStats,
    PropertyNode,
    VersionNode,
)


@dataclass
class GraphStore:
    """Node maps, reverse short-name index and context versions.

    Attributes:
        vocabulary: Base URI prepended to short names to form identifiers.
        class_nodes: Class nodes keyed by identifier.
        property_nodes: Property nodes keyed by identifier.
        context_nodes: Context terms keyed by identifier.
        constraint_nodes: Constraints keyed by short label.
        version_nodes: Version gates keyed by short label.
        reversed_index: Short name to identifier.
        context_versions: Context URI to version number.
    """

    vocabulary: str = ""
    class_nodes: dict[str, ClassNode] = field(default_factory=dict)
    property_nodes: dict[str, PropertyNode] = field(default_factory=dict)
    context_nodes: dict[str, ContextNode] = field(default_factory=dict)
    constraint_nodes: dict[str, ConstraintNode] = field(default_factory=dict)
    version_nodes: dict[str, VersionNode] = field(default_factory=dict)
    reversed_index: dict[str, str] = field(default_factory=dict)
    context_versions: dict[str, int] = field(default_factory=dict)

    def initialized(self) -> bool:
        """Return True once a vocabulary has been loaded."""
        return bool(self.vocabulary)

    def get_id(self, name: str) -> str:
        return self.vocabulary + name

    def stats(self) -> GraphStats:
        return GraphStats(
            class_count=len(self.class_nodes),
            property_count=len(self.property_nodes),
            enum_count=sum(1 for c in self.class_nodes.values() if c.enums),
            versions=sorted(set(self.context_versions.values())),
        )
