"""Read-only query API over the Digital Twin model graph.

Used by the validator and by the hover/completion helpers. Lookups of
unknown names return ``None`` or empty lists rather than raising, so callers
degrade to "no applicable rule".
"""

from __future__ import annotations

from src.intellisense import constants
from src.intellisense.constants import VALUE_SCHEMA_NAMES
from src.intellisense.nodes import ClassNode, PropertyNode, VersionNode
from src.intellisense.store import GraphStore


class GraphQuery:
    """Stateless queries against a built ``GraphStore``."""

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    @property
    def store(self) -> GraphStore:
        return self._store

    def initialized(self) -> bool:
        return self._store.initialized()

    # ── Name resolution ──────────────────────────────────────────

    def get_entry_node(self) -> PropertyNode | None:
        """Return the virtual property representing a whole document."""
        return self._store.property_nodes.get(constants.ENTRY_NODE)

    def get_property_node(self, name: str) -> PropertyNode | None:
        """Resolve a property by short name, or by identifier."""
        node_id = self._store.reversed_index.get(name) or name
        return self._store.property_nodes.get(node_id)

    def get_class_node(self, name: str) -> ClassNode | None:
        """Resolve a class by short name, or by vocabulary-relative name."""
        node_id = self._store.reversed_index.get(name) or self._store.get_id(name)
        return self._store.class_nodes.get(node_id)

    def get_version(self, context: str) -> int:
        """Return the version of a context URI, 0 when it is not recognised."""
        return self._store.context_versions.get(context, 0)

    # ── Version filtering ────────────────────────────────────────

    @staticmethod
    def is_available_by_version(version_node: VersionNode | None, version: int) -> bool:
        """Return True if a node with this gate exists at ``version``."""
        if version_node is None:
            return True
        if version_node.include_since is not None and version_node.include_since > version:
            return False
        if version_node.exclude_since is not None and version_node.exclude_since <= version:
            return False
        return True

    def get_range_of_property_by_version(self, property_node: PropertyNode, version: int) -> list[ClassNode]:
        return [c for c in property_node.range or [] if self.is_available_by_version(c.version, version)]

    def get_children_of_class_by_version(self, class_node: ClassNode, version: int) -> list[ClassNode]:
        return [c for c in class_node.children or [] if self.is_available_by_version(c.version, version)]

    def get_properties_of_class_by_version(self, class_node: ClassNode, version: int) -> list[PropertyNode]:
        return [p for p in class_node.properties or [] if self.is_available_by_version(p.version, version)]

    # ── Classification ───────────────────────────────────────────

    @staticmethod
    def is_object_class(class_node: ClassNode) -> bool:
        """Return True for a concrete, labelled, non-enum class."""
        return not class_node.is_abstract and not class_node.enums and bool(class_node.label)

    @staticmethod
    def is_language_node(class_node: ClassNode) -> bool:
        return class_node.id == constants.LANGUAGE

    @staticmethod
    def get_class_type(class_node: ClassNode) -> str:
        """Return the name a document uses for a class in ``@type``."""
        return class_node.label or class_node.id

    # ── Range expansion ──────────────────────────────────────────

    def get_object_classes(self, property_node: PropertyNode, version: int) -> list[ClassNode]:
        """Return the object classes a property value may be.

        Abstract classes are replaced by their non-enum children, one level
        deep. Enum classes are dropped.
        """
        classes: list[ClassNode] = []
        for class_node in self.get_range_of_property_by_version(property_node, version):
            if self.is_object_class(class_node):
                classes.append(class_node)
            elif class_node.is_abstract:
                for child in self.get_children_of_class_by_version(class_node, version):
                    if not child.enums:
                        classes.append(child)
        return classes

    def get_enums(self, property_node: PropertyNode, version: int) -> list[str]:
        """Return every enum value a string value of the property may take."""
        enums: list[str] = []
        for class_node in self.get_range_of_property_by_version(property_node, version):
            if class_node.enums:
                enums.extend(class_node.enums)
            elif class_node.is_abstract:
                for child in self.get_children_of_class_by_version(class_node, version):
                    if child.enums:
                        enums.extend(child.enums)
        return enums

    def get_valid_types(self, property_node: PropertyNode, version: int) -> list[str]:
        """Return readable names of every type a property value may have."""
        types: list[str] = []
        for class_node in self.get_range_of_property_by_version(property_node, version):
            if class_node.is_abstract:
                children = self.get_children_of_class_by_version(class_node, version)
                types.extend(self.get_class_type(c) for c in children)
            elif class_node.id in VALUE_SCHEMA_NAMES:
                types.append(VALUE_SCHEMA_NAMES[class_node.id])
            else:
                types.append(self.get_class_type(class_node))
        return types

    def find_class_node(self, property_node: PropertyNode, class_type: str, version: int) -> ClassNode | None:
        """Return the range alternative whose class type is ``class_type``."""
        for class_node in self.get_range_of_property_by_version(property_node, version):
            if self.get_class_type(class_node) == class_type:
                return class_node
        return None

    def is_semantic_type(self, name: str, version: int) -> bool:
        """Return True if ``name`` is a semantic type available at ``version``."""
        base = self.get_class_node(constants.SEMANTIC_TYPE_NODE)
        if base is None:
            return False
        return any(self.get_class_type(c) == name for c in self.get_children_of_class_by_version(base, version))
