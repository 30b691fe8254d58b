"""Asset graph: name table, imports and exports of one package.

The graph is the editor's single source of truth for a loaded package.
Position in the import and export lists is identity: package indices encode
positions, so the lists only ever grow by appending and existing entries are
never reordered or removed.

Integrity rules, checked by ``validate()`` before a graph is written:
- Every package index resolves to an entry of this graph (or is null).
- Every name reference was issued by this graph's name table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from assetgraft.graph.errors import (
    LevelRootNotFoundError,
    ReferenceNotFoundError,
    UnsupportedExportKindError,
)
from assetgraft.graph.index import NULL_INDEX, PackageIndex
from assetgraft.graph.names import NameTable
from assetgraft.graph.properties import (
    ArrayProperty,
    EnumProperty,
    MulticastDelegateProperty,
    NameProperty,
    ObjectProperty,
    Property,
    StructProperty,
    type_label,
    walk_properties,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from assetgraft.graph.names import NameRef

DEFAULT_LEVEL_ROOT_NAME = "PersistentLevel"


@dataclass(kw_only=True)
class Import:
    """Descriptor of an object defined outside the package.

    Attributes:
        class_package: Package that defines the object's class.
        class_name: The object's class.
        object_name: The object's own name.
        outer_index: Parent import, or null for a root-level package import.
    """

    class_package: NameRef
    class_name: NameRef
    object_name: NameRef
    outer_index: PackageIndex = NULL_INDEX


@dataclass(kw_only=True)
class Export:
    """Object owned by the package: base record plus dependency edges.

    The three dependency lists tell the engine which objects must be
    constructed or serialized before this one. The editor preserves and
    remaps them but does not interpret them.
    """

    kind_name = "raw"

    object_name: NameRef
    class_index: PackageIndex = NULL_INDEX
    super_index: PackageIndex = NULL_INDEX
    template_index: PackageIndex = NULL_INDEX
    outer_index: PackageIndex = NULL_INDEX
    create_before_serialization: list[PackageIndex] = field(default_factory=list)
    serialization_before_create: list[PackageIndex] = field(default_factory=list)
    create_before_create: list[PackageIndex] = field(default_factory=list)

    def base_indices(self) -> dict[str, PackageIndex]:
        """The four single-valued index fields by name."""
        return {
            "class_index": self.class_index,
            "super_index": self.super_index,
            "template_index": self.template_index,
            "outer_index": self.outer_index,
        }

    def dependency_lists(self) -> dict[str, list[PackageIndex]]:
        """The three dependency lists by name (live lists, not copies)."""
        return {
            "create_before_serialization": self.create_before_serialization,
            "serialization_before_create": self.serialization_before_create,
            "create_before_create": self.create_before_create,
        }


@dataclass(kw_only=True)
class RawExport(Export):
    """Export whose payload shape the editor does not model.

    The payload is carried through untouched so the package round-trips.
    """

    data: Any = None


@dataclass(kw_only=True)
class NormalExport(Export):
    """Export with an ordered property list."""

    kind_name = "normal"

    properties: list[Property] = field(default_factory=list)


@dataclass(kw_only=True)
class LevelExport(NormalExport):
    """Level export: properties plus the ordered list of its actors."""

    kind_name = "level"

    actors: list[PackageIndex] = field(default_factory=list)


class AssetGraph:
    """In-memory object graph of one package.

    Attributes:
        names: The package's name table.
        imports: Import list; position ``i`` is package index ``-(i + 1)``.
        exports: Export list; position ``i`` is package index ``i + 1``.
        engine_version: Engine version tag the package was cooked with.
    """

    def __init__(
        self,
        names: NameTable | None = None,
        imports: list[Import] | None = None,
        exports: list[Export] | None = None,
        *,
        engine_version: str = "",
    ) -> None:
        self.names = names if names is not None else NameTable()
        self.imports: list[Import] = imports if imports is not None else []
        self.exports: list[Export] = exports if exports is not None else []
        self.engine_version = engine_version

    # -------------------------------------------------------------------------
    # Names
    # -------------------------------------------------------------------------

    def name(self, ref: NameRef) -> str:
        """Resolve a name reference of this graph."""
        return self.names.lookup(ref)

    def intern(self, value: str, number: int = 0) -> NameRef:
        """Intern a string into this graph's name table."""
        return self.names.intern(value, number)

    # -------------------------------------------------------------------------
    # Index resolution
    # -------------------------------------------------------------------------

    def get_export(self, index: PackageIndex) -> Export:
        """Return the export an index points to.

        Raises:
            ReferenceNotFoundError: If the index is not a valid export index.
        """
        if not index.is_export or index.position >= len(self.exports):
            raise ReferenceNotFoundError(index.raw, len(self.exports), context="expected export")
        return self.exports[index.position]

    def get_import(self, index: PackageIndex) -> Import:
        """Return the import an index points to.

        Raises:
            ReferenceNotFoundError: If the index is not a valid import index.
        """
        if not index.is_import or index.position >= len(self.imports):
            raise ReferenceNotFoundError(index.raw, len(self.imports), context="expected import")
        return self.imports[index.position]

    def resolves(self, index: PackageIndex) -> bool:
        """Whether ``index`` is null or points at an existing entry."""
        if index.is_export:
            return index.position < len(self.exports)
        if index.is_import:
            return index.position < len(self.imports)
        return True

    def object_name(self, index: PackageIndex) -> str:
        """Object name of the entry ``index`` points to (``""`` for null)."""
        if index.is_null:
            return ""
        if index.is_export:
            return self.name(self.get_export(index).object_name)
        return self.name(self.get_import(index).object_name)

    def normal_export(self, index: PackageIndex, operation: str) -> NormalExport:
        """Return the export at ``index``, requiring it to carry properties.

        Raises:
            ReferenceNotFoundError: If the index does not resolve to an export.
            UnsupportedExportKindError: If the export has no property list.
        """
        export = self.get_export(index)
        if not isinstance(export, NormalExport):
            raise UnsupportedExportKindError(index.raw, export.kind_name, operation)
        return export

    # -------------------------------------------------------------------------
    # Lookup by name
    # -------------------------------------------------------------------------

    def find_imports(self, object_name: str) -> list[PackageIndex]:
        """Indices of every import with the given object name, in list order."""
        return [
            PackageIndex.import_(i)
            for i, imp in enumerate(self.imports)
            if self.name(imp.object_name) == object_name
        ]

    def find_exports(self, object_name: str) -> list[PackageIndex]:
        """Indices of every export with the given object name, in list order."""
        return [
            PackageIndex.export(i)
            for i, export in enumerate(self.exports)
            if self.name(export.object_name) == object_name
        ]

    def find_level_root(
        self, level_root_name: str = DEFAULT_LEVEL_ROOT_NAME, *, context: str = ""
    ) -> PackageIndex:
        """Locate the level root export.

        Args:
            level_root_name: Object name of the level root.
            context: Description of this graph for the error message.

        Returns:
            Index of the first level export with that name.

        Raises:
            LevelRootNotFoundError: If no such export exists.
        """
        return self._locate_level_root(level_root_name, context)[0]

    def level_root(
        self, level_root_name: str = DEFAULT_LEVEL_ROOT_NAME, *, context: str = ""
    ) -> LevelExport:
        """Return the level root export itself.

        Raises:
            LevelRootNotFoundError: If no such export exists.
        """
        return self._locate_level_root(level_root_name, context)[1]

    def _locate_level_root(
        self, level_root_name: str, context: str
    ) -> tuple[PackageIndex, LevelExport]:
        for i, export in enumerate(self.exports):
            if not isinstance(export, LevelExport):
                continue
            if self.name(export.object_name) != level_root_name:
                continue
            return PackageIndex.export(i), export
        raise LevelRootNotFoundError(level_root_name, context=context)

    # -------------------------------------------------------------------------
    # Growth
    # -------------------------------------------------------------------------

    def next_export_index(self, offset: int = 0) -> PackageIndex:
        """Index the export appended ``offset`` entries from now will get."""
        return PackageIndex.export(len(self.exports) + offset)

    def next_import_index(self, offset: int = 0) -> PackageIndex:
        """Index the import appended ``offset`` entries from now will get."""
        return PackageIndex.import_(len(self.imports) + offset)

    def add_export(self, export: Export) -> PackageIndex:
        """Append an export and return its index."""
        index = self.next_export_index()
        self.exports.append(export)
        return index

    def add_import(self, imp: Import) -> PackageIndex:
        """Append an import and return its index."""
        index = self.next_import_index()
        self.imports.append(imp)
        return index

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def iter_references(self) -> Iterator[tuple[str, PackageIndex | NameRef]]:
        """Yield ``(location, reference)`` for every reference in the graph."""
        for i, imp in enumerate(self.imports):
            where = f"import {-(i + 1)}"
            yield f"{where} class_package", imp.class_package
            yield f"{where} class_name", imp.class_name
            yield f"{where} object_name", imp.object_name
            yield f"{where} outer_index", imp.outer_index

        for i, export in enumerate(self.exports):
            where = f"export {i + 1}"
            yield f"{where} object_name", export.object_name
            for field_name, index in export.base_indices().items():
                yield f"{where} {field_name}", index
            for list_name, deps in export.dependency_lists().items():
                for dep in deps:
                    yield f"{where} {list_name}", dep
            if isinstance(export, LevelExport):
                for actor in export.actors:
                    yield f"{where} actors", actor
            if isinstance(export, NormalExport):
                yield from _property_references(where, export.properties)

    def validate(self) -> list[str]:
        """Check graph invariants and return any violations.

        Invariants checked:
        1. Every package index resolves within this graph.
        2. Every name reference belongs to this graph's name table.

        This detects editor bugs or corrupt input, not asset semantics.

        Returns:
            List of violation messages (empty if valid).
        """
        violations: list[str] = []
        for location, ref in self.iter_references():
            if isinstance(ref, PackageIndex):
                if not self.resolves(ref):
                    violations.append(f"{location}: dangling package index {ref.raw}")
            elif not self.names.owns(ref):
                violations.append(f"{location}: name reference {ref.index} is not from this table")
        return violations

    # -------------------------------------------------------------------------
    # Utility
    # -------------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"AssetGraph(names={len(self.names)}, imports={len(self.imports)}, "
            f"exports={len(self.exports)})"
        )


def _property_references(
    where: str, properties: list[Property]
) -> Iterator[tuple[str, PackageIndex | NameRef]]:
    found: list[tuple[str, PackageIndex | NameRef]] = []

    def _collect(prop: Property) -> None:
        location = f"{where} {type_label(prop)} property"
        found.append((location, prop.name))
        if isinstance(prop, NameProperty):
            found.append((location, prop.value))
        elif isinstance(prop, ObjectProperty):
            found.append((location, prop.value))
        elif isinstance(prop, StructProperty) and prop.struct_type is not None:
            found.append((location, prop.struct_type))
        elif isinstance(prop, ArrayProperty) and prop.array_type is not None:
            found.append((location, prop.array_type))
        elif isinstance(prop, EnumProperty):
            found.extend((location, ref) for ref in (prop.value, prop.enum_type) if ref is not None)
        elif isinstance(prop, MulticastDelegateProperty):
            for binding in prop.value:
                found.append((location, binding.target))
                found.append((location, binding.function))

    walk_properties(properties, {Property: _collect})
    yield from found
