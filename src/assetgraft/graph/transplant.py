"""Transplant actors from a donor package into a target package.

A transplant copies a rooted subgraph of donor exports, plus the donor
imports they depend on, into the target graph. The two graphs have
independent name tables and index spaces, so every copied record is
rewritten on the way in:

1. Export closure: depth-first over create-before-serialization edges.
2. Import closure: import-space dependencies plus their direct parent.
3. Slot allocation: copies are appended after the target's current lists.
4. Exports and their property trees are re-interned and remapped.
5. Imports are re-interned and remapped.
6. The copied root is attached to the target's level root.

The donor graph is only read.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from itertools import chain
from typing import TYPE_CHECKING

from assetgraft.graph.asset import (
    DEFAULT_LEVEL_ROOT_NAME,
    AssetGraph,
    Export,
    Import,
    LevelExport,
    NormalExport,
)
from assetgraft.graph.errors import (
    RemapConsistencyError,
    UnsupportedExportKindError,
    UnsupportedPropertyKindError,
)
from assetgraft.graph.index import PackageIndex
from assetgraft.graph.properties import (
    ArrayProperty,
    BoolProperty,
    ByteProperty,
    EnumProperty,
    FloatProperty,
    IntProperty,
    MulticastDelegateProperty,
    NameProperty,
    ObjectProperty,
    Property,
    RotatorProperty,
    StructProperty,
    VectorProperty,
    type_label,
    walk_properties,
)
from assetgraft.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from assetgraft.graph.names import NameRef

log = get_logger(__name__)

RemapTable = dict[PackageIndex, PackageIndex]


@dataclass(frozen=True)
class TransplantPair:
    """A donor record and the target slot it was copied to."""

    source: PackageIndex
    destination: PackageIndex
    name: str


@dataclass
class TransplantResult:
    """Everything one root's transplant added to the target."""

    root: PackageIndex
    destination: PackageIndex
    exports: list[TransplantPair] = field(default_factory=list)
    imports: list[TransplantPair] = field(default_factory=list)


# -----------------------------------------------------------------------------
# Closure extraction
# -----------------------------------------------------------------------------


def collect_export_closure(donor: AssetGraph, root: PackageIndex) -> list[PackageIndex]:
    """Collect the root and every export it needs created before serializing.

    Traversal is depth-first with an explicit stack, so the result is in
    discovery order, not dependency order. Each export appears once.

    Raises:
        ReferenceNotFoundError: If the root or a dependency does not resolve.
    """
    order: list[PackageIndex] = []
    visited: set[PackageIndex] = set()
    stack = [root]
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        export = donor.get_export(current)
        visited.add(current)
        order.append(current)
        for dep in export.create_before_serialization:
            if dep.is_export and dep not in visited:
                stack.append(dep)
    return order


def collect_import_closure(
    donor: AssetGraph, exports: Iterable[PackageIndex]
) -> list[PackageIndex]:
    """Collect the imports the given exports depend on.

    Both create-before-serialization and serialization-before-create edges
    are followed. Each collected import brings its direct parent along; the
    parent's own ancestors are not walked.
    """
    collected: list[PackageIndex] = []
    seen: set[PackageIndex] = set()
    for index in exports:
        export = donor.get_export(index)
        for dep in chain(export.create_before_serialization, export.serialization_before_create):
            if not dep.is_import or dep in seen:
                continue
            imp = donor.get_import(dep)
            collected.append(dep)
            seen.add(dep)
            parent = imp.outer_index
            if not parent.is_import or parent in seen:
                continue
            donor.get_import(parent)
            collected.append(parent)
            seen.add(parent)
    return collected


def build_remap(
    target: AssetGraph,
    exports: list[PackageIndex],
    imports: list[PackageIndex],
    *,
    donor_level: PackageIndex,
    target_level: PackageIndex,
) -> RemapTable:
    """Assign target slots and build the donor-to-target index table.

    Exports go after the target's current exports and imports after its
    current imports, in collection order. The donor's level root maps onto
    the target's level root so copied references to "the level" land on
    the target's own level.

    Raises:
        RemapConsistencyError: If the table does not have exactly one entry
            per copied record plus the level root.
    """
    remap: RemapTable = {}
    for offset, source in enumerate(exports):
        remap[source] = target.next_export_index(offset)
    for offset, source in enumerate(imports):
        remap[source] = target.next_import_index(offset)
    remap[donor_level] = target_level

    expected = len(exports) + len(imports) + 1
    if len(remap) != expected:
        raise RemapConsistencyError(
            f"combined remap has {len(remap)} entries, expected {expected} "
            f"({len(exports)} exports + {len(imports)} imports + level root)"
        )
    return remap


# -----------------------------------------------------------------------------
# Rewriting
# -----------------------------------------------------------------------------


class _Rewriter:
    """Moves donor records into the target's name table and index space."""

    def __init__(self, target: AssetGraph, donor: AssetGraph, remap: RemapTable) -> None:
        self.target = target
        self.donor = donor
        self.remap = remap
        self._context = ""
        self._property_handlers: dict[type[Property], Callable[..., None]] = {
            NameProperty: self._name_property,
            ObjectProperty: self._object_property,
            StructProperty: self._struct_property,
            ArrayProperty: self._array_property,
            EnumProperty: self._enum_property,
            MulticastDelegateProperty: self._delegate_property,
            VectorProperty: self._plain_property,
            RotatorProperty: self._plain_property,
            ByteProperty: self._plain_property,
            FloatProperty: self._plain_property,
            IntProperty: self._plain_property,
            BoolProperty: self._plain_property,
        }

    def name(self, ref: NameRef) -> NameRef:
        return self.target.intern(self.donor.name(ref), ref.number)

    def optional_name(self, ref: NameRef | None) -> NameRef | None:
        return None if ref is None else self.name(ref)

    def index(self, index: PackageIndex) -> PackageIndex:
        """Remap an index; indices outside the table pass through unchanged."""
        if index.is_null:
            return index
        mapped = self.remap.get(index)
        if mapped is None:
            log.warning("reference_passed_through", index=index.raw, context=self._context)
            return index
        return mapped

    def required_index(self, index: PackageIndex, what: str) -> PackageIndex:
        """Remap a non-null index that must be part of the transplant."""
        if index.is_null:
            return index
        mapped = self.remap.get(index)
        if mapped is None:
            raise RemapConsistencyError(
                f"{what} references donor index {index.raw}, which is outside "
                f"the transplanted set ({self._context})"
            )
        return mapped

    def export(self, source: PackageIndex) -> Export:
        original = self.donor.get_export(source)
        self._context = f"donor export {source.raw}"
        if not isinstance(original, NormalExport):
            raise UnsupportedExportKindError(source.raw, original.kind_name, "transplant it")

        export = copy.deepcopy(original)
        export.object_name = self.name(export.object_name)
        export.class_index = self.index(export.class_index)
        export.super_index = self.index(export.super_index)
        export.template_index = self.index(export.template_index)
        export.outer_index = self.index(export.outer_index)
        for deps in export.dependency_lists().values():
            deps[:] = [self.index(dep) for dep in deps]
        if isinstance(export, LevelExport):
            export.actors = [self.index(actor) for actor in export.actors]

        walk_properties(export.properties, self._property_handlers, fallback=self._unsupported)
        return export

    def import_(self, source: PackageIndex) -> Import:
        original = self.donor.get_import(source)
        self._context = f"donor import {source.raw}"
        return Import(
            class_package=self.name(original.class_package),
            class_name=self.name(original.class_name),
            object_name=self.name(original.object_name),
            outer_index=self.required_index(original.outer_index, "import outer"),
        )

    # -- property handlers ---------------------------------------------------

    def _plain_property(self, prop: Property) -> None:
        prop.name = self.name(prop.name)

    def _name_property(self, prop: NameProperty) -> None:
        prop.name = self.name(prop.name)
        prop.value = self.name(prop.value)

    def _object_property(self, prop: ObjectProperty) -> None:
        prop.name = self.name(prop.name)
        prop.value = self.required_index(prop.value, "object property")

    def _struct_property(self, prop: StructProperty) -> None:
        prop.name = self.name(prop.name)
        prop.struct_type = self.optional_name(prop.struct_type)

    def _array_property(self, prop: ArrayProperty) -> None:
        prop.name = self.name(prop.name)
        prop.array_type = self.optional_name(prop.array_type)

    def _enum_property(self, prop: EnumProperty) -> None:
        prop.name = self.name(prop.name)
        prop.value = self.optional_name(prop.value)
        prop.enum_type = self.optional_name(prop.enum_type)

    def _delegate_property(self, prop: MulticastDelegateProperty) -> None:
        prop.name = self.name(prop.name)
        for binding in prop.value:
            binding.target = self.required_index(binding.target, "delegate target")
            binding.function = self.name(binding.function)

    def _unsupported(self, prop: Property) -> None:
        raise UnsupportedPropertyKindError(
            type_label(prop), self.donor.name(prop.name), context=self._context
        )


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------


def transplant_actor(
    target: AssetGraph,
    donor: AssetGraph,
    root: PackageIndex,
    *,
    level_root_name: str = DEFAULT_LEVEL_ROOT_NAME,
) -> TransplantResult:
    """Copy one donor actor and its dependencies into the target level.

    Args:
        target: Graph to extend (mutated).
        donor: Graph to copy from (read only).
        root: Donor export index of the actor to transplant.
        level_root_name: Object name of the level root in both graphs.

    Returns:
        The source/destination pairs for every copied export and import.

    Raises:
        LevelRootNotFoundError: If either graph lacks a level root.
        ReferenceNotFoundError: If the root or a followed edge is dangling.
        RemapConsistencyError: If remapping breaks an invariant.
        UnsupportedPropertyKindError: If a copied property cannot be rewritten.
        UnsupportedExportKindError: If a copied export has no property list.
    """
    target_level = target.find_level_root(level_root_name, context="target")
    donor_level = donor.find_level_root(level_root_name, context="donor")

    export_sources = collect_export_closure(donor, root)
    import_sources = collect_import_closure(donor, export_sources)
    remap = build_remap(
        target,
        export_sources,
        import_sources,
        donor_level=donor_level,
        target_level=target_level,
    )

    rewriter = _Rewriter(target, donor, remap)
    new_exports = [rewriter.export(source) for source in export_sources]
    new_imports = [rewriter.import_(source) for source in import_sources]

    destination = remap[root]
    level = target.level_root(level_root_name, context="target")
    level.actors.append(destination)
    level.create_before_serialization.append(destination)

    target.exports.extend(new_exports)
    target.imports.extend(new_imports)

    result = TransplantResult(root=root, destination=destination)
    for source in export_sources:
        pair = TransplantPair(source, remap[source], donor.object_name(source))
        result.exports.append(pair)
        log.info(
            "export_transplanted",
            source=source.raw,
            destination=pair.destination.raw,
            name=pair.name,
        )
    for source in import_sources:
        pair = TransplantPair(source, remap[source], donor.object_name(source))
        result.imports.append(pair)
        log.info(
            "import_transplanted",
            source=source.raw,
            destination=pair.destination.raw,
            name=pair.name,
        )
    return result


def transplant_actors(
    target: AssetGraph,
    donor: AssetGraph,
    roots: Iterable[PackageIndex],
    *,
    level_root_name: str = DEFAULT_LEVEL_ROOT_NAME,
) -> list[TransplantResult]:
    """Transplant several roots one after another.

    Each root sees the target as already extended by the roots before it.
    """
    return [
        transplant_actor(target, donor, root, level_root_name=level_root_name) for root in roots
    ]
