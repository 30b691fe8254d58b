"""Tests for transplanting actors between graphs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from conftest import add_export, add_import

from assetgraft.graph import (
    AssetGraph,
    LevelRootNotFoundError,
    PackageIndex,
    RemapConsistencyError,
    UnsupportedExportKindError,
    UnsupportedPropertyKindError,
    transplant_actor,
    transplant_actors,
)
from assetgraft.graph.asset import NormalExport
from assetgraft.graph.properties import (
    ArrayProperty,
    DelegateBinding,
    EnumProperty,
    MulticastDelegateProperty,
    NameProperty,
    ObjectProperty,
    StructProperty,
    Vector3,
    VectorProperty,
    walk_properties,
)
from assetgraft.graph.transplant import (
    build_remap,
    collect_export_closure,
    collect_import_closure,
)
from assetgraft.inspection import dump_lines

if TYPE_CHECKING:
    from collections.abc import Callable

LAMP = PackageIndex.from_raw(2)
MARKER = PackageIndex.from_raw(7)


def _raws(indices: list[PackageIndex]) -> list[int]:
    return [index.raw for index in indices]


# --- Closures ---


def test_export_closure_follows_create_before_serialization(donor_graph: AssetGraph) -> None:
    assert _raws(collect_export_closure(donor_graph, LAMP)) == [2, 3]


def test_export_closure_visits_each_export_once(donor_graph: AssetGraph) -> None:
    component = donor_graph.get_export(PackageIndex.from_raw(3))
    component.create_before_serialization = [LAMP, LAMP]

    assert _raws(collect_export_closure(donor_graph, LAMP)) == [2, 3]


def test_import_closure_adds_direct_parent(donor_graph: AssetGraph) -> None:
    imports = collect_import_closure(donor_graph, [LAMP, PackageIndex.from_raw(3)])

    assert _raws(imports) == [-2, -1]


def test_import_closure_empty_without_import_edges(donor_graph: AssetGraph) -> None:
    assert collect_import_closure(donor_graph, [MARKER]) == []


def test_build_remap_rejects_duplicate_slots(target_graph: AssetGraph) -> None:
    level = PackageIndex.from_raw(1)

    with pytest.raises(RemapConsistencyError, match="expected"):
        build_remap(target_graph, [level], [], donor_level=level, target_level=level)


# --- Single root ---


def test_transplant_export_without_dependencies(
    target_graph: AssetGraph, donor_graph: AssetGraph
) -> None:
    """A root with no import edges adds one export, no imports, one actor."""
    exports_before = len(target_graph.exports)
    imports_before = len(target_graph.imports)
    actors_before = list(target_graph.level_root().actors)

    result = transplant_actor(target_graph, donor_graph, MARKER)

    assert len(target_graph.exports) == exports_before + 1
    assert len(target_graph.imports) == imports_before
    assert result.destination.raw == exports_before + 1
    assert target_graph.level_root().actors == [*actors_before, result.destination]
    assert target_graph.level_root().create_before_serialization[-1] == result.destination
    assert [(p.source.raw, p.destination.raw, p.name) for p in result.exports] == [
        (7, 6, "Marker")
    ]
    assert result.imports == []


def test_transplant_reinterns_names(target_graph: AssetGraph, donor_graph: AssetGraph) -> None:
    result = transplant_actor(target_graph, donor_graph, MARKER)

    copied = target_graph.normal_export(result.destination, "test")
    assert target_graph.name(copied.object_name) == "Marker"
    tag = copied.properties[0]
    assert isinstance(tag, NameProperty)
    assert target_graph.name(tag.name) == "Tag"
    assert target_graph.name(tag.value) == "Marker"
    assert target_graph.names.owns(tag.value)


def test_transplant_remaps_every_reference(
    target_graph: AssetGraph, donor_graph: AssetGraph
) -> None:
    result = transplant_actor(target_graph, donor_graph, LAMP)

    assert [(p.source.raw, p.destination.raw) for p in result.exports] == [(2, 6), (3, 7)]
    assert [(p.source.raw, p.destination.raw, p.name) for p in result.imports] == [
        (-2, -4, "PointLight"),
        (-1, -5, "/Script/Engine"),
    ]

    lamp = target_graph.normal_export(PackageIndex.from_raw(6), "test")
    assert lamp.class_index.raw == -4
    assert lamp.outer_index.raw == 1
    assert _raws(lamp.create_before_serialization) == [7]
    assert _raws(lamp.serialization_before_create) == [-4]
    link = lamp.properties[0]
    assert isinstance(link, ObjectProperty)
    assert link.value.raw == 7

    component = target_graph.normal_export(PackageIndex.from_raw(7), "test")
    assert component.outer_index.raw == 6
    objects = [p.value.raw for p in component.properties if isinstance(p, ObjectProperty)]
    assert objects == [6, 1]
    location = component.properties[0]
    assert isinstance(location, StructProperty)
    assert location.struct_type is not None
    assert target_graph.name(location.struct_type) == "Vector"
    vector = location.value[0]
    assert isinstance(vector, VectorProperty)
    assert vector.value == Vector3(10, 20, 30)

    point_light = target_graph.get_import(PackageIndex.from_raw(-4))
    assert point_light.outer_index.raw == -5
    assert target_graph.get_import(PackageIndex.from_raw(-5)).outer_index.is_null


def test_transplant_rewrites_enum_array_and_delegate(
    target_graph: AssetGraph, donor_graph: AssetGraph
) -> None:
    switch = donor_graph.next_export_index()
    add_export(
        donor_graph,
        "Switch",
        outer_index=PackageIndex.from_raw(1),
        properties=[
            EnumProperty(
                name=donor_graph.intern("Mode"),
                value=donor_graph.intern("EMode::Fast"),
                enum_type=donor_graph.intern("EMode"),
            ),
            ArrayProperty(
                name=donor_graph.intern("Targets"),
                array_type=donor_graph.intern("ObjectProperty"),
                value=[ObjectProperty(name=donor_graph.intern("Targets"), value=switch)],
            ),
            MulticastDelegateProperty(
                name=donor_graph.intern("OnToggled"),
                value=[
                    DelegateBinding(target=switch, function=donor_graph.intern("HandleToggle"))
                ],
            ),
        ],
    )

    result = transplant_actor(target_graph, donor_graph, switch)

    assert target_graph.validate() == []
    copied = target_graph.normal_export(result.destination, "test")
    mode, targets, delegate = copied.properties
    assert isinstance(mode, EnumProperty)
    assert mode.value is not None
    assert mode.enum_type is not None
    assert target_graph.name(mode.value) == "EMode::Fast"
    assert target_graph.name(mode.enum_type) == "EMode"
    assert isinstance(targets, ArrayProperty)
    assert targets.array_type is not None
    assert target_graph.name(targets.array_type) == "ObjectProperty"
    element = targets.value[0]
    assert isinstance(element, ObjectProperty)
    assert element.value == result.destination
    assert isinstance(delegate, MulticastDelegateProperty)
    binding = delegate.value[0]
    assert binding.target == result.destination
    assert target_graph.name(binding.function) == "HandleToggle"


def test_transplant_leaves_no_donor_indices(
    target_graph: AssetGraph, donor_graph: AssetGraph
) -> None:
    """Everything reachable from the copies resolves inside the target."""
    transplant_actor(target_graph, donor_graph, LAMP)

    assert target_graph.validate() == []
    for export in target_graph.exports[5:]:
        assert isinstance(export, NormalExport)
        refs: list[PackageIndex] = []
        walk_properties(
            export.properties,
            {ObjectProperty: lambda p: refs.append(p.value)},  # type: ignore[attr-defined]
        )
        assert all(target_graph.resolves(ref) for ref in refs)


def test_transplant_does_not_touch_donor(
    target_graph: AssetGraph, donor_graph: AssetGraph
) -> None:
    names_before = donor_graph.names.entries
    dump_before = list(dump_lines(donor_graph))

    transplant_actor(target_graph, donor_graph, LAMP)

    assert donor_graph.names.entries == names_before
    assert list(dump_lines(donor_graph)) == dump_before


def test_transplant_is_deterministic(
    make_target_graph: Callable[[], AssetGraph], donor_graph: AssetGraph
) -> None:
    first = make_target_graph()
    second = make_target_graph()

    transplant_actor(first, donor_graph, LAMP)
    transplant_actor(second, donor_graph, LAMP)

    assert list(dump_lines(first)) == list(dump_lines(second))


def test_transplant_shifts_with_target_size(
    make_target_graph: Callable[[], AssetGraph], donor_graph: AssetGraph
) -> None:
    """A larger target only changes where the copies start."""
    small = make_target_graph()
    large = make_target_graph()
    add_export(large, "Extra")
    add_import(large, "ExtraClass")

    small_result = transplant_actor(small, donor_graph, LAMP)
    large_result = transplant_actor(large, donor_graph, LAMP)

    shifted = [(p.destination.raw + 1, p.name) for p in small_result.exports]
    assert [(p.destination.raw, p.name) for p in large_result.exports] == shifted
    assert [p.destination.raw - 1 for p in small_result.imports] == [
        p.destination.raw for p in large_result.imports
    ]
    assert large.validate() == []


def test_transplant_several_roots_in_order(
    target_graph: AssetGraph, donor_graph: AssetGraph
) -> None:
    results = transplant_actors(target_graph, donor_graph, [LAMP, MARKER])

    assert [r.destination.raw for r in results] == [6, 8]
    assert _raws(target_graph.level_root().actors)[-2:] == [6, 8]
    assert target_graph.validate() == []


# --- Failures ---


def test_object_reference_outside_closure(
    target_graph: AssetGraph, donor_graph: AssetGraph
) -> None:
    exports_before = len(target_graph.exports)

    with pytest.raises(RemapConsistencyError, match="object property"):
        transplant_actor(target_graph, donor_graph, PackageIndex.from_raw(8))

    assert len(target_graph.exports) == exports_before


def test_unknown_property_kind(target_graph: AssetGraph, donor_graph: AssetGraph) -> None:
    with pytest.raises(UnsupportedPropertyKindError) as exc_info:
        transplant_actor(target_graph, donor_graph, PackageIndex.from_raw(9))

    assert exc_info.value.kind == "SoftObjectProperty"


def test_raw_export_in_closure(target_graph: AssetGraph, donor_graph: AssetGraph) -> None:
    actors_before = list(target_graph.level_root().actors)

    with pytest.raises(UnsupportedExportKindError):
        transplant_actor(target_graph, donor_graph, PackageIndex.from_raw(11))

    assert target_graph.level_root().actors == actors_before


def test_import_ancestor_beyond_one_level(
    target_graph: AssetGraph, donor_graph: AssetGraph
) -> None:
    inner = add_import(donor_graph, "PointLightComponent", outer=PackageIndex.from_raw(-2))
    donor_graph.get_export(MARKER).serialization_before_create = [inner]

    with pytest.raises(RemapConsistencyError, match="import outer"):
        transplant_actor(target_graph, donor_graph, MARKER)


def test_donor_without_level_root(target_graph: AssetGraph) -> None:
    donor = AssetGraph()
    add_export(donor, "Loose")

    with pytest.raises(LevelRootNotFoundError, match="donor"):
        transplant_actor(target_graph, donor, PackageIndex.from_raw(1))
