"""Pytest configuration and shared graph builders."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from assetgraft.graph import (
    NULL_INDEX,
    AssetGraph,
    Export,
    Import,
    LevelExport,
    NormalExport,
    PackageIndex,
    RawExport,
)
from assetgraft.graph.properties import (
    IntProperty,
    NameProperty,
    ObjectProperty,
    Property,
    StructProperty,
    UnknownProperty,
    Vector3,
    VectorProperty,
)


def add_import(
    graph: AssetGraph,
    name: str,
    *,
    class_package: str = "/Script/CoreUObject",
    class_name: str = "Class",
    outer: PackageIndex = NULL_INDEX,
) -> PackageIndex:
    """Append an import built from plain strings."""
    return graph.add_import(
        Import(
            class_package=graph.intern(class_package),
            class_name=graph.intern(class_name),
            object_name=graph.intern(name),
            outer_index=outer,
        )
    )


def add_export(
    graph: AssetGraph,
    name: str,
    *,
    kind: type[Export] = NormalExport,
    **fields: Any,
) -> PackageIndex:
    """Append an export built from a plain name and keyword fields."""
    return graph.add_export(kind(object_name=graph.intern(name), **fields))


def name_prop(graph: AssetGraph, name: str, value: str) -> NameProperty:
    return NameProperty(name=graph.intern(name), value=graph.intern(value))


def vector_prop(graph: AssetGraph, name: str, x: float, y: float, z: float) -> VectorProperty:
    return VectorProperty(name=graph.intern(name), value=Vector3(x, y, z))


def location_struct(graph: AssetGraph, x: float = 0.0, y: float = 0.0, z: float = 0.0) -> Property:
    """``RelativeLocation`` struct holding a ``RelativeLocation`` vector."""
    return StructProperty(
        name=graph.intern("RelativeLocation"),
        struct_type=graph.intern("Vector"),
        value=[vector_prop(graph, "RelativeLocation", x, y, z)],
    )


def build_target_graph() -> AssetGraph:
    """A small level: three imports, a level root and four actors.

    Exports:
        1 PersistentLevel (actors 2, 3, 4, 5)
        2 Wall
        3 PlayerStart_1
        4 Door
        5 Light_5 (location struct at export 5)
    """
    graph = AssetGraph(engine_version="VER_UE5_1")
    engine = add_import(graph, "/Script/Engine", class_name="Package")
    mesh_class = add_import(graph, "StaticMeshActor", outer=engine)
    start_class = add_import(graph, "PlayerStart", outer=engine)

    level = add_export(graph, "PersistentLevel", kind=LevelExport)
    wall = add_export(
        graph,
        "Wall",
        class_index=mesh_class,
        outer_index=level,
        properties=[name_prop(graph, "Tag", "Blocker"), location_struct(graph, 1, 1, 1)],
    )
    start = add_export(
        graph,
        "PlayerStart_1",
        class_index=start_class,
        outer_index=level,
        properties=[name_prop(graph, "PlayerStartTag", "None")],
    )
    door = add_export(graph, "Door", class_index=mesh_class, outer_index=level)
    light = add_export(
        graph,
        "Light_5",
        class_index=mesh_class,
        outer_index=level,
        properties=[
            name_prop(graph, "Tag", "Lamp"),
            location_struct(graph),
            IntProperty(name=graph.intern("Brightness"), value=7),
            ObjectProperty(name=graph.intern("Owner"), value=level),
        ],
    )

    root = graph.exports[level.position]
    assert isinstance(root, LevelExport)
    root.actors = [wall, start, door, light]
    root.create_before_serialization = [wall, start, door, light]
    return graph


def build_donor_graph() -> AssetGraph:
    """A donor level with actors exercising every transplant path.

    Imports:
        -1 /Script/Engine
        -2 PointLight (outer -1)
    Exports:
        1 PersistentLevel
        2 Lamp: needs 3 created first and depends on import -2
        3 LightComponent0: points back at 2 and at the level
        4..6 Filler actors
        7 Marker: no dependencies at all
        8 Broken: object property pointing at 4, outside its closure
        9 Strange: property of a kind the editor does not model
        10 Blob: raw export
        11 NeedsBlob: needs 10 created first
    """
    graph = AssetGraph(engine_version="VER_UE5_1")
    engine = add_import(graph, "/Script/Engine", class_name="Package")
    light_class = add_import(graph, "PointLight", outer=engine)

    level = add_export(graph, "PersistentLevel", kind=LevelExport)
    lamp = PackageIndex.export(1)
    component = PackageIndex.export(2)
    add_export(
        graph,
        "Lamp",
        class_index=light_class,
        outer_index=level,
        create_before_serialization=[component],
        serialization_before_create=[light_class],
        properties=[
            ObjectProperty(name=graph.intern("LightComponent"), value=component),
            name_prop(graph, "Tag", "Lamp"),
        ],
    )
    add_export(
        graph,
        "LightComponent0",
        outer_index=lamp,
        properties=[
            location_struct(graph, 10, 20, 30),
            ObjectProperty(name=graph.intern("AttachParent"), value=lamp),
            ObjectProperty(name=graph.intern("Level"), value=level),
        ],
    )
    for i in (4, 5, 6):
        add_export(graph, f"Filler_{i}", outer_index=level)
    marker = add_export(
        graph,
        "Marker",
        outer_index=level,
        properties=[
            name_prop(graph, "Tag", "Marker"),
            IntProperty(name=graph.intern("Count"), value=3),
        ],
    )
    broken = add_export(
        graph,
        "Broken",
        outer_index=level,
        properties=[ObjectProperty(name=graph.intern("Target"), value=PackageIndex.export(3))],
    )
    strange = add_export(
        graph,
        "Strange",
        outer_index=level,
        properties=[
            UnknownProperty(
                name=graph.intern("Soft"),
                kind="SoftObjectProperty",
                raw={"type": "SoftObjectProperty", "name": 0, "value": "/Game/X"},
            )
        ],
    )
    blob = add_export(graph, "Blob", kind=RawExport, outer_index=level, data={"bytes": "00ff"})
    needs_blob = add_export(
        graph, "NeedsBlob", outer_index=level, create_before_serialization=[blob]
    )

    root = graph.exports[level.position]
    assert isinstance(root, LevelExport)
    root.actors = [lamp, marker, broken, strange, needs_blob]
    return graph


@pytest.fixture
def target_graph() -> AssetGraph:
    """Fresh target level graph."""
    return build_target_graph()


@pytest.fixture
def donor_graph() -> AssetGraph:
    """Fresh donor level graph."""
    return build_donor_graph()


@pytest.fixture
def make_target_graph() -> Callable[[], AssetGraph]:
    """Factory for independent, structurally identical target graphs."""
    return build_target_graph
