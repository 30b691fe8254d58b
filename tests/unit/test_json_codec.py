"""Tests for the JSON package codec."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

from assetgraft.codec import (
    AssetCodec,
    CodecParseError,
    CodecWriteError,
    InputNotFoundError,
    JsonPackageCodec,
)
from assetgraft.graph import LevelExport, NormalExport, PackageIndex, RawExport
from assetgraft.graph.properties import NameProperty, ObjectProperty, UnknownProperty
from assetgraft.inspection import dump_lines

if TYPE_CHECKING:
    from pathlib import Path

    from assetgraft.graph import AssetGraph


def _write(path: Path, document: dict[str, Any]) -> None:
    path.write_text(json.dumps(document), encoding="utf-8")


def _minimal_header(**overrides: Any) -> dict[str, Any]:
    header: dict[str, Any] = {
        "format": "assetgraft-package",
        "version": 1,
        "engine_version": "VER_UE5_1",
        "names": ["None", "PersistentLevel", "Tag", "Hello", "/Script/Engine", "Package"],
        "imports": [{"class_package": 4, "class_name": 5, "object_name": 4}],
        "exports": [{"object_name": 1}],
    }
    header.update(overrides)
    return header


def test_codec_satisfies_protocol() -> None:
    assert isinstance(JsonPackageCodec(), AssetCodec)


def test_round_trip_preserves_graph(tmp_path: Path, target_graph: AssetGraph) -> None:
    codec = JsonPackageCodec()
    path = tmp_path / "Arena.uasset"

    codec.save(target_graph, path)
    loaded = codec.load(path)

    assert (tmp_path / "Arena.uexp").exists()
    assert loaded.names.entries == target_graph.names.entries
    assert loaded.engine_version == "VER_UE5_1"
    assert list(dump_lines(loaded)) == list(dump_lines(target_graph))
    assert [type(e) for e in loaded.exports] == [type(e) for e in target_graph.exports]
    assert [a.raw for a in loaded.level_root().actors] == [2, 3, 4, 5]
    assert loaded.validate() == []


def test_round_trip_is_stable_on_disk(tmp_path: Path, target_graph: AssetGraph) -> None:
    codec = JsonPackageCodec()
    first = tmp_path / "a.uasset"
    second = tmp_path / "b.uasset"

    codec.save(target_graph, first)
    codec.save(codec.load(first), second)

    assert first.read_text() == second.read_text()
    assert (tmp_path / "a.uexp").read_text() == (tmp_path / "b.uexp").read_text()


def test_round_trip_unknown_and_raw(tmp_path: Path, donor_graph: AssetGraph) -> None:
    codec = JsonPackageCodec()
    path = tmp_path / "Donor.uasset"

    codec.save(donor_graph, path)
    loaded = codec.load(path)

    blob = loaded.get_export(PackageIndex.from_raw(10))
    assert isinstance(blob, RawExport)
    assert blob.data == {"bytes": "00ff"}
    strange = loaded.normal_export(PackageIndex.from_raw(9), "test").properties[0]
    assert isinstance(strange, UnknownProperty)
    assert strange.kind == "SoftObjectProperty"
    assert strange.raw["value"] == "/Game/X"
    assert loaded.name(strange.name) == "Soft"


def test_instance_numbers_round_trip(tmp_path: Path, target_graph: AssetGraph) -> None:
    codec = JsonPackageCodec()
    wall = target_graph.normal_export(PackageIndex.from_raw(2), "test")
    wall.object_name = target_graph.intern("Wall", 3)
    path = tmp_path / "Arena.uasset"

    codec.save(target_graph, path)
    loaded = codec.load(path)

    assert loaded.get_export(PackageIndex.from_raw(2)).object_name.number == 3
    header = json.loads(path.read_text())
    assert isinstance(header["exports"][1]["object_name"], list)


def test_load_hand_written_documents(tmp_path: Path) -> None:
    path = tmp_path / "Small.uasset"
    _write(path, _minimal_header())
    _write(
        tmp_path / "Small.uexp",
        {
            "exports": [
                {
                    "kind": "level",
                    "properties": [
                        {"type": "NameProperty", "name": 2, "value": 3},
                        {"type": "ObjectProperty", "name": [2, 1], "value": -1},
                        {"type": "TextProperty", "name": 2, "value": "hi", "flags": 4},
                    ],
                    "actors": [],
                }
            ]
        },
    )

    graph = JsonPackageCodec().load(path)

    level = graph.get_export(PackageIndex.from_raw(1))
    assert isinstance(level, LevelExport)
    name_prop, object_prop, text_prop = level.properties
    assert isinstance(name_prop, NameProperty)
    assert graph.name(name_prop.value) == "Hello"
    assert isinstance(object_prop, ObjectProperty)
    assert object_prop.name.number == 1
    assert object_prop.value.raw == -1
    assert isinstance(text_prop, UnknownProperty)
    assert text_prop.raw["flags"] == 4


def test_unknown_property_keeps_extra_keys_on_save(tmp_path: Path) -> None:
    path = tmp_path / "Small.uasset"
    _write(path, _minimal_header())
    _write(
        tmp_path / "Small.uexp",
        {"exports": [{"properties": [{"type": "TextProperty", "name": 2, "flags": 4}]}]},
    )
    codec = JsonPackageCodec()

    codec.save(codec.load(path), tmp_path / "Out.uasset")

    payload = json.loads((tmp_path / "Out.uexp").read_text())
    assert payload["exports"][0]["properties"] == [
        {"type": "TextProperty", "name": 2, "flags": 4}
    ]


def test_missing_payload_loads_empty_normal_exports(tmp_path: Path) -> None:
    path = tmp_path / "Small.uasset"
    _write(path, _minimal_header())

    graph = JsonPackageCodec().load(path)

    export = graph.exports[0]
    assert type(export) is NormalExport
    assert export.properties == []


def test_custom_payload_extension(tmp_path: Path, target_graph: AssetGraph) -> None:
    codec = JsonPackageCodec("ubulk")

    codec.save(target_graph, tmp_path / "Arena.uasset")

    assert (tmp_path / "Arena.ubulk").exists()
    assert not (tmp_path / "Arena.uexp").exists()


def test_missing_input(tmp_path: Path) -> None:
    with pytest.raises(InputNotFoundError, match="does not exist"):
        JsonPackageCodec().load(tmp_path / "Nope.uasset")


def test_malformed_json(tmp_path: Path) -> None:
    path = tmp_path / "Bad.uasset"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(CodecParseError):
        JsonPackageCodec().load(path)


def test_wrong_format_tag(tmp_path: Path) -> None:
    path = tmp_path / "Other.uasset"
    _write(path, _minimal_header(format="something-else"))

    with pytest.raises(CodecParseError, match="format"):
        JsonPackageCodec().load(path)


def test_name_index_out_of_range(tmp_path: Path) -> None:
    path = tmp_path / "Bad.uasset"
    _write(path, _minimal_header(exports=[{"object_name": 40}]))

    with pytest.raises(CodecParseError, match="out of range"):
        JsonPackageCodec().load(path)


def test_collided_name_table_round_trips(tmp_path: Path) -> None:
    path = tmp_path / "Collided.uasset"
    _write(path, _minimal_header(names=["None", "PersistentLevel", "None"], imports=[]))
    codec = JsonPackageCodec()

    loaded = codec.load(path)
    codec.save(loaded, path)
    reloaded = codec.load(path)

    assert reloaded.names.entries == ("None", "PersistentLevel", "None")
    assert reloaded.names.find("None") == reloaded.names.ref(0)


def test_payload_count_mismatch(tmp_path: Path) -> None:
    path = tmp_path / "Bad.uasset"
    _write(path, _minimal_header())
    _write(tmp_path / "Bad.uexp", {"exports": []})

    with pytest.raises(CodecParseError, match="export bodies"):
        JsonPackageCodec().load(path)


def test_invalid_property_document(tmp_path: Path) -> None:
    path = tmp_path / "Bad.uasset"
    _write(path, _minimal_header())
    _write(
        tmp_path / "Bad.uexp",
        {"exports": [{"properties": [{"type": "VectorProperty", "name": 2, "value": [1, 2]}]}]},
    )

    with pytest.raises(CodecParseError):
        JsonPackageCodec().load(path)


def test_save_rejects_dangling_reference(tmp_path: Path, target_graph: AssetGraph) -> None:
    wall = target_graph.normal_export(PackageIndex.from_raw(2), "test")
    wall.properties.append(
        ObjectProperty(name=target_graph.intern("Ghost"), value=PackageIndex.from_raw(99))
    )
    path = tmp_path / "Arena.uasset"

    with pytest.raises(CodecWriteError, match="dangling"):
        JsonPackageCodec().save(target_graph, path)

    assert not path.exists()
    assert not (tmp_path / "Arena.uexp").exists()


def test_failed_save_leaves_previous_pair_intact(tmp_path: Path, target_graph: AssetGraph) -> None:
    codec = JsonPackageCodec()
    path = tmp_path / "Arena.uasset"
    codec.save(target_graph, path)
    target_graph.add_export(NormalExport(object_name=target_graph.intern("Extra")))
    (tmp_path / ".Arena.uasset.tmp").mkdir()

    with pytest.raises(CodecWriteError):
        codec.save(target_graph, path)

    reloaded = codec.load(path)
    assert len(reloaded.exports) == 5
    assert not (tmp_path / ".Arena.uexp.tmp").exists()
