"""Package inspection: listings and summary statistics.

Pure graph reads; nothing here mutates a graph.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from assetgraft.graph.asset import DEFAULT_LEVEL_ROOT_NAME, NormalExport, RawExport
from assetgraft.graph.errors import LevelRootNotFoundError
from assetgraft.graph.properties import (
    VECTOR_KINDS,
    ArrayProperty,
    EnumProperty,
    MulticastDelegateProperty,
    NameProperty,
    ObjectProperty,
    Property,
    StructProperty,
    UnknownProperty,
    iter_properties,
    type_label,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from assetgraft.graph.asset import AssetGraph


@dataclass
class PackageSummary:
    """High-level package statistics."""

    engine_version: str
    names: int
    imports: int
    exports: int
    level_root: int | None = None
    actors: int = 0
    raw_exports: int = 0
    property_kinds: dict[str, int] = field(default_factory=dict)
    violations: list[str] = field(default_factory=list)


def dump_lines(graph: AssetGraph) -> Iterator[str]:
    """Yield a listing of every import and export with its properties.

    Imports are listed as ``-1: Name``, exports as ``1: Name``. Properties
    follow their export, indented two spaces per nesting level.
    """
    for i, imp in enumerate(graph.imports):
        yield f"{-(i + 1)}: {graph.name(imp.object_name)}"
    for i, export in enumerate(graph.exports):
        yield f"{i + 1}: {graph.name(export.object_name)}"
        if not isinstance(export, NormalExport):
            continue
        for depth, prop in iter_properties(export.properties, depth=1):
            yield "  " * depth + describe_property(graph, prop)


def describe_property(graph: AssetGraph, prop: Property) -> str:
    """One-line description of a property (children not included)."""
    label = f"({_short_label(prop)}) {graph.name(prop.name)}"
    if isinstance(prop, NameProperty):
        return f'{label} "{graph.name(prop.value)}"'
    if isinstance(prop, ObjectProperty):
        return f"{label} -> {prop.value.raw}"
    if isinstance(prop, VECTOR_KINDS):
        v = prop.value  # type: ignore[attr-defined]
        return f"{label} {{ {v.x:.2f}, {v.y:.2f}, {v.z:.2f} }}"
    if isinstance(prop, StructProperty):
        if prop.struct_type is None:
            return label
        return f"{label}: {graph.name(prop.struct_type)}"
    if isinstance(prop, ArrayProperty):
        return f"{label} [{len(prop.value)}]"
    if isinstance(prop, EnumProperty):
        value = graph.name(prop.value) if prop.value is not None else "None"
        if "::" not in value and prop.enum_type is not None:
            value = f"{graph.name(prop.enum_type)}::{value}"
        return f"{label} {value}"
    if isinstance(prop, MulticastDelegateProperty):
        bindings = ", ".join(
            f"{binding.target.raw}.{graph.name(binding.function)}" for binding in prop.value
        )
        return f"{label} [{bindings}]"
    if isinstance(prop, UnknownProperty):
        return label
    return f"{label} = {prop.value}"  # type: ignore[attr-defined]


def _short_label(prop: Property) -> str:
    return type_label(prop).removesuffix("Property")


def summarize(graph: AssetGraph, level_root_name: str = DEFAULT_LEVEL_ROOT_NAME) -> PackageSummary:
    """Collect summary statistics for a graph."""
    summary = PackageSummary(
        engine_version=graph.engine_version,
        names=len(graph.names),
        imports=len(graph.imports),
        exports=len(graph.exports),
    )
    try:
        level_index = graph.find_level_root(level_root_name)
    except LevelRootNotFoundError:
        pass
    else:
        summary.level_root = level_index.raw
        summary.actors = len(graph.level_root(level_root_name).actors)

    kinds: Counter[str] = Counter()
    for export in graph.exports:
        if isinstance(export, RawExport):
            summary.raw_exports += 1
        elif isinstance(export, NormalExport):
            kinds.update(type_label(prop) for _, prop in iter_properties(export.properties))
    summary.property_kinds = dict(sorted(kinds.items()))
    summary.violations = graph.validate()
    return summary
