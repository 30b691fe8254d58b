"""Edit operations on a single asset graph.

Each operation mutates the graph in place and returns a record of what it
changed so callers can report it. Failures raise the matching
``AssetEditError`` subclass; nothing is rolled back, so a failed structural
edit means the graph must be discarded rather than written.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from assetgraft.graph.asset import DEFAULT_LEVEL_ROOT_NAME, AssetGraph, NormalExport
from assetgraft.graph.errors import (
    AmbiguousRootSelectorError,
    ImportNotFoundError,
    MalformedExpressionError,
    PropertyNotFoundError,
    StructNotFoundError,
)
from assetgraft.graph.index import NULL_INDEX, PackageIndex
from assetgraft.graph.properties import (
    VECTOR_KINDS,
    NameProperty,
    Property,
    RotatorProperty,
    StructProperty,
    Vector3,
    VectorProperty,
    type_label,
)
from assetgraft.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from assetgraft.graph.names import NameChange

log = get_logger(__name__)


@dataclass(frozen=True)
class ImportOuterChange:
    """An import detached from its outer by ``disable_import``."""

    index: PackageIndex
    name: str
    old_outer: PackageIndex
    new_outer: PackageIndex


@dataclass(frozen=True)
class ImportRename:
    """An import whose object name was replaced."""

    index: PackageIndex
    old_name: str
    new_name: str


@dataclass(frozen=True)
class ActorRemoval:
    """An actor reference removed from the level root."""

    index: PackageIndex
    name: str


@dataclass(frozen=True)
class PropertyEdit:
    """Parsed form of ``<export>.<field>[.<nested>]=<value>``.

    Attributes:
        expression: The original expression.
        export_index: Edited export.
        struct_name: Struct property to descend into (3-segment form only).
        field_name: Property to overwrite.
        value: A name string or a vector.
    """

    expression: str
    export_index: PackageIndex
    struct_name: str | None
    field_name: str
    value: str | Vector3

    @property
    def value_kind(self) -> str:
        return "vector" if isinstance(self.value, Vector3) else "name"

    @property
    def path(self) -> str:
        if self.struct_name is None:
            return self.field_name
        return f"{self.struct_name}.{self.field_name}"


@dataclass(frozen=True)
class PropertyChange:
    """Result of a property edit."""

    export_index: PackageIndex
    export_name: str
    path: str
    old_value: str
    new_value: str


# -----------------------------------------------------------------------------
# Name table
# -----------------------------------------------------------------------------


def rename_self_references(graph: AssetGraph, old_stem: str, new_stem: str) -> list[NameChange]:
    """Retarget names that embed the package's own identity.

    A package saved under a new file name must refer to itself by the new
    name, so every table entry containing ``old_stem`` gets it replaced by
    ``new_stem``. Indices are unchanged.
    """
    if not old_stem or old_stem == new_stem:
        return []
    changes = graph.names.rename_matching(old_stem, new_stem)
    for change in changes:
        log.info("name_renamed", index=change.index, old=change.old, new=change.new)
    return changes


# -----------------------------------------------------------------------------
# Imports
# -----------------------------------------------------------------------------


def disable_import(graph: AssetGraph, name: str) -> list[ImportOuterChange]:
    """Detach every import named ``name`` from its outer.

    The import's outer index becomes null, so the engine treats it as a
    top-level object. Applying this twice is the same as applying it once.

    Returns:
        One change per matching import (possibly none).
    """
    changes: list[ImportOuterChange] = []
    for index in graph.find_imports(name):
        imp = graph.get_import(index)
        old_outer = imp.outer_index
        imp.outer_index = NULL_INDEX
        changes.append(ImportOuterChange(index, name, old_outer, imp.outer_index))
        log.info("import_disabled", index=index.raw, name=name, old_outer=old_outer.raw)
    if not changes:
        log.debug("import_disable_no_match", name=name)
    return changes


def rename_import(graph: AssetGraph, old_name: str, new_name: str) -> ImportRename:
    """Give the first import named ``old_name`` the object name ``new_name``.

    ``new_name`` is interned even if no import matches.

    Raises:
        ImportNotFoundError: If no import is named ``old_name``.
    """
    new_ref = graph.intern(new_name)
    matches = graph.find_imports(old_name)
    if not matches:
        raise ImportNotFoundError(
            old_name, available=[graph.name(imp.object_name) for imp in graph.imports]
        )
    index = matches[0]
    graph.get_import(index).object_name = new_ref
    log.info("import_renamed", index=index.raw, old=old_name, new=new_name)
    return ImportRename(index, old_name, new_name)


def parse_rename_argument(argument: str) -> tuple[str, str]:
    """Split an ``old>new`` rename argument.

    Raises:
        MalformedExpressionError: If the argument is not exactly two non-empty parts.
    """
    parts = argument.split(">")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise MalformedExpressionError(argument, "rename must have the form old>new")
    return parts[0], parts[1]


# -----------------------------------------------------------------------------
# Actors
# -----------------------------------------------------------------------------


def resolve_actor_selectors(
    graph: AssetGraph,
    *,
    names: Iterable[str] = (),
    indices: Iterable[int | str] = (),
) -> list[PackageIndex]:
    """Resolve actor names and 1-based export indices to export indices.

    A name selects every export with that object name.

    Raises:
        AmbiguousRootSelectorError: If a name matches no export, or an
            index is not a number or is out of range.
    """
    resolved: list[PackageIndex] = []
    for name in names:
        matches = graph.find_exports(name)
        if not matches:
            raise AmbiguousRootSelectorError(
                name,
                "matches no export",
                available=[graph.name(export.object_name) for export in graph.exports],
            )
        resolved.extend(matches)
    for selector in indices:
        try:
            raw = int(selector)
        except ValueError:
            raise AmbiguousRootSelectorError(str(selector), "is not an export index") from None
        if not 1 <= raw <= len(graph.exports):
            raise AmbiguousRootSelectorError(
                str(selector), f"is out of range (1..{len(graph.exports)})"
            )
        resolved.append(PackageIndex.from_raw(raw))
    return resolved


def disable_actors(
    graph: AssetGraph,
    *,
    names: Iterable[str] = (),
    indices: Iterable[int | str] = (),
    level_root_name: str = DEFAULT_LEVEL_ROOT_NAME,
) -> list[ActorRemoval]:
    """Remove selected actors from the level root's actor list.

    The exports themselves stay in the graph; they are only detached from
    the level.

    Raises:
        AmbiguousRootSelectorError: If a selector does not resolve.
        LevelRootNotFoundError: If the graph has no level root.
    """
    selected = set(resolve_actor_selectors(graph, names=names, indices=indices))
    if not selected:
        return []

    level_index = graph.find_level_root(level_root_name, context="target")
    level = graph.level_root(level_root_name, context="target")

    removals: list[ActorRemoval] = []
    kept: list[PackageIndex] = []
    for actor in level.actors:
        if actor in selected:
            removals.append(ActorRemoval(actor, graph.object_name(actor)))
        else:
            kept.append(actor)
    level.actors = kept

    for removal in removals:
        log.info(
            "actor_removed",
            level=level_index.raw,
            index=removal.index.raw,
            name=removal.name,
        )
    missing = selected - {removal.index for removal in removals}
    for index in sorted(missing, key=lambda i: i.raw):
        log.debug("actor_not_in_level", index=index.raw, name=graph.object_name(index))
    return removals


# -----------------------------------------------------------------------------
# Property edits
# -----------------------------------------------------------------------------


def parse_property_edit(expression: str) -> PropertyEdit:
    """Parse a property edit expression.

    Examples:
        ``42.PlayerStartTag=mytag`` writes a name value.
        ``5.RelativeLocation.RelativeLocation=1,2,3`` writes a vector inside
        the ``RelativeLocation`` struct.

    Raises:
        MalformedExpressionError: If either side does not have a valid shape.
    """
    lhs, sep, rhs = expression.partition("=")
    if not sep:
        raise MalformedExpressionError(expression, "missing '='")

    segments = lhs.split(".")
    if len(segments) not in (2, 3):
        raise MalformedExpressionError(
            expression, f"left side must have 2 or 3 dot-separated fields, got {len(segments)}"
        )
    if any(not segment for segment in segments):
        raise MalformedExpressionError(expression, "empty field on the left side")
    try:
        raw_index = int(segments[0])
    except ValueError:
        raise MalformedExpressionError(
            expression, f"first field must be an export index, got '{segments[0]}'"
        ) from None
    if raw_index < 1:
        raise MalformedExpressionError(expression, f"export index must be >= 1, got {raw_index}")

    tokens = rhs.split(",")
    value: str | Vector3
    if len(tokens) == 1:
        if not tokens[0]:
            raise MalformedExpressionError(expression, "empty value")
        value = tokens[0]
    elif len(tokens) == 3:
        try:
            x, y, z = (float(token) for token in tokens)
        except ValueError:
            raise MalformedExpressionError(
                expression, "vector components must be numbers"
            ) from None
        value = Vector3(x, y, z)
    else:
        raise MalformedExpressionError(
            expression, f"right side must have 1 or 3 comma-separated values, got {len(tokens)}"
        )

    if len(segments) == 3:
        struct_name: str | None = segments[1]
        field_name = segments[2]
    else:
        struct_name = None
        field_name = segments[1]

    return PropertyEdit(
        expression=expression,
        export_index=PackageIndex.from_raw(raw_index),
        struct_name=struct_name,
        field_name=field_name,
        value=value,
    )


def edit_property(graph: AssetGraph, edit: str | PropertyEdit) -> PropertyChange:
    """Overwrite one name or vector property of an export.

    The first property whose name matches and whose kind accepts the value
    is changed: name values go to Name properties, vectors to Vector or
    Rotator properties. All other properties are left alone.

    Raises:
        MalformedExpressionError: If the expression cannot be parsed.
        ReferenceNotFoundError: If the export index is out of range.
        UnsupportedExportKindError: If the export has no property list.
        StructNotFoundError: If the struct segment does not resolve.
        PropertyNotFoundError: If no compatible property matches.
    """
    if isinstance(edit, str):
        edit = parse_property_edit(edit)

    export = graph.normal_export(edit.export_index, "edit properties")
    properties = _select_property_list(graph, export, edit)

    target = _find_compatible(graph, properties, edit)
    if target is None:
        raise PropertyNotFoundError(
            edit.field_name,
            edit.value_kind,
            edit.export_index.raw,
            available=[graph.name(prop.name) for prop in properties],
        )

    if isinstance(target, NameProperty):
        old_value = graph.name(target.value)
        target.value = graph.intern(str(edit.value))
        new_value = graph.name(target.value)
    else:
        vector = cast(VectorProperty | RotatorProperty, target)
        old_value = str(vector.value)
        value = cast(Vector3, edit.value)
        vector.value = Vector3(value.x, value.y, value.z)
        new_value = str(vector.value)

    change = PropertyChange(
        export_index=edit.export_index,
        export_name=graph.name(export.object_name),
        path=edit.path,
        old_value=old_value,
        new_value=new_value,
    )
    log.info(
        "property_edited",
        export=change.export_index.raw,
        name=change.export_name,
        path=change.path,
        old=old_value,
        new=new_value,
        kind=type_label(target),
    )
    return change


def _select_property_list(
    graph: AssetGraph, export: NormalExport, edit: PropertyEdit
) -> list[Property]:
    if edit.struct_name is None:
        return export.properties
    structs = [prop for prop in export.properties if isinstance(prop, StructProperty)]
    for struct in structs:
        if graph.name(struct.name) == edit.struct_name:
            return struct.value
    raise StructNotFoundError(
        edit.struct_name,
        edit.export_index.raw,
        available=[graph.name(struct.name) for struct in structs],
    )


def _find_compatible(
    graph: AssetGraph, properties: list[Property], edit: PropertyEdit
) -> Property | None:
    accepted: tuple[type[Property], ...]
    accepted = VECTOR_KINDS if isinstance(edit.value, Vector3) else (NameProperty,)
    for prop in properties:
        if not isinstance(prop, accepted):
            continue
        if graph.name(prop.name) != edit.field_name:
            continue
        return prop
    return None
