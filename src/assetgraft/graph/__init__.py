"""Graph package - in-memory model of a cooked asset package.

This package provides the asset graph (name table, imports, exports and
property trees), the edit operations applied to a single graph, and the
transplant of actor subgraphs between graphs.
"""

from assetgraft.graph.asset import (
    DEFAULT_LEVEL_ROOT_NAME,
    AssetGraph,
    Export,
    Import,
    LevelExport,
    NormalExport,
    RawExport,
)
from assetgraft.graph.edits import (
    ActorRemoval,
    ImportOuterChange,
    ImportRename,
    PropertyChange,
    PropertyEdit,
    disable_actors,
    disable_import,
    edit_property,
    parse_property_edit,
    parse_rename_argument,
    rename_import,
    rename_self_references,
    resolve_actor_selectors,
)
from assetgraft.graph.errors import (
    AmbiguousRootSelectorError,
    AssetEditError,
    ForeignReferenceError,
    ImportNotFoundError,
    LevelRootNotFoundError,
    MalformedExpressionError,
    PropertyNotFoundError,
    ReferenceNotFoundError,
    RemapConsistencyError,
    StructNotFoundError,
    UnsupportedExportKindError,
    UnsupportedPropertyKindError,
)
from assetgraft.graph.index import NULL_INDEX, IndexKind, PackageIndex
from assetgraft.graph.names import NameChange, NameRef, NameTable
from assetgraft.graph.transplant import (
    TransplantPair,
    TransplantResult,
    transplant_actor,
    transplant_actors,
)

__all__ = [
    "DEFAULT_LEVEL_ROOT_NAME",
    "NULL_INDEX",
    "ActorRemoval",
    "AmbiguousRootSelectorError",
    "AssetEditError",
    "AssetGraph",
    "Export",
    "ForeignReferenceError",
    "Import",
    "ImportNotFoundError",
    "ImportOuterChange",
    "ImportRename",
    "IndexKind",
    "LevelExport",
    "LevelRootNotFoundError",
    "MalformedExpressionError",
    "NameChange",
    "NameRef",
    "NameTable",
    "NormalExport",
    "PackageIndex",
    "PropertyChange",
    "PropertyEdit",
    "PropertyNotFoundError",
    "RawExport",
    "ReferenceNotFoundError",
    "RemapConsistencyError",
    "StructNotFoundError",
    "TransplantPair",
    "TransplantResult",
    "UnsupportedExportKindError",
    "UnsupportedPropertyKindError",
    "disable_actors",
    "disable_import",
    "edit_property",
    "parse_property_edit",
    "parse_rename_argument",
    "rename_import",
    "rename_self_references",
    "resolve_actor_selectors",
    "transplant_actor",
    "transplant_actors",
]
