"""Pydantic schema of the JSON package documents.

A package is two documents: the header (name table, imports, export base
records) at the container path, and the payload (export bodies) at the
sibling payload path. Names are written as a name-table index, or as
``[index, number]`` when the instance number is non-zero. Package indices
are written as signed integers: ``0`` null, ``> 0`` export, ``< 0`` import.

Property documents are tagged by ``"type"``. Types listed in
``PROPERTY_DOCUMENTS`` are validated against their model; any other type is
kept as an opaque dictionary.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

PACKAGE_FORMAT = "assetgraft-package"
PACKAGE_FORMAT_VERSION = 1

NameDocument = int | tuple[int, int]


class _Document(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ImportDocument(_Document):
    """One import record."""

    class_package: NameDocument
    class_name: NameDocument
    object_name: NameDocument
    outer_index: int = 0


class ExportHeaderDocument(_Document):
    """Base record and dependency lists of one export."""

    object_name: NameDocument
    class_index: int = 0
    super_index: int = 0
    template_index: int = 0
    outer_index: int = 0
    create_before_serialization: list[int] = Field(default_factory=list)
    serialization_before_create: list[int] = Field(default_factory=list)
    create_before_create: list[int] = Field(default_factory=list)


class HeaderDocument(_Document):
    """Container document: everything except export bodies."""

    format: Literal["assetgraft-package"] = PACKAGE_FORMAT
    version: Literal[1] = PACKAGE_FORMAT_VERSION
    engine_version: str = ""
    names: list[str] = Field(default_factory=list)
    imports: list[ImportDocument] = Field(default_factory=list)
    exports: list[ExportHeaderDocument] = Field(default_factory=list)


class ExportBodyDocument(_Document):
    """Body of one export, in the same position as its header record."""

    kind: Literal["normal", "level", "raw"] = "normal"
    properties: list[dict[str, Any]] = Field(default_factory=list)
    actors: list[int] = Field(default_factory=list)
    data: Any = None


class PayloadDocument(_Document):
    """Payload document: export bodies in export order."""

    exports: list[ExportBodyDocument] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Property documents
# -----------------------------------------------------------------------------


class PropertyDocument(_Document):
    type: str
    name: NameDocument


class NamePropertyDocument(PropertyDocument):
    value: NameDocument


class ObjectPropertyDocument(PropertyDocument):
    value: int = 0


class StructPropertyDocument(PropertyDocument):
    struct_type: NameDocument | None = None
    value: list[dict[str, Any]] = Field(default_factory=list)


class ArrayPropertyDocument(PropertyDocument):
    array_type: NameDocument | None = None
    value: list[dict[str, Any]] = Field(default_factory=list)


class VectorPropertyDocument(PropertyDocument):
    value: tuple[float, float, float] = (0.0, 0.0, 0.0)


class BytePropertyDocument(PropertyDocument):
    value: int = 0


class FloatPropertyDocument(PropertyDocument):
    value: float = 0.0


class IntPropertyDocument(PropertyDocument):
    value: int = 0


class BoolPropertyDocument(PropertyDocument):
    value: bool = False


class EnumPropertyDocument(PropertyDocument):
    value: NameDocument | None = None
    enum_type: NameDocument | None = None


class DelegateDocument(_Document):
    target: int
    function: NameDocument


class MulticastDelegatePropertyDocument(PropertyDocument):
    value: list[DelegateDocument] = Field(default_factory=list)


PROPERTY_DOCUMENTS: dict[str, type[PropertyDocument]] = {
    "NameProperty": NamePropertyDocument,
    "ObjectProperty": ObjectPropertyDocument,
    "StructProperty": StructPropertyDocument,
    "ArrayProperty": ArrayPropertyDocument,
    "VectorProperty": VectorPropertyDocument,
    "RotatorProperty": VectorPropertyDocument,
    "ByteProperty": BytePropertyDocument,
    "FloatProperty": FloatPropertyDocument,
    "IntProperty": IntPropertyDocument,
    "BoolProperty": BoolPropertyDocument,
    "EnumProperty": EnumPropertyDocument,
    "MulticastDelegateProperty": MulticastDelegatePropertyDocument,
}


class OpaquePropertyDocument(BaseModel):
    """Head of any property document; extra keys are kept."""

    model_config = ConfigDict(extra="allow")

    type: str
    name: NameDocument
