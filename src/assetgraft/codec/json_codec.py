"""JSON package codec.

Reads and writes the documented JSON rendering of a package: a header
document at the container path and a payload document next to it. See
``assetgraft.codec.documents`` for the schema.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar, cast

from pydantic import BaseModel, ValidationError

from assetgraft.codec.base import (
    DEFAULT_PAYLOAD_EXTENSION,
    CodecParseError,
    CodecWriteError,
    InputNotFoundError,
    payload_path,
)
from assetgraft.codec.documents import (
    PROPERTY_DOCUMENTS,
    ArrayPropertyDocument,
    EnumPropertyDocument,
    ExportBodyDocument,
    ExportHeaderDocument,
    HeaderDocument,
    ImportDocument,
    MulticastDelegatePropertyDocument,
    NameDocument,
    NamePropertyDocument,
    ObjectPropertyDocument,
    OpaquePropertyDocument,
    PayloadDocument,
    StructPropertyDocument,
    VectorPropertyDocument,
)
from assetgraft.graph.asset import (
    AssetGraph,
    Export,
    Import,
    LevelExport,
    NormalExport,
    RawExport,
)
from assetgraft.graph.index import PackageIndex
from assetgraft.graph.names import NameTable
from assetgraft.graph.properties import (
    VECTOR_KINDS,
    ArrayProperty,
    BoolProperty,
    ByteProperty,
    DelegateBinding,
    EnumProperty,
    FloatProperty,
    IntProperty,
    MulticastDelegateProperty,
    NameProperty,
    ObjectProperty,
    Property,
    RotatorProperty,
    StructProperty,
    UnknownProperty,
    Vector3,
    VectorProperty,
)
from assetgraft.observability.logging import get_logger

if TYPE_CHECKING:
    from assetgraft.graph.names import NameRef

log = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

_PROPERTY_CLASSES: dict[str, type[Property]] = {
    cls.type_name: cls
    for cls in (
        NameProperty,
        ObjectProperty,
        StructProperty,
        ArrayProperty,
        VectorProperty,
        RotatorProperty,
        ByteProperty,
        FloatProperty,
        IntProperty,
        BoolProperty,
        EnumProperty,
        MulticastDelegateProperty,
    )
}


class JsonPackageCodec:
    """Codec for the JSON package rendering.

    Attributes:
        payload_extension: Extension of the sibling payload file.
        indent: Indentation used when writing documents.
    """

    def __init__(
        self, payload_extension: str = DEFAULT_PAYLOAD_EXTENSION, *, indent: int = 2
    ) -> None:
        self.payload_extension = payload_extension
        self.indent = indent

    def payload_path(self, path: Path) -> Path:
        return payload_path(path, self.payload_extension)

    def load(self, path: Path) -> AssetGraph:
        """Load a package.

        A missing payload file is not an error: every export then loads as
        an empty Normal export.

        Raises:
            InputNotFoundError: If the container cannot be read.
            CodecParseError: If either document is malformed.
        """
        path = Path(path)
        header = _read_document(path, HeaderDocument)
        body_path = self.payload_path(path)
        payload = _read_document(body_path, PayloadDocument) if body_path.exists() else None

        if payload is not None and len(payload.exports) != len(header.exports):
            raise CodecParseError(
                body_path,
                f"payload has {len(payload.exports)} export bodies, "
                f"header declares {len(header.exports)} exports",
            )

        try:
            graph = _Decoder(header).decode(payload)
        except ValidationError as e:
            raise CodecParseError(body_path, _summarize(e)) from e
        except (IndexError, ValueError) as e:
            raise CodecParseError(path, str(e)) from e

        log.debug(
            "package_loaded",
            path=str(path),
            names=len(graph.names),
            imports=len(graph.imports),
            exports=len(graph.exports),
            payload=payload is not None,
        )
        return graph

    def save(self, graph: AssetGraph, path: Path) -> None:
        """Write a package.

        Raises:
            CodecWriteError: If the graph fails validation or a file cannot be
                written. Nothing is written when validation fails.
        """
        path = Path(path)
        violations = graph.validate()
        if violations:
            raise CodecWriteError(
                path,
                f"graph has {len(violations)} integrity violation(s), first: {violations[0]}",
            )

        header, payload = _Encoder(graph).encode()
        body_path = self.payload_path(path)
        _write_documents([(body_path, payload), (path, header)], self.indent)
        log.debug("package_saved", path=str(path), payload=str(body_path))


# -----------------------------------------------------------------------------
# Document IO
# -----------------------------------------------------------------------------


def _read_document(path: Path, model: type[M]) -> M:
    if not path.exists():
        raise InputNotFoundError(path, "file does not exist")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputNotFoundError(path, str(e)) from e
    try:
        return model.model_validate_json(text)
    except ValidationError as e:
        raise CodecParseError(path, _summarize(e)) from e


def _write_documents(documents: list[tuple[Path, BaseModel]], indent: int) -> None:
    """Stage every document in a temp file, then move them into place in order.

    Nothing is replaced unless every temp file was written.
    """
    staged: list[tuple[Path, Path]] = []
    for path, document in documents:
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(document.model_dump_json(indent=indent) + "\n", encoding="utf-8")
        except OSError as e:
            for written, _ in staged:
                written.unlink(missing_ok=True)
            raise CodecWriteError(path, str(e)) from e
        staged.append((tmp, path))

    for tmp, path in staged:
        try:
            os.replace(tmp, path)
        except OSError as e:
            for leftover, _ in staged:
                leftover.unlink(missing_ok=True)
            raise CodecWriteError(path, str(e)) from e


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<document>"
    more = f" (+{error.error_count() - 1} more)" if error.error_count() > 1 else ""
    return f"{location}: {first['msg']}{more}"


# -----------------------------------------------------------------------------
# Decoding
# -----------------------------------------------------------------------------


class _Decoder:
    def __init__(self, header: HeaderDocument) -> None:
        self.header = header
        self.names = NameTable(header.names)

    def decode(self, payload: PayloadDocument | None) -> AssetGraph:
        imports = [self.import_(doc) for doc in self.header.imports]
        if payload is None:
            exports = [self.export(doc, None) for doc in self.header.exports]
        else:
            exports = [
                self.export(doc, body)
                for doc, body in zip(self.header.exports, payload.exports, strict=True)
            ]
        return AssetGraph(
            self.names, imports, exports, engine_version=self.header.engine_version
        )

    def name(self, doc: NameDocument) -> NameRef:
        if isinstance(doc, tuple):
            return self.names.ref(doc[0], doc[1])
        return self.names.ref(doc)

    def optional_name(self, doc: NameDocument | None) -> NameRef | None:
        return None if doc is None else self.name(doc)

    def import_(self, doc: ImportDocument) -> Import:
        return Import(
            class_package=self.name(doc.class_package),
            class_name=self.name(doc.class_name),
            object_name=self.name(doc.object_name),
            outer_index=PackageIndex.from_raw(doc.outer_index),
        )

    def export(self, doc: ExportHeaderDocument, body: ExportBodyDocument | None) -> Export:
        base: dict[str, Any] = {
            "object_name": self.name(doc.object_name),
            "class_index": PackageIndex.from_raw(doc.class_index),
            "super_index": PackageIndex.from_raw(doc.super_index),
            "template_index": PackageIndex.from_raw(doc.template_index),
            "outer_index": PackageIndex.from_raw(doc.outer_index),
            "create_before_serialization": _indices(doc.create_before_serialization),
            "serialization_before_create": _indices(doc.serialization_before_create),
            "create_before_create": _indices(doc.create_before_create),
        }
        if body is None:
            return NormalExport(**base)
        if body.kind == "raw":
            return RawExport(data=body.data, **base)
        properties = [self.property(raw) for raw in body.properties]
        if body.kind == "level":
            return LevelExport(properties=properties, actors=_indices(body.actors), **base)
        return NormalExport(properties=properties, **base)

    def property(self, raw: dict[str, Any]) -> Property:
        head = OpaquePropertyDocument.model_validate(raw)
        name = self.name(head.name)
        model = PROPERTY_DOCUMENTS.get(head.type)
        if model is None:
            return UnknownProperty(name=name, kind=head.type, raw=dict(raw))

        doc = model.model_validate(raw)
        cls = _PROPERTY_CLASSES[head.type]
        if isinstance(doc, NamePropertyDocument):
            return NameProperty(name=name, value=self.name(doc.value))
        if isinstance(doc, ObjectPropertyDocument):
            return ObjectProperty(name=name, value=PackageIndex.from_raw(doc.value))
        if isinstance(doc, StructPropertyDocument):
            return StructProperty(
                name=name,
                struct_type=self.optional_name(doc.struct_type),
                value=[self.property(child) for child in doc.value],
            )
        if isinstance(doc, ArrayPropertyDocument):
            return ArrayProperty(
                name=name,
                array_type=self.optional_name(doc.array_type),
                value=[self.property(child) for child in doc.value],
            )
        if isinstance(doc, VectorPropertyDocument):
            return cls(name=name, value=Vector3(*doc.value))  # type: ignore[call-arg]
        if isinstance(doc, EnumPropertyDocument):
            return EnumProperty(
                name=name,
                value=self.optional_name(doc.value),
                enum_type=self.optional_name(doc.enum_type),
            )
        if isinstance(doc, MulticastDelegatePropertyDocument):
            return MulticastDelegateProperty(
                name=name,
                value=[
                    DelegateBinding(PackageIndex.from_raw(b.target), self.name(b.function))
                    for b in doc.value
                ],
            )
        # Byte, Float, Int and Bool carry a plain scalar.
        return cls(name=name, value=doc.value)  # type: ignore[call-arg, attr-defined]


def _indices(raws: list[int]) -> list[PackageIndex]:
    return [PackageIndex.from_raw(raw) for raw in raws]


# -----------------------------------------------------------------------------
# Encoding
# -----------------------------------------------------------------------------


class _Encoder:
    def __init__(self, graph: AssetGraph) -> None:
        self.graph = graph

    def encode(self) -> tuple[HeaderDocument, PayloadDocument]:
        header = HeaderDocument(
            engine_version=self.graph.engine_version,
            names=list(self.graph.names),
            imports=[self.import_(imp) for imp in self.graph.imports],
            exports=[self.export_header(export) for export in self.graph.exports],
        )
        payload = PayloadDocument(
            exports=[self.export_body(export) for export in self.graph.exports]
        )
        return header, payload

    def name(self, ref: NameRef) -> NameDocument:
        if ref.number == 0:
            return ref.index
        return (ref.index, ref.number)

    def optional_name(self, ref: NameRef | None) -> NameDocument | None:
        return None if ref is None else self.name(ref)

    def import_(self, imp: Import) -> ImportDocument:
        return ImportDocument(
            class_package=self.name(imp.class_package),
            class_name=self.name(imp.class_name),
            object_name=self.name(imp.object_name),
            outer_index=imp.outer_index.raw,
        )

    def export_header(self, export: Export) -> ExportHeaderDocument:
        return ExportHeaderDocument(
            object_name=self.name(export.object_name),
            **{key: index.raw for key, index in export.base_indices().items()},
            **{
                key: [dep.raw for dep in deps]
                for key, deps in export.dependency_lists().items()
            },
        )

    def export_body(self, export: Export) -> ExportBodyDocument:
        if isinstance(export, LevelExport):
            return ExportBodyDocument(
                kind="level",
                properties=[self.property(prop) for prop in export.properties],
                actors=[actor.raw for actor in export.actors],
            )
        if isinstance(export, NormalExport):
            return ExportBodyDocument(
                kind="normal", properties=[self.property(prop) for prop in export.properties]
            )
        return ExportBodyDocument(kind="raw", data=cast(RawExport, export).data)

    def property(self, prop: Property) -> dict[str, Any]:
        if isinstance(prop, UnknownProperty):
            return {**prop.raw, "type": prop.kind, "name": self.name(prop.name)}

        doc: dict[str, Any] = {"type": prop.type_name, "name": self.name(prop.name)}
        if isinstance(prop, NameProperty):
            doc["value"] = self.name(prop.value)
        elif isinstance(prop, ObjectProperty):
            doc["value"] = prop.value.raw
        elif isinstance(prop, StructProperty):
            if prop.struct_type is not None:
                doc["struct_type"] = self.name(prop.struct_type)
            doc["value"] = [self.property(child) for child in prop.value]
        elif isinstance(prop, ArrayProperty):
            if prop.array_type is not None:
                doc["array_type"] = self.name(prop.array_type)
            doc["value"] = [self.property(child) for child in prop.value]
        elif isinstance(prop, VECTOR_KINDS):
            doc["value"] = [prop.value.x, prop.value.y, prop.value.z]
        elif isinstance(prop, EnumProperty):
            doc["value"] = self.optional_name(prop.value)
            doc["enum_type"] = self.optional_name(prop.enum_type)
        elif isinstance(prop, MulticastDelegateProperty):
            doc["value"] = [
                {"target": b.target.raw, "function": self.name(b.function)} for b in prop.value
            ]
        else:
            doc["value"] = prop.value  # type: ignore[attr-defined]
        return doc
