"""Property tree model and traversal.

An export's field data is an ordered list of tagged properties. Struct and
Array properties nest further property lists; every other kind is a leaf.
Name-valued and object-valued leaves are where the graph's references live.

All traversals (dumping, transplant rewriting, reference validation) go
through ``walk_properties`` / ``iter_properties`` with per-kind handlers
instead of each re-implementing the recursion.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from assetgraft.graph.index import NULL_INDEX, PackageIndex

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from assetgraft.graph.names import NameRef


@dataclass
class Vector3:
    """Three float components, used by vectors and rotators."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __str__(self) -> str:
        return f"{self.x:g},{self.y:g},{self.z:g}"


@dataclass(kw_only=True)
class Property:
    """Base for all property kinds.

    Attributes:
        name: Property name in the owning graph's name table.
    """

    type_name: ClassVar[str] = "Property"

    name: NameRef


@dataclass(kw_only=True)
class NameProperty(Property):
    type_name: ClassVar[str] = "NameProperty"

    value: NameRef


@dataclass(kw_only=True)
class ObjectProperty(Property):
    type_name: ClassVar[str] = "ObjectProperty"

    value: PackageIndex = NULL_INDEX


@dataclass(kw_only=True)
class StructProperty(Property):
    """Nested property list with an optional struct type name."""

    type_name: ClassVar[str] = "StructProperty"

    value: list[Property] = field(default_factory=list)
    struct_type: NameRef | None = None


@dataclass(kw_only=True)
class ArrayProperty(Property):
    """Ordered elements, each itself a property."""

    type_name: ClassVar[str] = "ArrayProperty"

    value: list[Property] = field(default_factory=list)
    array_type: NameRef | None = None


@dataclass(kw_only=True)
class VectorProperty(Property):
    type_name: ClassVar[str] = "VectorProperty"

    value: Vector3 = field(default_factory=Vector3)


@dataclass(kw_only=True)
class RotatorProperty(Property):
    type_name: ClassVar[str] = "RotatorProperty"

    value: Vector3 = field(default_factory=Vector3)


@dataclass(kw_only=True)
class ByteProperty(Property):
    type_name: ClassVar[str] = "ByteProperty"

    value: int = 0


@dataclass(kw_only=True)
class FloatProperty(Property):
    type_name: ClassVar[str] = "FloatProperty"

    value: float = 0.0


@dataclass(kw_only=True)
class IntProperty(Property):
    type_name: ClassVar[str] = "IntProperty"

    value: int = 0


@dataclass(kw_only=True)
class BoolProperty(Property):
    type_name: ClassVar[str] = "BoolProperty"

    value: bool = False


@dataclass(kw_only=True)
class EnumProperty(Property):
    """Enum value stored by name, both optional."""

    type_name: ClassVar[str] = "EnumProperty"

    value: NameRef | None = None
    enum_type: NameRef | None = None


@dataclass
class DelegateBinding:
    """One bound delegate: the target object and the function name."""

    target: PackageIndex
    function: NameRef


@dataclass(kw_only=True)
class MulticastDelegateProperty(Property):
    type_name: ClassVar[str] = "MulticastDelegateProperty"

    value: list[DelegateBinding] = field(default_factory=list)


@dataclass(kw_only=True)
class UnknownProperty(Property):
    """A property kind the editor does not model.

    The codec keeps the original document so the property round-trips, but
    its contents cannot be rewritten, so it cannot be transplanted.
    """

    kind: str
    raw: dict[str, Any] = field(default_factory=dict)


VECTOR_KINDS: tuple[type[Property], ...] = (VectorProperty, RotatorProperty)

PropertyHandler = Callable[[Property], None]


def children(prop: Property) -> list[Property]:
    """Return the nested property list of a container, or ``[]`` for leaves."""
    if isinstance(prop, (StructProperty, ArrayProperty)):
        return prop.value
    return []


def type_label(prop: Property) -> str:
    """Type name for display, including unmodelled kinds."""
    if isinstance(prop, UnknownProperty):
        return prop.kind
    return prop.type_name


def walk_properties(
    properties: list[Property],
    handlers: Mapping[type[Property], PropertyHandler],
    *,
    fallback: PropertyHandler | None = None,
) -> None:
    """Visit every property, recursing into structs and arrays.

    Properties are visited pre-order: a container's handler runs before its
    children. The handler is chosen by the most specific class in the
    property's MRO that appears in ``handlers``; when none matches,
    ``fallback`` runs instead (if given).

    Args:
        properties: Top-level property list.
        handlers: Per-kind callbacks.
        fallback: Callback for kinds without a handler.
    """
    for prop in properties:
        handler = _handler_for(prop, handlers)
        if handler is not None:
            handler(prop)
        elif fallback is not None:
            fallback(prop)
        walk_properties(children(prop), handlers, fallback=fallback)


def _handler_for(
    prop: Property, handlers: Mapping[type[Property], PropertyHandler]
) -> PropertyHandler | None:
    for cls in type(prop).__mro__:
        handler = handlers.get(cls)
        if handler is not None:
            return handler
    return None


def iter_properties(
    properties: list[Property], depth: int = 0
) -> Iterator[tuple[int, Property]]:
    """Yield ``(depth, property)`` pairs in pre-order."""
    for prop in properties:
        yield depth, prop
        yield from iter_properties(children(prop), depth + 1)
