"""Asset graph error types.

These errors are raised when an edit cannot be applied or would break the
referential integrity of a package, similar to foreign key violations in a
database. Each error keeps the values that caused it so callers can report
them, and ``hint()`` formats a short operator-facing explanation with
close-match suggestions where a lookup by name failed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches

# Display limit for "available" lists in hints
_MAX_AVAILABLE_DISPLAY = 10


def _suggest(value: str, available: list[str]) -> list[str]:
    return get_close_matches(value, sorted(set(available)), n=3, cutoff=0.6)


def _format_available(value: str, available: list[str], noun: str) -> list[str]:
    lines: list[str] = []
    suggestions = _suggest(value, available)
    if suggestions:
        lines.append("Did you mean: " + ", ".join(f"'{s}'" for s in suggestions) + "?")
    if available:
        shown = sorted(set(available))[:_MAX_AVAILABLE_DISPLAY]
        suffix = ", ..." if len(set(available)) > _MAX_AVAILABLE_DISPLAY else ""
        lines.append(f"Available {noun}: {', '.join(shown)}{suffix}")
    return lines


class AssetEditError(Exception):
    """Base class for every failure raised by assetgraft."""

    #: Whether the run may continue after this error (reported as a warning).
    recoverable = False

    def hint(self) -> str:
        """Format the error for a human operator."""
        return str(self)


@dataclass
class ForeignReferenceError(AssetEditError):
    """Raised when a reference issued by one graph is used with another.

    Names and indices are graph-local. Records copied between graphs must go
    through re-interning and remapping first.

    Attributes:
        kind: What kind of reference ("name" or "index").
        value: The raw reference value.
        owner: Identity of the table that issued the reference.
        expected: Identity of the table it was used with.
    """

    kind: str
    value: int
    owner: int
    expected: int

    def __post_init__(self) -> None:
        super().__init__(
            f"{self.kind.capitalize()} reference {self.value} belongs to table "
            f"{self.owner}, not table {self.expected}"
        )


@dataclass
class ReferenceNotFoundError(AssetEditError):
    """Raised when a package index points outside the list it addresses.

    Attributes:
        index: The signed package index.
        count: Number of entries in the addressed list.
        context: Where the reference occurred.
    """

    index: int
    count: int
    context: str = ""

    def __post_init__(self) -> None:
        space = "export" if self.index > 0 else "import"
        msg = f"Package index {self.index} does not resolve ({self.count} {space}s)"
        if self.context:
            msg += f" ({self.context})"
        super().__init__(msg)


@dataclass
class ImportNotFoundError(AssetEditError):
    """Raised when no import has the requested object name.

    A missing import during rename is reported and the run continues.

    Attributes:
        name: The requested object name.
        available: Object names of all imports.
    """

    name: str
    available: list[str] = field(default_factory=list)

    recoverable = True

    def __post_init__(self) -> None:
        super().__init__(f"Import '{self.name}' not found")

    def hint(self) -> str:
        return "\n".join([str(self), *_format_available(self.name, self.available, "imports")])


@dataclass
class PropertyNotFoundError(AssetEditError):
    """Raised when no compatible property matches a property edit.

    Attributes:
        field_name: The requested property name.
        value_kind: Kind of value being written ("name" or "vector").
        export_index: Signed index of the edited export.
        available: Names of the properties that were searched.
    """

    field_name: str
    value_kind: str
    export_index: int
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(
            f"Export {self.export_index} has no {self.value_kind}-compatible "
            f"property named '{self.field_name}'"
        )

    def hint(self) -> str:
        return "\n".join(
            [str(self), *_format_available(self.field_name, self.available, "properties")]
        )


@dataclass
class StructNotFoundError(AssetEditError):
    """Raised when the struct segment of a property edit does not resolve.

    Attributes:
        struct_name: The requested struct property name.
        export_index: Signed index of the edited export.
        available: Names of the struct properties on the export.
    """

    struct_name: str
    export_index: int
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(
            f"Export {self.export_index} has no struct property named '{self.struct_name}'"
        )

    def hint(self) -> str:
        return "\n".join(
            [str(self), *_format_available(self.struct_name, self.available, "structs")]
        )


@dataclass
class LevelRootNotFoundError(AssetEditError):
    """Raised when a graph has no level root export.

    Attributes:
        level_root_name: The object name the level root must have.
        context: Which graph was searched (e.g. "target", "donor").
    """

    level_root_name: str
    context: str = ""

    def __post_init__(self) -> None:
        msg = f"No level export named '{self.level_root_name}'"
        if self.context:
            msg += f" in {self.context}"
        super().__init__(msg)


@dataclass
class MalformedExpressionError(AssetEditError):
    """Raised when a property edit expression cannot be parsed.

    Attributes:
        expression: The expression as given.
        reason: What is wrong with it.
    """

    expression: str
    reason: str

    def __post_init__(self) -> None:
        super().__init__(f"Malformed edit expression '{self.expression}': {self.reason}")

    def hint(self) -> str:
        return (
            f"{self}\n"
            "Expected <export_index>.<field>[.<nested_field>]=<value>, "
            "e.g. 42.PlayerStartTag=tag or 5.RelativeLocation.RelativeLocation=1,2,3"
        )


@dataclass
class UnsupportedPropertyKindError(AssetEditError):
    """Raised when a transplant meets a property it cannot rewrite.

    Dropping the property would silently lose data, so the run aborts.

    Attributes:
        kind: The property type name.
        property_name: Name of the property.
        context: Where it was found.
    """

    kind: str
    property_name: str
    context: str = ""

    def __post_init__(self) -> None:
        msg = f"Cannot transplant {self.kind} '{self.property_name}'"
        if self.context:
            msg += f" ({self.context})"
        super().__init__(msg)


@dataclass
class UnsupportedExportKindError(AssetEditError):
    """Raised when an operation needs a property list the export lacks.

    Attributes:
        export_index: Signed index of the export.
        kind: The export variant.
        operation: What was attempted.
    """

    export_index: int
    kind: str
    operation: str

    def __post_init__(self) -> None:
        super().__init__(
            f"Export {self.export_index} is a {self.kind} export; cannot {self.operation}"
        )


@dataclass
class RemapConsistencyError(AssetEditError):
    """Raised when transplant remapping breaks an internal invariant.

    Attributes:
        reason: Description of the inconsistency.
    """

    reason: str

    def __post_init__(self) -> None:
        super().__init__(f"Remap consistency error: {self.reason}")


@dataclass
class AmbiguousRootSelectorError(AssetEditError):
    """Raised when an actor selector does not identify any export.

    Attributes:
        selector: The selector as given (a name or a 1-based index).
        reason: Why it did not resolve.
        available: Export names, for suggestions when a name was given.
    """

    selector: str
    reason: str
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(f"Actor selector '{self.selector}' {self.reason}")

    def hint(self) -> str:
        return "\n".join([str(self), *_format_available(self.selector, self.available, "exports")])
