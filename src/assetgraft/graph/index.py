"""Package indices: references to exports, imports, or nothing.

On disk a reference is a signed integer: ``0`` is null, ``n > 0`` is export
``n - 1`` and ``n < 0`` is import ``-n - 1``. Inside the editor it is a
tagged value with a 0-based position so the two index spaces can never be
confused. Conversion happens only at the codec and CLI boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IndexKind(Enum):
    """Which list a package index addresses."""

    NULL = "null"
    EXPORT = "export"
    IMPORT = "import"


@dataclass(frozen=True)
class PackageIndex:
    """A reference into a graph's export list, import list, or nowhere.

    Attributes:
        kind: The addressed list.
        position: 0-based position within that list (always 0 for null).
    """

    kind: IndexKind
    position: int = 0

    def __post_init__(self) -> None:
        if self.position < 0:
            raise ValueError(f"Package index position must be >= 0, got {self.position}")
        if self.kind is IndexKind.NULL and self.position != 0:
            raise ValueError("Null package index cannot carry a position")

    @classmethod
    def null(cls) -> PackageIndex:
        return NULL_INDEX

    @classmethod
    def export(cls, position: int) -> PackageIndex:
        """Reference the export at 0-based ``position``."""
        return cls(IndexKind.EXPORT, position)

    @classmethod
    def import_(cls, position: int) -> PackageIndex:
        """Reference the import at 0-based ``position``."""
        return cls(IndexKind.IMPORT, position)

    @classmethod
    def from_raw(cls, raw: int) -> PackageIndex:
        """Decode the signed on-disk representation."""
        if raw == 0:
            return NULL_INDEX
        if raw > 0:
            return cls(IndexKind.EXPORT, raw - 1)
        return cls(IndexKind.IMPORT, -raw - 1)

    @property
    def raw(self) -> int:
        """Encode to the signed on-disk representation."""
        if self.kind is IndexKind.EXPORT:
            return self.position + 1
        if self.kind is IndexKind.IMPORT:
            return -(self.position + 1)
        return 0

    @property
    def is_null(self) -> bool:
        return self.kind is IndexKind.NULL

    @property
    def is_export(self) -> bool:
        return self.kind is IndexKind.EXPORT

    @property
    def is_import(self) -> bool:
        return self.kind is IndexKind.IMPORT

    def __str__(self) -> str:
        return str(self.raw)


NULL_INDEX = PackageIndex(IndexKind.NULL)
