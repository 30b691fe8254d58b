"""Asset codec protocol and codec errors.

A codec turns a package on disk into an ``AssetGraph`` and back. The editor
never looks at bytes itself: everything it knows about a package comes
through ``AssetCodec.load`` and everything it writes goes through
``AssetCodec.save``.

A package is a container file plus an optional payload file that shares
its base name and uses a sibling extension (``Map.uasset`` + ``Map.uexp``).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from assetgraft.graph.errors import AssetEditError

if TYPE_CHECKING:
    from assetgraft.graph.asset import AssetGraph

DEFAULT_PAYLOAD_EXTENSION = "uexp"


@runtime_checkable
class AssetCodec(Protocol):
    """Storage codec protocol for asset graphs.

    ``save`` must refuse graphs whose ``validate()`` reports violations, so
    a dangling reference is never written to disk.
    """

    def load(self, path: Path) -> AssetGraph:
        """Read the container at ``path`` (and its payload file, if present)."""
        ...

    def save(self, graph: AssetGraph, path: Path) -> None:
        """Write ``graph`` to ``path`` and its sibling payload file."""
        ...


def payload_path(path: Path, extension: str = DEFAULT_PAYLOAD_EXTENSION) -> Path:
    """Return the payload file that belongs to the container at ``path``."""
    return Path(path).with_suffix(f".{extension.lstrip('.')}")


@dataclass
class CodecError(AssetEditError):
    """Base class for failures reading or writing a package.

    Attributes:
        path: The file involved.
        reason: What went wrong.
    """

    path: Path
    reason: str

    def __post_init__(self) -> None:
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return f"{self.path}: {self.reason}"


@dataclass
class InputNotFoundError(CodecError):
    """Raised when an input package does not exist or cannot be read."""

    def _format_message(self) -> str:
        return f"Cannot read {self.path}: {self.reason}"


@dataclass
class CodecParseError(CodecError):
    """Raised when a package is malformed or in an unsupported format."""

    def _format_message(self) -> str:
        return f"Cannot parse {self.path}: {self.reason}"


@dataclass
class CodecWriteError(CodecError):
    """Raised when a graph cannot be written (including invalid graphs)."""

    def _format_message(self) -> str:
        return f"Cannot write {self.path}: {self.reason}"
