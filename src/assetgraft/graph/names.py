"""Deduplicated name table.

Every textual identifier in an asset graph is a ``NameRef``: an index into
the graph's name table plus an instance number. Each table carries an
identity token and stamps it on the refs it issues, so a ref is only
usable with the table that created it. Moving a name to another graph
means looking up its string and interning it again on the other side.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import TYPE_CHECKING

from assetgraft.graph.errors import ForeignReferenceError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

_table_ids = itertools.count(1)


@dataclass(frozen=True)
class NameRef:
    """Reference to an entry of a specific name table.

    Attributes:
        index: Position in the owning table.
        number: Instance number (``Name_3`` style suffix), carried through untouched.
        table_id: Identity of the owning table.
    """

    index: int
    number: int = 0
    table_id: int = 0


@dataclass(frozen=True)
class NameChange:
    """One in-place rewrite performed by ``NameTable.rename_matching``."""

    index: int
    old: str
    new: str


class NameTable:
    """Ordered pool of strings. Only ever grows.

    Interning never adds a duplicate, but ``rename_matching`` can make two
    entries read the same. Such a table still loads and round-trips; lookups
    by string resolve to the earliest position holding it.
    """

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self.table_id = next(_table_ids)
        self._entries: list[str] = list(entries)
        self._positions: dict[str, int] = {}
        self._reindex()

    def _reindex(self) -> None:
        self._positions.clear()
        for position, entry in enumerate(self._entries):
            self._positions.setdefault(entry, position)

    def intern(self, value: str, number: int = 0) -> NameRef:
        """Return a ref to ``value``, appending it if not present.

        Matching is exact: no case folding or normalization.
        """
        position = self._positions.get(value)
        if position is None:
            position = len(self._entries)
            self._entries.append(value)
            self._positions[value] = position
        return NameRef(position, number, self.table_id)

    def find(self, value: str) -> NameRef | None:
        """Return a ref to ``value`` if it is already in the table."""
        position = self._positions.get(value)
        if position is None:
            return None
        return NameRef(position, 0, self.table_id)

    def ref(self, index: int, number: int = 0) -> NameRef:
        """Issue a ref for an existing position (used by codecs).

        Raises:
            IndexError: If ``index`` is outside the table.
        """
        if not 0 <= index < len(self._entries):
            raise IndexError(f"Name index {index} out of range (table has {len(self._entries)})")
        return NameRef(index, number, self.table_id)

    def lookup(self, ref: NameRef) -> str:
        """Resolve a ref issued by this table.

        Raises:
            ForeignReferenceError: If the ref belongs to another table.
            IndexError: If the ref points past the end of the table.
        """
        if ref.table_id != self.table_id:
            raise ForeignReferenceError(
                kind="name",
                value=ref.index,
                owner=ref.table_id,
                expected=self.table_id,
            )
        if not 0 <= ref.index < len(self._entries):
            raise IndexError(
                f"Name index {ref.index} out of range (table has {len(self._entries)})"
            )
        return self._entries[ref.index]

    def owns(self, ref: NameRef) -> bool:
        """Whether ``ref`` was issued by this table and is in range."""
        return ref.table_id == self.table_id and 0 <= ref.index < len(self._entries)

    def rename_matching(self, old: str, new: str) -> list[NameChange]:
        """Replace ``old`` with ``new`` inside every entry that contains it.

        Indices are unchanged, so every outstanding ref now reads the new
        string. If a rewritten entry collides with an existing one, lookups
        by string keep resolving to the earlier position.

        Returns:
            The rewrites that were applied, in table order.
        """
        if not old:
            return []
        changes: list[NameChange] = []
        for position, entry in enumerate(self._entries):
            if old not in entry:
                continue
            updated = entry.replace(old, new)
            if updated == entry:
                continue
            self._entries[position] = updated
            changes.append(NameChange(position, entry, updated))
        if changes:
            self._reindex()
        return changes

    @property
    def entries(self) -> tuple[str, ...]:
        """Snapshot of the table contents in order."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __contains__(self, value: object) -> bool:
        return value in self._positions

    def __repr__(self) -> str:
        return f"NameTable(id={self.table_id}, entries={len(self._entries)})"
