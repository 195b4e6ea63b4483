"""
Order-independent comparison of set-valued attributes.

The API does not keep the order of set-valued fields, and configuration may
carry empty placeholder blocks. Both sides are normalised into sorted tuples
before they are compared so that neither reordering nor placeholders show up
as changes.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

import structlog

logger = structlog.get_logger()

Entry = tuple[str, ...]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class SetReconciler:
    """Normalise and compare collections of nested blocks.

    ``fields`` lists every field of a block in order; ``key_fields`` are the
    identifying fields joined into the composite key.
    """

    def __init__(self, fields: Sequence[str], key_fields: Sequence[str] | None = None) -> None:
        if not fields:
            raise ValueError("at least one field is required")
        self.fields = tuple(fields)
        self.key_fields = tuple(key_fields or fields)
        unknown = set(self.key_fields) - set(self.fields)
        if unknown:
            raise ValueError(f"key fields not in fields: {sorted(unknown)}")
        self._key_index = tuple(self.fields.index(name) for name in self.key_fields)

    def entry(self, block: Mapping[str, Any]) -> Entry:
        return tuple(_text(block.get(name)) for name in self.fields)

    def is_placeholder(self, block: Mapping[str, Any]) -> bool:
        """A block whose fields are all empty stands for "no entry"."""
        return all(value == "" for value in self.entry(block))

    def key(self, entry: Entry) -> str:
        return "|".join(entry[i] for i in self._key_index)

    def _sort_key(self, entry: Entry) -> tuple[str, Entry]:
        return self.key(entry), entry

    def normalize(self, blocks: Iterable[Mapping[str, Any]] | None) -> list[Entry]:
        """Drop placeholders and duplicates, then sort by composite key."""
        unique: set[Entry] = set()
        for block in blocks or ():
            if self.is_placeholder(block):
                continue
            unique.add(self.entry(block))
        return sorted(unique, key=self._sort_key)

    def effective(self, blocks: Iterable[Mapping[str, Any]] | None) -> list[dict[str, str]]:
        return [dict(zip(self.fields, entry)) for entry in self.normalize(blocks)]

    def equal(
        self,
        desired: Iterable[Mapping[str, Any]] | None,
        remote: Iterable[Mapping[str, Any]] | None,
    ) -> bool:
        left = self.normalize(desired)
        right = self.normalize(remote)
        if len(left) != len(right):
            return False
        for a, b in zip(left, right):
            if a != b:
                return False
        return True

    def suppress_diff(
        self,
        desired: Iterable[Mapping[str, Any]] | None,
        remote: Iterable[Mapping[str, Any]] | None,
    ) -> bool:
        """True when the pending change is a no-op and the write should be skipped."""
        same = self.equal(desired, remote)
        if same:
            logger.debug("set_diff_suppressed", fields=",".join(self.fields))
        return same


def normalize_strings(values: Iterable[Any] | None) -> list[str]:
    """Set semantics for plain string lists: blanks dropped, deduplicated, sorted."""
    return sorted({_text(value) for value in values or () if _text(value) != ""})


def strings_equal(desired: Iterable[Any] | None, remote: Iterable[Any] | None) -> bool:
    return normalize_strings(desired) == normalize_strings(remote)
