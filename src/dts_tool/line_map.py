"""Offset index: linear character offsets <-> (line, column) positions.

An ``OffsetIndex`` is a read-only view over one text snapshot. It records
the offset at which every line starts and answers conversions in both
directions with a binary search. It is never updated in place: when the
text changes, build a new index.

Line terminators are ``\\n``, ``\\r`` and the pair ``\\r\\n`` (one unit).
The reverse pair ``\\n\\r`` is two terminators, so it opens two lines.

Numbering is configurable through ``LineNumbering``. Source maps use
1-based lines and 0-based columns (``line_base=1``); the default is
0-based for both.
"""
from __future__ import annotations

import bisect
from dataclasses import dataclass

from dts_tool.errors import InvalidRange


@dataclass(frozen=True, slots=True)
class LineNumbering:
    """Numbering convention for positions returned and accepted by an index."""

    line_base: int = 0
    column_base: int = 0


@dataclass(frozen=True, slots=True)
class Position:
    """A (line, column) pair in some ``LineNumbering``."""

    line: int
    column: int


def compute_line_starts(text: str) -> list[int]:
    """Pre-compute char offsets of every line start.

    Position 0 is always a line start, even when the text begins with a
    terminator. ``\\r\\n`` counts once; every other ``\\r`` or ``\\n``
    counts on its own.
    """
    starts = [0]
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\r" and i + 1 < n and text[i + 1] == "\n":
            i += 1
            ch = "\n"
        if ch == "\n" or ch == "\r":
            starts.append(i + 1)
        i += 1
    return starts


def utf16_column(text: str, line_start: int, offset: int) -> int:
    """Width of ``text[line_start:offset]`` in UTF-16 code units.

    Source map columns count UTF-16 units, so every character outside
    the Basic Multilingual Plane counts twice.
    """
    prefix = text[line_start:offset]
    return len(prefix) + sum(1 for ch in prefix if ord(ch) > 0xFFFF)


def offset_for_utf16_column(text: str, line_start: int, units: int) -> int:
    """Inverse of ``utf16_column``: the offset *units* code units past *line_start*.

    A column that falls inside a surrogate pair resolves to the end of
    that character. Units left over past the end of the text are added
    as-is, so callers clamp the same way as for code-point columns.
    """
    i = line_start
    n = len(text)
    while units > 0 and i < n:
        units -= 2 if ord(text[i]) > 0xFFFF else 1
        i += 1
    return i + max(units, 0)


class OffsetIndex:
    """Line-start table over a fixed text snapshot.

    Invariants:
        - ``line_starts[0] == 0``
        - ``line_starts`` is strictly increasing
    """

    __slots__ = ("_line_starts", "_numbering", "_total_length")

    def __init__(
        self,
        text: str,
        numbering: LineNumbering | None = None,
        *,
        line_base: int | None = None,
        column_base: int | None = None,
    ) -> None:
        numbering = numbering or LineNumbering()
        if line_base is not None or column_base is not None:
            numbering = LineNumbering(
                line_base=numbering.line_base if line_base is None else line_base,
                column_base=(
                    numbering.column_base if column_base is None else column_base
                ),
            )
        self._numbering = numbering
        self._total_length = len(text)
        self._line_starts = tuple(compute_line_starts(text))

    @property
    def numbering(self) -> LineNumbering:
        return self._numbering

    @property
    def total_length(self) -> int:
        return self._total_length

    @property
    def line_starts(self) -> tuple[int, ...]:
        return self._line_starts

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def position_for_offset(self, offset: int) -> Position:
        """Convert a linear offset to a ``Position``.

        An offset equal to a line start belongs to that line, not to the
        end of the previous one. Offsets past the end of the text land on
        the last line with a column that overflows its length.

        Raises:
            InvalidRange: If *offset* is negative.
        """
        if offset < 0:
            raise InvalidRange(f"offset must be >= 0, got {offset}")
        idx = bisect.bisect_right(self._line_starts, offset) - 1
        return Position(
            line=idx + self._numbering.line_base,
            column=offset - self._line_starts[idx] + self._numbering.column_base,
        )

    def offset_for_position(self, line: int, column: int) -> int:
        """Convert a position back to a linear offset.

        Never raises. Lines past the last known line, and offsets past the
        end of the text, clamp to the text length; anything before the
        start clamps to 0.
        """
        line_idx = line - self._numbering.line_base
        col = column - self._numbering.column_base
        if line_idx >= len(self._line_starts):
            return self._total_length
        if line_idx < 0:
            return 0
        offset = self._line_starts[line_idx] + col
        return max(0, min(offset, self._total_length))

