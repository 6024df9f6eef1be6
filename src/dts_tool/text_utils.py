"""Whitespace and end-of-line scanning helpers.

Used to widen a syntax-node range to whole lines before deleting it, so
removed declarations do not leave blank indented lines behind.
"""
from __future__ import annotations

_HSPACE = frozenset(" \t")


def find_bol_ws(text: str, pos: int) -> int:
    """Move *pos* left over spaces and tabs (stops at a line start)."""
    while pos > 0 and text[pos - 1] in _HSPACE:
        pos -= 1
    return pos


def find_eol_ws(text: str, pos: int) -> int:
    """Move *pos* right over spaces and tabs (stops at a terminator)."""
    while pos < len(text) and text[pos] in _HSPACE:
        pos += 1
    return pos


def skip_eol(text: str, pos: int) -> int:
    """Skip one line terminator at *pos*, if there is one.

    ``\\r\\n`` is skipped as a unit. ``\\n\\r`` is two terminators, so only
    the ``\\n`` is skipped, matching ``OffsetIndex``.
    """
    if text.startswith("\r\n", pos):
        return pos + 2
    if pos < len(text) and text[pos] in "\r\n":
        return pos + 1
    return pos


def find_next_line_ws(text: str, pos: int) -> int:
    """Skip trailing spaces/tabs and one terminator after *pos*."""
    return skip_eol(text, find_eol_ws(text, pos))


def line_extent(text: str, start: int, end: int) -> tuple[int, int]:
    """Widen ``[start, end)`` over surrounding indentation and the trailing EOL."""
    return find_bol_ws(text, start), find_next_line_ws(text, end)
