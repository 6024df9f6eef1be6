"""Batched deletions against one ``MappedBuffer``.

Callers that compute several ranges to remove from the same text (in the
coordinates of the text they analysed) hand them over as one batch. The
batch is checked for overlaps first, then applied back to front so that
each deletion leaves the offsets of the remaining ones valid.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from dts_tool.errors import InvalidRange, OverlappingDeletionRequest
from dts_tool.mapped_text import MappedBuffer

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Deletion:
    """Half-open range ``[start, end)`` to delete."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise InvalidRange(f"Deletion.start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise InvalidRange(
                f"Deletion.end ({self.end}) must be >= start ({self.start})"
            )

    @property
    def length(self) -> int:
        return self.end - self.start


def plan_deletions(deletions: Iterable[Deletion]) -> list[Deletion]:
    """Order *deletions* back to front, rejecting overlaps.

    Ranges that merely touch (``a.end == b.start``) do not overlap.

    Raises:
        OverlappingDeletionRequest: If any two ranges overlap.
    """
    ordered = sorted(deletions, key=lambda d: (d.start, d.end), reverse=True)
    prev: Deletion | None = None
    for d in ordered:
        if prev is not None and d.end > prev.start:
            raise OverlappingDeletionRequest(
                f"Deletion [{d.start}, {d.end}) overlaps [{prev.start}, {prev.end})"
            )
        prev = d
    return ordered


def apply_deletions(
    buffer: MappedBuffer,
    deletions: Iterable[Deletion],
    *,
    base: int = 0,
) -> int:
    """Delete every range in *deletions* from *buffer*.

    *base* is subtracted from each range first, for batches computed
    against a larger text that *buffer* was sliced from.

    Returns:
        Number of deletions applied.

    Raises:
        OverlappingDeletionRequest: If ranges overlap. *buffer* is untouched.
        InvalidRange: If a range falls outside *buffer* after rebasing.
            *buffer* is untouched.
    """
    ordered = plan_deletions(deletions)
    for d in ordered:
        if d.start - base < 0 or d.end - base > len(buffer):
            raise InvalidRange(
                f"Deletion [{d.start}, {d.end}) outside buffer "
                f"[{base}, {base + len(buffer)})"
            )
    for d in ordered:
        buffer.delete(d.start - base, d.length)
    log.debug("Applied %d deletions (base=%d)", len(ordered), base)
    return len(ordered)
