"""Position-mapped text buffers.

A ``MappedBuffer`` owns a mutable text and a list of ``MappingPoint``
annotations (offset -> original location). Every edit keeps the points
consistent with the text:

- points inside a deleted span are dropped,
- points at or after the edited span move by the change in length,
- points carried by an inserted ``MappedBuffer`` are copied in, shifted
  to their new absolute offsets.

The point list is sorted by offset at all times. Points sharing an
offset keep their relative order; points carried in by an insertion go
before existing points at the same offset.

Buffers are saved as a text file ending in a ``sourceMappingURL`` marker
line plus a revision 3 source map next to it, and loaded back the same way.
"""
from __future__ import annotations

import bisect
import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from dts_tool.errors import InvalidRange, MalformedMapReference, MapArtifactNotFound
from dts_tool.io_utils import load_json, read_text, save_json, write_text
from dts_tool.line_map import OffsetIndex, offset_for_utf16_column, utf16_column
from dts_tool.source_map import (
    MAP_SUFFIX,
    MapEntry,
    decode_source_map,
    encode_source_map,
    find_map_reference,
    map_reference_line,
    strip_map_reference,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MappingPoint:
    """One generated-offset -> original-location annotation.

    ``offset`` is the only field a buffer operation ever changes, and it
    does so by making a shifted copy.
    """

    offset: int
    original_source: str
    original_line: int     # 1-based
    original_column: int   # 0-based
    name: str = ""

    def shifted(self, delta: int) -> MappingPoint:
        if not delta:
            return self
        return replace(self, offset=self.offset + delta)


def _offset(point: MappingPoint) -> int:
    return point.offset


def _is_sorted(points: list[MappingPoint]) -> bool:
    return all(a.offset <= b.offset for a, b in zip(points, points[1:]))


class MappedBuffer:
    """Mutable text plus offset-sorted mapping points."""

    __slots__ = ("_points", "_text")

    def __init__(self, text: str = "", points: Iterable[MappingPoint] = ()) -> None:
        ordered = sorted(points, key=_offset)
        for point in ordered:
            if not 0 <= point.offset <= len(text):
                raise InvalidRange(
                    f"Mapping point offset {point.offset} outside text of "
                    f"length {len(text)}"
                )
        self._text = text
        self._points = ordered

    @classmethod
    def _from_sorted(cls, text: str, points: list[MappingPoint]) -> MappedBuffer:
        buf = cls.__new__(cls)
        buf._text = text
        buf._points = points
        return buf

    @property
    def text(self) -> str:
        return self._text

    @property
    def points(self) -> tuple[MappingPoint, ...]:
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._text)

    def __repr__(self) -> str:
        return f"MappedBuffer(len={len(self._text)}, points={len(self._points)})"

    # ------------------------------------------------------------------
    # Slicing and editing
    # ------------------------------------------------------------------

    def substring(self, start: int, end: int) -> MappedBuffer:
        """Copy ``text[start:end]`` and the points in ``[start, end]``.

        Both boundaries are inclusive for points, so annotations sitting
        exactly at either end survive when the slice is re-inserted.
        The source buffer is not modified.

        Raises:
            InvalidRange: Unless ``0 <= start <= end <= len(self)``.
        """
        if start < 0 or end < start or end > len(self._text):
            raise InvalidRange(
                f"Invalid substring range [{start}, {end}] for text of "
                f"length {len(self._text)}"
            )
        lo = bisect.bisect_left(self._points, start, key=_offset)
        hi = bisect.bisect_right(self._points, end, key=_offset)
        return MappedBuffer._from_sorted(
            self._text[start:end],
            [p.shifted(-start) for p in self._points[lo:hi]],
        )

    def splice(
        self,
        offset: int,
        delete_length: int,
        insertion: str | MappedBuffer = "",
    ) -> None:
        """Replace ``[offset, offset + delete_length)`` with *insertion*.

        If *insertion* is a ``MappedBuffer`` its points are copied in,
        shifted by *offset*; the inserted buffer itself is left untouched.

        Raises:
            InvalidRange: If the span is negative or runs past the end.
                Nothing is modified.
            TypeError: If *insertion* is neither ``str`` nor ``MappedBuffer``.
        """
        if offset < 0:
            raise InvalidRange(f"Invalid splice offset {offset}")
        if delete_length < 0:
            raise InvalidRange(f"Invalid splice length {delete_length}")
        end = offset + delete_length
        if end > len(self._text):
            raise InvalidRange(
                f"Invalid splice end offset {end} for text of length {len(self._text)}"
            )

        incoming: list[MappingPoint]
        if isinstance(insertion, MappedBuffer):
            inserted = insertion._text
            incoming = insertion._points
        elif isinstance(insertion, str):
            inserted = insertion
            incoming = []
        else:
            raise TypeError(
                f"Cannot splice in {type(insertion).__name__}; "
                f"expected str or MappedBuffer"
            )

        delta = len(inserted) - delete_length
        lo = bisect.bisect_left(self._points, offset, key=_offset)
        hi = bisect.bisect_left(self._points, end, key=_offset)

        # Points before the span stay, points inside it go, the rest move.
        points = self._points[:lo]
        points.extend(p.shifted(delta) for p in self._points[hi:])

        if incoming:
            batch = [p.shifted(offset) for p in incoming]
            at = bisect.bisect_left(points, batch[0].offset, key=_offset)
            points[at:at] = batch

        self._text = self._text[:offset] + inserted + self._text[end:]
        self._points = points

    def insert(self, offset: int, value: str | MappedBuffer) -> None:
        self.splice(offset, 0, value)

    def delete(self, offset: int, length: int) -> None:
        self.splice(offset, length, "")

    def append(self, value: str | MappedBuffer) -> None:
        self.splice(len(self._text), 0, value)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_source_map(self, file: str) -> dict[str, Any]:
        """Build the source map document for the current text.

        Offsets are converted with a fresh 1-based-line ``OffsetIndex``
        over the current text. Columns are written in UTF-16 code units.
        """
        points = self._points
        if not _is_sorted(points):
            log.warning("Mapping points out of order for %s; re-sorting", file)
            points = sorted(points, key=_offset)

        index = OffsetIndex(self._text, line_base=1)
        entries: list[MapEntry] = []
        for point in points:
            pos = index.position_for_offset(point.offset)
            line_start = point.offset - pos.column
            entries.append(MapEntry(
                generated_line=pos.line,
                generated_column=utf16_column(self._text, line_start, point.offset),
                source=point.original_source,
                original_line=point.original_line,
                original_column=point.original_column,
                name=point.name or None,
            ))
        return encode_source_map(entries, file=file)

    def save(self, path: Path | str, *, pretty: bool = True) -> tuple[Path, Path]:
        """Write the text and its ``.map`` companion.

        The text gets a final ``//# sourceMappingURL=<name>.map`` line.
        ``OSError`` propagates; the buffer is never modified.

        Returns:
            (text_path, map_path)
        """
        path = Path(path)
        map_path = path.with_name(path.name + MAP_SUFFIX)
        document = self.to_source_map(path.name)

        write_text(f"{self._text}\n{map_reference_line(map_path.name)}\n", path)
        save_json(document, map_path, pretty=pretty)
        log.debug(
            "Saved %s (%d chars) and %s (%d points)",
            path, len(self._text), map_path, len(self._points),
        )
        return path, map_path

    @classmethod
    def from_file(cls, path: Path | str) -> MappedBuffer:
        """Load a text file and the source map its marker line names.

        The marker line is removed from the text. A file without a marker
        loads with no points.

        Raises:
            MalformedMapReference: Empty reference, invalid JSON, or an
                undecodable map.
            MapArtifactNotFound: The referenced map file does not exist.
        """
        path = Path(path)
        text = read_text(path)

        ref = find_map_reference(text)
        if ref is None:
            log.debug("No sourceMappingURL in %s", path)
            return cls(text)

        text = strip_map_reference(text, ref)
        if not ref.url:
            raise MalformedMapReference(f"Empty sourceMappingURL in {path}")

        map_path = path.resolve().parent / ref.url
        entries = load_map_entries(map_path)

        index = OffsetIndex(text, line_base=1)
        points: list[MappingPoint] = []
        skipped = 0
        for entry in entries:
            if entry.source is None or entry.original_line is None:
                skipped += 1
                continue
            line_start = index.offset_for_position(entry.generated_line, 0)
            offset = offset_for_utf16_column(text, line_start, entry.generated_column)
            points.append(MappingPoint(
                offset=min(offset, len(text)),
                original_source=entry.source,
                original_line=entry.original_line,
                original_column=entry.original_column or 0,
                name=entry.name or "",
            ))
        if skipped:
            log.warning("Skipped %d map entries without a source in %s", skipped, map_path)
        log.debug("Loaded %s with %d points from %s", path, len(points), map_path)
        return cls(text, points)


def load_map_entries(map_path: Path) -> list[MapEntry]:
    """Read and decode a source map file.

    Raises:
        MapArtifactNotFound: If *map_path* does not exist.
        MalformedMapReference: If it is not valid JSON or not a valid map.
    """
    try:
        document = load_json(map_path)
    except FileNotFoundError as exc:
        raise MapArtifactNotFound(f"Source map not found: {map_path}") from exc
    except ValueError as exc:
        raise MalformedMapReference(
            f"Source map {map_path} is not valid JSON: {exc}"
        ) from exc
    return decode_source_map(document)
