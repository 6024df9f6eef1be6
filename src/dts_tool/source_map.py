"""Position-map artifact: revision 3 source maps and the inline marker line.

The artifact associates generated ``(line, column)`` positions with
original ``(source, line, column[, name])`` tuples. Generated lines and
original lines are 1-based here; columns are 0-based. Inside the encoded
``mappings`` string original lines are 0-based, as the format requires.

Only flat maps are handled. Indexed maps (``sections``) are rejected.
No ``sourcesContent`` is ever written.
"""
from __future__ import annotations

import bisect
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from dts_tool.errors import MalformedMapReference
from dts_tool.text_utils import skip_eol
from dts_tool.vlq import decode_vlq, encode_segment

SOURCE_MAP_VERSION = 3
MAP_SUFFIX = ".map"

_SOURCE_MAPPING_URL_RE = re.compile(r"//# sourceMappingURL=([^\r\n]*)")


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MapEntry:
    """One generated-position -> original-position association."""

    generated_line: int
    generated_column: int
    source: str | None = None
    original_line: int | None = None
    original_column: int | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if self.generated_line < 1:
            raise ValueError(
                f"generated_line must be >= 1, got {self.generated_line}"
            )
        if self.generated_column < 0:
            raise ValueError(
                f"generated_column must be >= 0, got {self.generated_column}"
            )


def _generated_key(entry: MapEntry) -> tuple[int, int]:
    return (entry.generated_line, entry.generated_column)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_source_map(
    entries: Iterable[MapEntry],
    *,
    file: str,
    source_root: str = "",
) -> dict[str, Any]:
    """Build a source map document from *entries*.

    Entries are emitted in ascending generated position (stable for ties).
    ``sources`` and ``names`` list values in first-use order. Entries with
    no source become 1-field segments; entries with an empty or missing
    name become 4-field segments.
    """
    ordered = sorted(entries, key=_generated_key)

    sources: list[str] = []
    source_ids: dict[str, int] = {}
    names: list[str] = []
    name_ids: dict[str, int] = {}

    lines: list[str] = []
    segments: list[str] = []
    line = 1
    prev_column = 0
    prev_source = 0
    prev_original_line = 0
    prev_original_column = 0
    prev_name = 0

    for entry in ordered:
        while line < entry.generated_line:
            lines.append(",".join(segments))
            segments = []
            line += 1
            prev_column = 0

        fields = [entry.generated_column - prev_column]
        prev_column = entry.generated_column

        if entry.source is not None:
            if entry.original_line is None or entry.original_column is None:
                raise ValueError(
                    f"Entry at {entry.generated_line}:{entry.generated_column} "
                    f"has a source but no original position"
                )
            source_id = source_ids.get(entry.source)
            if source_id is None:
                source_id = source_ids[entry.source] = len(sources)
                sources.append(entry.source)
            original_line = entry.original_line - 1
            fields.append(source_id - prev_source)
            fields.append(original_line - prev_original_line)
            fields.append(entry.original_column - prev_original_column)
            prev_source = source_id
            prev_original_line = original_line
            prev_original_column = entry.original_column

            if entry.name:
                name_id = name_ids.get(entry.name)
                if name_id is None:
                    name_id = name_ids[entry.name] = len(names)
                    names.append(entry.name)
                fields.append(name_id - prev_name)
                prev_name = name_id

        segments.append(encode_segment(fields))

    lines.append(",".join(segments))

    return {
        "version": SOURCE_MAP_VERSION,
        "file": file,
        "sourceRoot": source_root,
        "sources": sources,
        "names": names,
        "mappings": ";".join(lines),
    }


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _string_table(document: dict[str, Any], key: str) -> list[str | None]:
    table = document.get(key, [])
    if not isinstance(table, list):
        raise MalformedMapReference(f"Source map field {key!r} must be a list")
    for item in table:
        if item is not None and not isinstance(item, str):
            raise MalformedMapReference(
                f"Source map field {key!r} must hold strings, got {item!r}"
            )
    return table


def decode_source_map(document: Any) -> list[MapEntry]:
    """Decode a parsed source map document into entries.

    Entries come back sorted by generated position. ``sourceRoot``, when
    non-empty, is prefixed to every source.

    Raises:
        MalformedMapReference: If the document is not a flat revision 3
            map or its ``mappings`` cannot be decoded.
    """
    if not isinstance(document, dict):
        raise MalformedMapReference("Source map must be a JSON object")
    if "sections" in document:
        raise MalformedMapReference("Indexed source maps are not supported")
    if document.get("version") != SOURCE_MAP_VERSION:
        raise MalformedMapReference(
            f"Unsupported source map version: {document.get('version')!r}"
        )
    mappings = document.get("mappings")
    if not isinstance(mappings, str):
        raise MalformedMapReference("Source map field 'mappings' must be a string")

    source_root = document.get("sourceRoot") or ""
    if not isinstance(source_root, str):
        raise MalformedMapReference("Source map field 'sourceRoot' must be a string")
    if source_root and not source_root.endswith("/"):
        source_root += "/"
    sources = [
        None if s is None else source_root + s
        for s in _string_table(document, "sources")
    ]
    names = _string_table(document, "names")

    entries: list[MapEntry] = []
    source_id = 0
    original_line = 0
    original_column = 0
    name_id = 0

    for line_idx, line_text in enumerate(mappings.split(";")):
        column = 0
        for segment in line_text.split(","):
            if not segment:
                continue
            try:
                fields = decode_vlq(segment)
            except ValueError as exc:
                raise MalformedMapReference(str(exc)) from exc
            if len(fields) not in (1, 4, 5):
                raise MalformedMapReference(
                    f"Segment {segment!r} on line {line_idx + 1} has "
                    f"{len(fields)} fields"
                )
            column += fields[0]
            if column < 0:
                raise MalformedMapReference(
                    f"Negative generated column on line {line_idx + 1}"
                )
            if len(fields) == 1:
                entries.append(MapEntry(line_idx + 1, column))
                continue

            source_id += fields[1]
            original_line += fields[2]
            original_column += fields[3]
            if not 0 <= source_id < len(sources):
                raise MalformedMapReference(
                    f"Source index {source_id} out of range on line {line_idx + 1}"
                )
            name: str | None = None
            if len(fields) == 5:
                name_id += fields[4]
                if not 0 <= name_id < len(names):
                    raise MalformedMapReference(
                        f"Name index {name_id} out of range on line {line_idx + 1}"
                    )
                name = names[name_id]
            entries.append(MapEntry(
                generated_line=line_idx + 1,
                generated_column=column,
                source=sources[source_id],
                original_line=original_line + 1,
                original_column=original_column,
                name=name,
            ))

    entries.sort(key=_generated_key)
    return entries


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class SourceMapIndex:
    """Generated-position lookup over decoded entries."""

    __slots__ = ("_entries", "_keys")

    def __init__(self, entries: Iterable[MapEntry]) -> None:
        self._entries = sorted(entries, key=_generated_key)
        self._keys = [_generated_key(e) for e in self._entries]

    @classmethod
    def from_document(cls, document: Any) -> SourceMapIndex:
        return cls(decode_source_map(document))

    @property
    def entries(self) -> tuple[MapEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def original_position_for(self, line: int, column: int) -> MapEntry | None:
        """Find the entry covering generated ``line:column``.

        Picks the closest entry at or before *column* on the same line.
        Returns None when the line has no such entry or the entry carries
        no original source.
        """
        idx = bisect.bisect_right(self._keys, (line, column)) - 1
        if idx < 0 or self._keys[idx][0] != line:
            return None
        entry = self._entries[idx]
        if entry.source is None:
            return None
        return entry


# ---------------------------------------------------------------------------
# Inline marker line
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MapReference:
    """A ``//# sourceMappingURL=`` marker found in a text.

    ``start``/``end`` delimit the marker itself, terminator excluded.
    """

    url: str
    start: int
    end: int


def find_map_reference(text: str) -> MapReference | None:
    """Locate the first ``sourceMappingURL`` marker in *text*."""
    match = _SOURCE_MAPPING_URL_RE.search(text)
    if match is None:
        return None
    return MapReference(url=match.group(1), start=match.start(), end=match.end())


def strip_map_reference(text: str, ref: MapReference) -> str:
    """Remove the marker and its terminator from *text*.

    When the marker opens the last line, the single ``\\n`` that separates
    it from the body goes too, so a text saved with a trailing marker line
    reads back unchanged.
    """
    start = ref.start
    end = skip_eol(text, ref.end)
    if end == len(text) and start > 0 and text[start - 1] == "\n":
        start -= 1
    return text[:start] + text[end:]


def map_reference_line(map_name: str) -> str:
    """Marker line pointing at *map_name* (no terminator)."""
    return f"//# sourceMappingURL={map_name}"
