"""Read-only source files with their source maps.

A ``SourceFile`` is an original input consulted for positions, not
edited: its text, an optional ``SourceMapIndex`` for the map its marker
names, and a 1-based-line ``OffsetIndex`` over the text.

``SourceFileCache`` remembers the last file loaded. Callers that look up
many positions in the same original file pass one cache around instead
of reloading per lookup.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from dts_tool.errors import MalformedMapReference
from dts_tool.io_utils import read_text
from dts_tool.line_map import OffsetIndex, utf16_column
from dts_tool.mapped_text import load_map_entries
from dts_tool.source_map import MapEntry, SourceMapIndex, find_map_reference

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SourceFile:
    """Text of a file plus its optional source map and line index."""

    filename: Path | None
    code: str
    source_map: SourceMapIndex | None = None
    line_map: OffsetIndex = field(init=False)

    def __post_init__(self) -> None:
        self.line_map = OffsetIndex(self.code, line_base=1)

    @classmethod
    def from_file(cls, path: Path | str, map_file: Path | str | None = None) -> SourceFile:
        """Load *path* and its map.

        The map is *map_file* when given, else the file named by the
        text's ``sourceMappingURL`` marker (resolved against the file's
        directory), else none. The marker stays in ``code``.
        """
        path = Path(path)
        code = read_text(path)

        map_path: Path | None = Path(map_file) if map_file is not None else None
        if map_path is None:
            ref = find_map_reference(code)
            if ref is not None:
                if not ref.url:
                    raise MalformedMapReference(f"Empty sourceMappingURL in {path}")
                map_path = path.resolve().parent / ref.url

        source_map = None
        if map_path is not None:
            source_map = SourceMapIndex(load_map_entries(map_path))
            log.debug("Loaded %s with %d map entries", path, len(source_map))
        return cls(filename=path, code=code, source_map=source_map)

    def original_position_for(self, offset: int) -> MapEntry | None:
        """Map an offset in ``code`` to its original location, if known."""
        if self.source_map is None:
            return None
        pos = self.line_map.position_for_offset(offset)
        column = utf16_column(self.code, offset - pos.column, offset)
        return self.source_map.original_position_for(pos.line, column)


class SourceFileCache:
    """Single-entry cache of the most recently loaded ``SourceFile``."""

    def __init__(
        self,
        loader: Callable[[Path], SourceFile] = SourceFile.from_file,
    ) -> None:
        self._loader = loader
        self._key: Path | None = None
        self._value: SourceFile | None = None

    def get(self, path: Path | str) -> SourceFile:
        key = Path(path).resolve()
        if self._value is not None and key == self._key:
            log.debug("Source cache hit: %s", key)
            return self._value
        log.debug("Source cache miss: %s", key)
        value = self._loader(key)
        self._key = key
        self._value = value
        return value

    def clear(self) -> None:
        self._key = None
        self._value = None
