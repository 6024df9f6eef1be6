"""Tests for dts_tool.source_file module."""
from __future__ import annotations

from pathlib import Path

import pytest

from dts_tool.errors import MalformedMapReference, MapArtifactNotFound
from dts_tool.mapped_text import MappedBuffer, MappingPoint
from dts_tool.source_file import SourceFile, SourceFileCache


def _write_mapped(tmp_path: Path) -> Path:
    buf = MappedBuffer("declare const x: number;\n", [
        MappingPoint(14, "src/x.js", 4, 2, "x"),
    ])
    text_path, _ = buf.save(tmp_path / "gen.d.ts")
    return text_path


class TestSourceFile:
    def test_loads_map_named_by_marker(self, tmp_path: Path) -> None:
        sf = SourceFile.from_file(_write_mapped(tmp_path))
        assert sf.source_map is not None
        assert "//# sourceMappingURL=gen.d.ts.map" in sf.code

        hit = sf.original_position_for(14)
        assert hit is not None
        assert (hit.source, hit.original_line, hit.original_column, hit.name) == (
            "src/x.js", 4, 2, "x",
        )

    def test_lookup_uses_closest_earlier_column(self, tmp_path: Path) -> None:
        sf = SourceFile.from_file(_write_mapped(tmp_path))
        hit = sf.original_position_for(20)
        assert hit is not None and hit.name == "x"
        assert sf.original_position_for(3) is None

    def test_lookup_after_astral_character(self, tmp_path: Path) -> None:
        buf = MappedBuffer("\U0001F600 x y", [
            MappingPoint(2, "s.js", 1, 0, "x"),
            MappingPoint(4, "s.js", 1, 2, "y"),
        ])
        text_path, _ = buf.save(tmp_path / "emoji.d.ts")
        sf = SourceFile.from_file(text_path)

        hit = sf.original_position_for(4)
        assert hit is not None and hit.name == "y"
        hit = sf.original_position_for(3)
        assert hit is not None and hit.name == "x"

    def test_explicit_map_file(self, tmp_path: Path) -> None:
        _write_mapped(tmp_path)
        plain = tmp_path / "copy.d.ts"
        plain.write_bytes(b"declare const x: number;\n")
        sf = SourceFile.from_file(plain, tmp_path / "gen.d.ts.map")
        hit = sf.original_position_for(14)
        assert hit is not None and hit.source == "src/x.js"

    def test_without_map(self, tmp_path: Path) -> None:
        path = tmp_path / "plain.d.ts"
        path.write_bytes(b"export {};\n")
        sf = SourceFile.from_file(path)
        assert sf.source_map is None
        assert sf.original_position_for(0) is None
        assert sf.line_map.line_count == 2

    def test_missing_map(self, tmp_path: Path) -> None:
        path = tmp_path / "lost.d.ts"
        path.write_bytes(b"x\n//# sourceMappingURL=lost.map\n")
        with pytest.raises(MapArtifactNotFound):
            SourceFile.from_file(path)

    def test_empty_reference(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.d.ts"
        path.write_bytes(b"x\n//# sourceMappingURL=\n")
        with pytest.raises(MalformedMapReference):
            SourceFile.from_file(path)


class TestSourceFileCache:
    def _counting_loader(self, calls: list[Path]):
        def load(path: Path) -> SourceFile:
            calls.append(path)
            return SourceFile(filename=path, code=path.name)
        return load

    def test_same_path_loaded_once(self, tmp_path: Path) -> None:
        calls: list[Path] = []
        cache = SourceFileCache(self._counting_loader(calls))
        first = cache.get(tmp_path / "a.js")
        second = cache.get(str(tmp_path / "a.js"))
        assert first is second
        assert len(calls) == 1

    def test_holds_only_last_file(self, tmp_path: Path) -> None:
        calls: list[Path] = []
        cache = SourceFileCache(self._counting_loader(calls))
        cache.get(tmp_path / "a.js")
        cache.get(tmp_path / "b.js")
        cache.get(tmp_path / "a.js")
        assert [p.name for p in calls] == ["a.js", "b.js", "a.js"]

    def test_clear(self, tmp_path: Path) -> None:
        calls: list[Path] = []
        cache = SourceFileCache(self._counting_loader(calls))
        cache.get(tmp_path / "a.js")
        cache.clear()
        cache.get(tmp_path / "a.js")
        assert len(calls) == 2

    def test_separate_caches_do_not_share(self, tmp_path: Path) -> None:
        calls: list[Path] = []
        loader = self._counting_loader(calls)
        SourceFileCache(loader).get(tmp_path / "a.js")
        SourceFileCache(loader).get(tmp_path / "a.js")
        assert len(calls) == 2

    def test_default_loader_reads_files(self, tmp_path: Path) -> None:
        text_path = _write_mapped(tmp_path)
        sf = SourceFileCache().get(text_path)
        assert sf.source_map is not None
        assert sf.filename == text_path.resolve()
