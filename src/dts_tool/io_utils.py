"""I/O utilities for JSON documents and exact-byte text files.

Provides orjson-accelerated JSON I/O with stdlib fallback. Text is read
and written as raw UTF-8 bytes so ``\\r\\n`` and lone ``\\r`` terminators
reach the caller untouched; offsets computed over the text must match
the bytes on disk.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

_orjson: Any
try:
    import orjson
    _orjson = orjson
except ImportError:
    _orjson = None


def load_json(path: Path) -> Any:
    """Load JSON from a file using orjson (fast) with stdlib fallback."""
    raw = path.read_bytes()
    if _orjson is not None:
        return _orjson.loads(raw)
    return json.loads(raw)


def dumps_json(obj: Any, *, pretty: bool = True) -> bytes:
    """Serialize *obj* to key-sorted UTF-8 JSON bytes.

    Pretty output is indented and ends with a newline.
    """
    if _orjson is not None:
        opts = (
            _orjson.OPT_INDENT_2 | _orjson.OPT_SORT_KEYS
            if pretty
            else _orjson.OPT_SORT_KEYS
        )
        raw = _orjson.dumps(obj, option=opts)
        return raw + b"\n" if pretty else raw
    if pretty:
        return (
            json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
        ).encode("utf-8")
    return json.dumps(
        obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False,
    ).encode("utf-8")


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON using orjson (fast) with stdlib fallback."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps_json(obj, pretty=pretty))


def read_text(path: Path) -> str:
    """Read a UTF-8 text file without newline translation.

    A leading BOM stays in the text as ``\\ufeff`` and counts as one
    character. Decoding errors and ``OSError`` propagate.
    """
    return path.read_bytes().decode("utf-8")


def write_text(text: str, path: Path) -> None:
    """Write *text* as UTF-8 without newline translation."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))
