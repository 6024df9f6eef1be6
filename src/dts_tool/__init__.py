"""Source-mapped text rewriting: mapped buffers, offset indexes, source maps."""

from dts_tool.deletions import Deletion, apply_deletions, plan_deletions
from dts_tool.errors import (
    InvalidRange,
    MalformedMapReference,
    MapArtifactNotFound,
    OverlappingDeletionRequest,
)
from dts_tool.line_map import LineNumbering, OffsetIndex, Position
from dts_tool.mapped_text import MappedBuffer, MappingPoint, load_map_entries
from dts_tool.source_file import SourceFile, SourceFileCache
from dts_tool.source_map import (
    MapEntry,
    MapReference,
    SourceMapIndex,
    decode_source_map,
    encode_source_map,
    find_map_reference,
)

__all__ = [
    "Deletion",
    "InvalidRange",
    "LineNumbering",
    "MalformedMapReference",
    "MapArtifactNotFound",
    "MapEntry",
    "MapReference",
    "MappedBuffer",
    "MappingPoint",
    "OffsetIndex",
    "OverlappingDeletionRequest",
    "Position",
    "SourceFile",
    "SourceFileCache",
    "SourceMapIndex",
    "apply_deletions",
    "decode_source_map",
    "encode_source_map",
    "find_map_reference",
    "load_map_entries",
    "plan_deletions",
]
