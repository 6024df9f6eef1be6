"""Error types raised by the mapped-text core.

Every error is raised synchronously, before any buffer state changes.
Nothing here is retried internally; callers decide what to do next.
"""
from __future__ import annotations


class InvalidRange(ValueError):
    """Raised when an offset or range falls outside the current text.

    Covers negative offsets, inverted ranges (``start > end``) and ranges
    that run past the end of the text.
    """


class MalformedMapReference(ValueError):
    """Raised when a map reference or the map it names cannot be parsed."""


class MapArtifactNotFound(FileNotFoundError):
    """Raised when the map file named by a ``sourceMappingURL`` is missing."""


class OverlappingDeletionRequest(ValueError):
    """Raised when two deletions scheduled against one buffer overlap."""
