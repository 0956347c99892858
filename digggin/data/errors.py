from __future__ import annotations


class GalleryLoadError(Exception):
    """A whole-load failure: nothing usable came out of the source."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class SourceUnavailable(GalleryLoadError):
    """The input file or endpoint could not be read (missing file, 404, network)."""


class MalformedInput(GalleryLoadError, ValueError):
    """The source was read but has no usable header/data structure."""
