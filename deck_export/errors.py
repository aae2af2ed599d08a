"""Exception taxonomy for the export pipeline.

Failures are contained at the smallest unit that makes sense:

- ``AssetFetchError`` / ``FramingError`` are raised inside the image resolver
  and recovered by the caller (placeholder, skip, or unframed original).
- ``SlideTooLargeError`` is recovered per slide by the rasterizing exporter.
- ``NoSlidesError`` and ``ExportFailedError`` abort the whole export.
"""


class DeckExportError(Exception):
    """Base class for every error raised by deck_export."""


class NoSlidesError(DeckExportError):
    """Raised when there is nothing to export."""

    def __init__(self, message: str = 'No slides found to download.'):
        super().__init__(message)


class AssetFetchError(DeckExportError):
    """Raised when an image or overlay cannot be fetched or decoded."""


class FramingError(DeckExportError):
    """Raised when theme framing cannot be composited onto an image."""


class SlideTooLargeError(DeckExportError):
    """Raised when a rasterized slide stays above the size cap after downscaling."""

    def __init__(self, index: int, size: int, limit: int):
        self.index = index
        self.size = size
        self.limit = limit
        super().__init__(
            f'Slide {index + 1} is too large to export ({size} bytes > {limit} bytes) and was skipped.'
        )


class ExportFailedError(DeckExportError):
    """Raised when the export as a whole fails; no file is produced."""
