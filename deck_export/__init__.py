"""Deck export pipeline: PDF, HTML and PPTX output for AI-generated slide decks."""

from deck_export.errors import (
    AssetFetchError, DeckExportError, ExportFailedError, FramingError, NoSlidesError, SlideTooLargeError,
)
from deck_export.models import Deck, OverlayElement, Slide, SlideImage, Theme
from deck_export.orchestrator import ExportResult, export
from deck_export.progress import ProgressReporter
from deck_export.themes import get_theme

__version__ = '1.0.0'

__all__ = [
    'AssetFetchError', 'DeckExportError', 'ExportFailedError', 'FramingError', 'NoSlidesError',
    'SlideTooLargeError', 'Deck', 'OverlayElement', 'Slide', 'SlideImage', 'Theme', 'ExportResult',
    'export', 'ProgressReporter', 'get_theme',
]
