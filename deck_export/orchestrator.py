"""Export orchestrator: the public entry point of the pipeline.

``export`` picks the rasterizing path (pdf, html, pptx-images) or the
structured path (pptx), reports progress, and hands the finished file to
``deliver`` only once the whole job has succeeded.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from deck_export.config import DEFAULT_CONFIG, ExportConfig
from deck_export.errors import ExportFailedError, NoSlidesError
from deck_export.models import Deck, Theme
from deck_export.pptx_export import build_pptx
from deck_export.progress import ProgressReporter
from deck_export.raster import SlideSurface, build_html, build_image_pptx, build_pdf, capture_slides
from deck_export.renderer import DeckSurface
from deck_export.utils import get_logger, safe_filename

logger = get_logger(__name__)

FAILURE_MESSAGE = 'Error creating download. Please try again.'

PPTX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.presentationml.presentation'

# format -> (mimetype, filename suffix)
FORMATS = {
    'pdf': ('application/pdf', '.pdf'),
    'html': ('text/html', '.html'),
    'pptx': (PPTX_MIMETYPE, '_editable.pptx'),
    'pptx-images': (PPTX_MIMETYPE, '.pptx'),
}
RASTER_FORMATS = ('pdf', 'html', 'pptx-images')


@dataclass
class ExportResult:
    format: str
    filename: str
    mimetype: str
    data: bytes
    slide_count: int
    warnings: List[str] = field(default_factory=list)


@dataclass
class ExportJob:
    """Per-call state; discarded once the file is produced or the call fails."""
    format: str
    title: str
    progress: str = ''
    artifacts: list = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def export_filename(title: str, format: str) -> str:
    return f'{safe_filename(title)}{FORMATS[format][1]}'


class JobReporter(ProgressReporter):
    """Records progress and warnings on the job, then forwards to the caller's callbacks."""

    def __init__(self, job: ExportJob, outer: Optional[ProgressReporter] = None):
        outer = outer or ProgressReporter()
        super().__init__(outer.on_progress, outer.on_warning, outer.on_alert)
        self.job = job

    def progress(self, message: str):
        self.job.progress = message
        super().progress(message)

    def warn(self, message: str):
        self.job.warnings.append(message)
        super().warn(message)


def _run_raster(job: ExportJob, surface: SlideSurface, reporter: ProgressReporter, config: ExportConfig) -> bytes:
    job.artifacts = capture_slides(surface, reporter, config)
    if not job.artifacts:
        raise ExportFailedError('Every slide was skipped; nothing to export.')

    reporter.progress(f'Building {job.format.upper()} file...')
    if job.format == 'pdf':
        return build_pdf(job.artifacts, job.title)
    if job.format == 'html':
        return build_html(job.artifacts, job.title, total=len(surface.query_slides()))
    return build_image_pptx(job.artifacts)


def export(format: str, title: str, deck: Optional[Deck] = None, theme: Optional[Theme] = None,
           surface: Optional[SlideSurface] = None, reporter: Optional[ProgressReporter] = None,
           config: Optional[ExportConfig] = None,
           deliver: Optional[Callable[[ExportResult], None]] = None) -> ExportResult:
    """Export a deck as pdf, html, pptx or pptx-images.

    Rasterized formats capture ``surface`` (mounted slides); when none is
    given a headless ``DeckSurface`` is mounted for ``deck``. ``pptx`` is
    built from ``deck`` and ``theme`` directly.

    Raises ValueError for an invalid request, NoSlidesError when there is
    nothing to export and ExportFailedError for any other failure; in every
    failure case ``deliver`` is not called.
    """
    format = (format or '').strip().lower()
    if format not in FORMATS:
        raise ValueError(f'Unsupported export format: {format!r}')
    if format == 'pptx' and (deck is None or theme is None):
        raise ValueError('pptx export requires both deck and theme')
    if format in RASTER_FORMATS and surface is None and deck is None:
        raise ValueError(f'{format} export requires mounted slides or a deck')

    config = config or DEFAULT_CONFIG
    job = ExportJob(format=format, title=title or '')
    job_reporter = JobReporter(job, reporter)
    # never touch the caller's deck
    deck = deck.model_copy(deep=True) if deck is not None else None

    try:
        if format == 'pptx':
            if not deck.slides:
                raise NoSlidesError()
            data = build_pptx(deck, job_reporter, config, theme=theme)
            slide_count = len(deck.slides)
        else:
            headless = surface is None
            if headless:
                surface = DeckSurface(deck, theme, config)
            try:
                data = _run_raster(job, surface, job_reporter, config)
            finally:
                if headless:
                    surface.close()
            slide_count = len(job.artifacts)
    except NoSlidesError as e:
        job_reporter.alert(str(e))
        raise
    except ExportFailedError as e:
        logger.error(f'[Export] {format} export failed: {e}')
        job_reporter.alert(FAILURE_MESSAGE)
        raise
    except Exception as e:
        logger.exception(f'[Export] {format} export failed: {e}')
        job_reporter.alert(FAILURE_MESSAGE)
        raise ExportFailedError(FAILURE_MESSAGE) from e

    mimetype, _ = FORMATS[format]
    result = ExportResult(
        format=format, filename=export_filename(job.title, format), mimetype=mimetype,
        data=data, slide_count=slide_count, warnings=list(job.warnings),
    )
    logger.info(f'[Export] {result.filename}: {slide_count} slides, {len(data)} bytes')

    if deliver is not None:
        deliver(result)
    return result
