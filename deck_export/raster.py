"""Rasterizing exporter: capture mounted slides as bitmaps, then assemble PDF or HTML.

The capture loop only talks to the ``SlideSurface``/``SlideView`` interfaces,
so any renderer that can show a slide, hide its chrome and snapshot it can
be exported; ``deck_export.renderer`` provides the server-side one.
"""

import html
import io
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from PIL import Image
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.util import Inches
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from deck_export.config import DEFAULT_CONFIG, SLIDE_HEIGHT_IN, SLIDE_WIDTH_IN, ExportConfig
from deck_export.errors import NoSlidesError, SlideTooLargeError
from deck_export.images import to_data_url
from deck_export.progress import NULL_REPORTER, ProgressReporter
from deck_export.utils import get_logger

logger = get_logger(__name__)

SLIDE_SELECTOR = '#slides-preview-container > div'
CHROME_SELECTOR = 'button, .opacity-0, .group-hover:opacity-100'
_WHITE = RGBColor(0xFF, 0xFF, 0xFF)


# =============================================================================
# SURFACE INTERFACES
# =============================================================================

class InteractiveElement(ABC):
    """Editing-only chrome (buttons, hover affordances) inside a slide."""

    @abstractmethod
    def hide(self):
        ...

    @abstractmethod
    def restore(self):
        ...


class LoadableImage(ABC):
    @abstractmethod
    def wait_until_loaded(self, timeout: float) -> bool:
        """Block until loaded or ``timeout`` seconds pass; True if loaded."""


class SlideView(ABC):
    """One mounted slide."""

    @abstractmethod
    def scroll_into_view(self):
        ...

    @abstractmethod
    def interactive_elements(self, selector: str = CHROME_SELECTOR) -> List[InteractiveElement]:
        ...

    @abstractmethod
    def images(self) -> List[LoadableImage]:
        ...

    @abstractmethod
    def reflow(self):
        ...

    @abstractmethod
    def capture(self, scale: float, ignore: Sequence[InteractiveElement] = ()) -> Image.Image:
        ...


class SlideSurface(ABC):
    """Container holding the mounted slides, in deck order."""

    @abstractmethod
    def query_slides(self, selector: str = SLIDE_SELECTOR) -> List[SlideView]:
        ...


@dataclass
class CapturedSlide:
    index: int
    data: bytes
    mimetype: str
    size: tuple

    @property
    def data_url(self) -> str:
        return to_data_url(self.data, self.mimetype)


# =============================================================================
# CAPTURE
# =============================================================================

def _encode(bitmap: Image.Image, fmt: str, quality: int = 95) -> bytes:
    output = io.BytesIO()
    if fmt == 'JPEG':
        if bitmap.mode != 'RGB':
            flattened = Image.new('RGB', bitmap.size, (255, 255, 255))
            rgba = bitmap.convert('RGBA')
            flattened.paste(rgba, mask=rgba.split()[-1])
            bitmap = flattened
        bitmap.save(output, format='JPEG', quality=quality)
    else:
        bitmap.save(output, format='PNG')
    return output.getvalue()


def encode_capture(index: int, bitmap: Image.Image, config: ExportConfig = DEFAULT_CONFIG) -> CapturedSlide:
    """PNG-encode a capture, downscaling to JPEG when a size cap applies.

    Raises SlideTooLargeError if the slide is still over the cap after
    ``downscale_attempts`` rounds.
    """
    data = _encode(bitmap, 'PNG')
    limit = config.max_slide_bytes
    if not limit or len(data) <= limit:
        return CapturedSlide(index, data, 'image/png', bitmap.size)

    current = bitmap
    for _ in range(max(1, config.downscale_attempts)):
        width = max(1, int(current.width * config.downscale_factor))
        height = max(1, int(current.height * config.downscale_factor))
        current = current.resize((width, height), Image.LANCZOS)
        data = _encode(current, 'JPEG', config.jpeg_quality)
        logger.info(f'[Raster] Slide {index + 1} downscaled to {width}x{height}: {len(data)} bytes')
        if len(data) <= limit:
            return CapturedSlide(index, data, 'image/jpeg', current.size)

    raise SlideTooLargeError(index, len(data), limit)


def capture_slides(surface: SlideSurface, reporter: Optional[ProgressReporter] = None,
                   config: ExportConfig = DEFAULT_CONFIG,
                   sleep: Callable[[float], None] = time.sleep) -> List[CapturedSlide]:
    """Capture every mounted slide, strictly in order.

    Oversized slides are skipped with a warning; everything else
    propagates to the caller.
    """
    reporter = reporter or NULL_REPORTER
    views = surface.query_slides(SLIDE_SELECTOR)
    if not views:
        raise NoSlidesError()

    total = len(views)
    captures: List[CapturedSlide] = []
    for index, view in enumerate(views):
        reporter.progress(f'Processing slide {index + 1}/{total}...')

        view.scroll_into_view()
        sleep(config.slide_render_wait)

        chrome = view.interactive_elements(CHROME_SELECTOR)
        for element in chrome:
            element.hide()
        try:
            images = view.images()
            for image in images:
                try:
                    loaded = image.wait_until_loaded(config.image_load_timeout)
                except Exception as e:
                    logger.warning(f'[Raster] Image failed on slide {index + 1}: {e}')
                    loaded = False
                if not loaded:
                    logger.warning(f'[Raster] Image not loaded on slide {index + 1}, capturing anyway')
            sleep(config.final_render_wait)

            view.reflow()
            bitmap = view.capture(config.raster_scale, ignore=chrome)
        finally:
            for element in chrome:
                element.restore()

        try:
            captures.append(encode_capture(index, bitmap, config))
        except SlideTooLargeError as e:
            reporter.warn(str(e))
            continue
        logger.info(f'[Raster] Captured slide {index + 1}/{total} with {len(images)} images')

    return captures


# =============================================================================
# ASSEMBLY
# =============================================================================

def build_pdf(captures: Sequence[CapturedSlide], title: str = '') -> bytes:
    """One portrait A4 page per capture, full width, vertically centred."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    if title:
        pdf.setTitle(title)
    page_width, page_height = A4

    for capture in captures:
        image = ImageReader(io.BytesIO(capture.data))
        image_width, image_height = image.getSize()
        draw_height = image_height * page_width / image_width
        y_offset = (page_height - draw_height) / 2
        pdf.drawImage(image, 0, y_offset, width=page_width, height=draw_height)
        pdf.showPage()

    pdf.save()
    logger.info(f'[PDF] Built {len(captures)} pages')
    return buffer.getvalue()


HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
        body {{
            margin: 0;
            padding: 0;
            background: #f5f5f5;
        }}
        .slide {{
            width: 100%;
            max-width: 800px;
            margin: 20px auto;
            box-shadow: 0 4px 8px rgba(0,0,0,0.1);
            border-radius: 8px;
            overflow: hidden;
        }}
        .slide img {{
            width: 100%;
            height: auto;
            display: block;
        }}
        .slide-number {{
            background: #333;
            color: white;
            padding: 10px;
            text-align: center;
            font-family: Arial, sans-serif;
        }}
        @media print {{
            .slide {{
                page-break-after: always;
                margin: 0;
                box-shadow: none;
            }}
        }}
    </style>
</head>
<body>
{slides}
</body>
</html>
"""

SLIDE_TEMPLATE = """    <div class="slide">
        <div class="slide-number">Slide {number} of {total}</div>
        <img src="{src}" alt="Slide {number}">
    </div>"""


def build_html(captures: Sequence[CapturedSlide], title: str, total: Optional[int] = None) -> bytes:
    """Static single-file document, one captioned slide per capture.

    Captions keep each slide's deck position, so a skipped slide leaves a
    gap in the numbering; ``total`` is the deck's slide count.
    """
    if total is None:
        total = max([len(captures)] + [capture.index + 1 for capture in captures])
    slides = '\n'.join(
        SLIDE_TEMPLATE.format(number=capture.index + 1, total=total, src=capture.data_url)
        for capture in captures
    )
    document = HTML_TEMPLATE.format(title=html.escape(title or ''), slides=slides)
    logger.info(f'[HTML] Built document with {len(captures)} of {total} slides')
    return document.encode('utf-8')


def build_image_pptx(captures: Sequence[CapturedSlide]) -> bytes:
    """16:9 deck with each capture stretched over a white slide."""
    prs = Presentation()
    prs.slide_width = Inches(SLIDE_WIDTH_IN)
    prs.slide_height = Inches(SLIDE_HEIGHT_IN)

    for capture in captures:
        slide = prs.slides.add_slide(prs.slide_layouts[6])
        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = _WHITE
        slide.shapes.add_picture(io.BytesIO(capture.data), 0, 0,
                                 width=prs.slide_width, height=prs.slide_height)

    output = io.BytesIO()
    prs.save(output)
    logger.info(f'[PPTX] Built image deck with {len(captures)} slides')
    return output.getvalue()
