"""Headless slide surface drawn with Pillow.

Mounts each slide of a deck the way the preview shows it (background,
image or placeholder, title/body text, overlays, edit badge) so the
rasterizing exporter can capture it server-side.
"""

import io
import os
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from deck_export.backgrounds import BackgroundSpec, resolve_background
from deck_export.config import DEFAULT_CONFIG, ExportConfig
from deck_export.images import (
    PLACEHOLDER_BORDER, PLACEHOLDER_FILL, PLACEHOLDER_FONT_SIZE, PLACEHOLDER_TEXT,
    PLACEHOLDER_TEXT_COLOR, ResolvedImage, fetch_overlay, resolve_image,
)
from deck_export.layouts import CANVAS_WIDTH, Box, geometry_for
from deck_export.models import Deck, Slide, Theme
from deck_export.raster import (
    CHROME_SELECTOR, SLIDE_SELECTOR, InteractiveElement, LoadableImage, SlideSurface, SlideView,
)
from deck_export.slide_text import TextBlock, text_blocks
from deck_export.styles import hex_to_tuple
from deck_export.utils import get_logger

logger = get_logger(__name__)

PREVIEW_SIZE = (960, 540)
LINE_HEIGHT = 1.2
MARKER_INDENT_IN = 0.35

# Font candidates per generic family and face
FONT_PATHS = {
    'sans': {
        'regular': [
            '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',  # Linux
            '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',  # Linux
            '/System/Library/Fonts/Helvetica.ttc',  # macOS
            'C:\\Windows\\Fonts\\arial.ttf',  # Windows
        ],
        'bold': [
            '/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf',
            '/System/Library/Fonts/Helvetica.ttc',
            'C:\\Windows\\Fonts\\arialbd.ttf',
        ],
        'italic': [
            '/usr/share/fonts/truetype/liberation/LiberationSans-Italic.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSans-Oblique.ttf',
            'C:\\Windows\\Fonts\\ariali.ttf',
        ],
        'bold_italic': [
            '/usr/share/fonts/truetype/liberation/LiberationSans-BoldItalic.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSans-BoldOblique.ttf',
            'C:\\Windows\\Fonts\\arialbi.ttf',
        ],
    },
    'serif': {
        'regular': [
            '/usr/share/fonts/truetype/liberation/LiberationSerif-Regular.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSerif.ttf',
            '/System/Library/Fonts/Times.ttc',
            'C:\\Windows\\Fonts\\times.ttf',
        ],
        'bold': [
            '/usr/share/fonts/truetype/liberation/LiberationSerif-Bold.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSerif-Bold.ttf',
            '/System/Library/Fonts/Times.ttc',
            'C:\\Windows\\Fonts\\timesbd.ttf',
        ],
        'italic': [
            '/usr/share/fonts/truetype/liberation/LiberationSerif-Italic.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSerif-Italic.ttf',
            'C:\\Windows\\Fonts\\timesi.ttf',
        ],
        'bold_italic': [
            '/usr/share/fonts/truetype/liberation/LiberationSerif-BoldItalic.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSerif-BoldItalic.ttf',
            'C:\\Windows\\Fonts\\timesbi.ttf',
        ],
    },
    'mono': {
        'regular': [
            '/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf',
            '/System/Library/Fonts/Courier.ttc',
            'C:\\Windows\\Fonts\\cour.ttf',
        ],
        'bold': [
            '/usr/share/fonts/truetype/liberation/LiberationMono-Bold.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Bold.ttf',
            '/System/Library/Fonts/Courier.ttc',
            'C:\\Windows\\Fonts\\courbd.ttf',
        ],
        'italic': [
            '/usr/share/fonts/truetype/liberation/LiberationMono-Italic.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Oblique.ttf',
            'C:\\Windows\\Fonts\\couri.ttf',
        ],
        'bold_italic': [
            '/usr/share/fonts/truetype/liberation/LiberationMono-BoldItalic.ttf',
            '/usr/share/fonts/truetype/dejavu/DejaVuSansMono-BoldOblique.ttf',
            'C:\\Windows\\Fonts\\courbi.ttf',
        ],
    },
}

_SERIF_FAMILIES = {'times new roman', 'georgia', 'garamond', 'cambria'}


def generic_family(family: str) -> str:
    name = (family or '').lower()
    if 'courier' in name or 'mono' in name:
        return 'mono'
    if name in _SERIF_FAMILIES:
        return 'serif'
    return 'sans'


def font_candidates(family: str, bold: bool = False, italic: bool = False) -> List[str]:
    """Font files to try, closest face first, ending with the regular face."""
    faces = FONT_PATHS[generic_family(family)]
    order = []
    if bold and italic:
        order.append('bold_italic')
    if italic:
        order.append('italic')
    if bold:
        order.append('bold')
    order.append('regular')
    return [path for face in order for path in faces[face]]


@lru_cache(maxsize=128)
def load_font(family: str, size: int, bold: bool = False, italic: bool = False):
    """TrueType font for a family, or Pillow's built-in font if none is installed."""
    for path in font_candidates(family, bold, italic):
        if os.path.exists(path):
            try:
                return ImageFont.truetype(path, size)
            except OSError as e:
                logger.warning(f'[Render] Failed to load font {path}: {e}')
    return ImageFont.load_default(size=size)


def wrap_text(text: str, font, max_width: float) -> List[str]:
    """Wrap text to fit within max_width"""
    words = text.split()
    lines, current = [], []
    for word in words:
        candidate = ' '.join(current + [word])
        if font.getlength(candidate) <= max_width or not current:
            current.append(word)
        else:
            lines.append(' '.join(current))
            current = [word]
    if current:
        lines.append(' '.join(current))
    return lines or ['']


# =============================================================================
# MOUNTED ELEMENTS
# =============================================================================

class EditBadge(InteractiveElement):
    """Hover-only edit button drawn in a slide's top-right corner."""

    def __init__(self):
        self.hidden = False

    def hide(self):
        self.hidden = True

    def restore(self):
        self.hidden = False


class SlideImageHandle(LoadableImage):
    """The slide's image, resolved on a worker thread from the moment the slide is mounted."""

    def __init__(self, url: str, theme_id: str, layout: str, config: ExportConfig,
                 pool: Optional[Executor] = None):
        self.url = url
        self.theme_id = theme_id
        self.layout = layout
        self.config = config
        self.pool = pool or ThreadPoolExecutor(max_workers=1)
        self.future: Optional[Future] = None

    def start(self) -> Future:
        if self.future is None:
            self.future = self.pool.submit(resolve_image, self.url, self.theme_id, self.layout, self.config)
        return self.future

    @property
    def resolved(self) -> Optional[ResolvedImage]:
        if self.future is None or not self.future.done() or self.future.cancelled():
            return None
        if self.future.exception() is not None:
            return None
        return self.future.result()

    @property
    def loaded(self) -> bool:
        return self.resolved is not None

    def wait_until_loaded(self, timeout: float) -> bool:
        try:
            return self.start().result(timeout=timeout) is not None
        except FutureTimeout:
            logger.warning(f'[Render] Image still loading after {timeout}s: {self.url[:100]}')
            return False


class RenderedSlide(SlideView):
    def __init__(self, index: int, slide: Slide, theme: Theme, background: BackgroundSpec,
                 size: Tuple[int, int] = PREVIEW_SIZE, config: ExportConfig = DEFAULT_CONFIG,
                 pool: Optional[Executor] = None):
        self.index = index
        self.slide = slide
        self.theme = theme
        self.background = background
        self.size = size
        self.config = config
        self.in_view = False
        self.reflowed = False
        self.badge = EditBadge()

        geometry = geometry_for(slide.layout)
        self.image_handle = None
        if geometry.show_image and slide.image and slide.image.url:
            self.image_handle = SlideImageHandle(slide.image.url, theme.id, slide.layout, config, pool)
            self.image_handle.start()

    def scroll_into_view(self):
        self.in_view = True

    def interactive_elements(self, selector: str = CHROME_SELECTOR) -> List[InteractiveElement]:
        return [self.badge]

    def images(self) -> List[LoadableImage]:
        return [self.image_handle] if self.image_handle is not None else []

    def reflow(self):
        self.reflowed = True

    def capture(self, scale: float, ignore: Sequence[InteractiveElement] = ()) -> Image.Image:
        width, height = int(self.size[0] * scale), int(self.size[1] * scale)
        ppi = width / CANVAS_WIDTH
        canvas = Image.new('RGBA', (width, height), hex_to_tuple(self.background.color) + (255,))
        if self.background.image is not None:
            with Image.open(io.BytesIO(self.background.image)) as source:
                canvas.alpha_composite(source.convert('RGBA').resize((width, height), Image.LANCZOS))
        draw = ImageDraw.Draw(canvas)

        geometry = geometry_for(self.slide.layout)
        if geometry.overlay and self.image_handle is not None:
            self._draw_image(canvas, draw, geometry.image, ppi)
        for block in text_blocks(self.slide, self.theme):
            draw_text_block(draw, block, ppi)
        if not geometry.overlay and self.image_handle is not None:
            self._draw_image(canvas, draw, geometry.image, ppi)

        self._draw_overlays(canvas, width, height)
        if not self.badge.hidden and self.badge not in ignore:
            draw_badge(draw, width, ppi)
        return canvas

    def _draw_image(self, canvas: Image.Image, draw: ImageDraw.ImageDraw, box: Box, ppi: float):
        target = _pixels(box, ppi)
        if not self.image_handle.loaded:
            draw_placeholder(draw, target, ppi)
            return
        try:
            with Image.open(self.image_handle.resolved.stream()) as source:
                picture = source.convert('RGBA')
        except Exception as e:
            logger.warning(f'[Render] Slide {self.index + 1}: unreadable image: {e}')
            draw_placeholder(draw, target, ppi)
            return
        picture.thumbnail((target[2] - target[0], target[3] - target[1]), Image.LANCZOS)
        x = target[0] + (target[2] - target[0] - picture.width) // 2
        y = target[1] + (target[3] - target[1] - picture.height) // 2
        canvas.alpha_composite(picture, (x, y))

    def _draw_overlays(self, canvas: Image.Image, width: int, height: int):
        for i, element in enumerate(self.slide.elements):
            content = fetch_overlay(element.svg, self.config)
            if content is None:
                continue
            w = max(1, int(element.w / 100 * width))
            h = max(1, int(element.h / 100 * height))
            try:
                with Image.open(io.BytesIO(content)) as source:
                    graphic = source.convert('RGBA').resize((w, h), Image.LANCZOS)
                canvas.alpha_composite(graphic, (int(element.x / 100 * width), int(element.y / 100 * height)))
            except Exception as e:
                logger.warning(f'[Render] Slide {self.index + 1}: could not draw overlay {i + 1}: {e}')


# =============================================================================
# DRAWING
# =============================================================================

def _pixels(box: Box, ppi: float) -> Tuple[int, int, int, int]:
    return (int(box.x * ppi), int(box.y * ppi), int(box.right * ppi), int(box.bottom * ppi))


def _font_px(points: float, ppi: float) -> int:
    return max(1, int(round(points / 72 * ppi)))


def draw_justified(draw: ImageDraw.ImageDraw, origin: Tuple[float, float], line: str, font, width: float, fill):
    """Spread the words of one wrapped line across ``width``."""
    words = line.split()
    gap = (width - sum(font.getlength(word) for word in words)) / (len(words) - 1)
    x, y = origin
    for word in words:
        draw.text((x, y), word, font=font, fill=fill)
        x += font.getlength(word) + gap


def draw_text_block(draw: ImageDraw.ImageDraw, block: TextBlock, ppi: float):
    left, top, right, bottom = _pixels(block.box, ppi)
    size = _font_px(block.size, ppi)
    font = load_font(block.family, size, block.bold, block.rich.italic)
    color = hex_to_tuple(block.color)
    line_height = size * LINE_HEIGHT
    indent = int(MARKER_INDENT_IN * ppi) if block.marker else 0

    y = top
    for i, item in enumerate(block.lines):
        if y >= bottom:
            break
        if block.marker:
            marker = f'{block.start_at + i}.' if block.marker == 'number' else '•'
            draw.text((left, y), marker, font=font, fill=hex_to_tuple(block.marker_color or block.color))
        max_width = right - left - indent
        wrapped = wrap_text(item, font, max_width)
        for j, line in enumerate(wrapped):
            x = left + indent
            # the last line of a justified paragraph stays left-aligned
            if block.align == 'justify' and j < len(wrapped) - 1 and ' ' in line:
                draw_justified(draw, (x, y), line, font, max_width, color)
                line_width = max_width
            else:
                line_width = font.getlength(line)
                if block.align == 'center':
                    x += (max_width - line_width) / 2
                elif block.align == 'right':
                    x += max_width - line_width
                draw.text((x, y), line, font=font, fill=color)
            if block.rich.underline:
                draw.line([(x, y + size * 1.05), (x + line_width, y + size * 1.05)], fill=color, width=max(1, size // 14))
            if block.rich.strike:
                draw.line([(x, y + size * 0.55), (x + line_width, y + size * 0.55)], fill=color, width=max(1, size // 14))
            y += line_height


def draw_placeholder(draw: ImageDraw.ImageDraw, target: Tuple[int, int, int, int], ppi: float):
    draw.rectangle(target, fill=hex_to_tuple(PLACEHOLDER_FILL), outline=hex_to_tuple(PLACEHOLDER_BORDER))
    font = load_font('Arial', _font_px(PLACEHOLDER_FONT_SIZE, ppi))
    cx = (target[0] + target[2]) / 2
    cy = (target[1] + target[3]) / 2
    draw.text((cx, cy), PLACEHOLDER_TEXT, font=font, fill=hex_to_tuple(PLACEHOLDER_TEXT_COLOR), anchor='mm')


def draw_badge(draw: ImageDraw.ImageDraw, width: int, ppi: float):
    pad = int(0.15 * ppi)
    w, h = int(0.8 * ppi), int(0.35 * ppi)
    box = (width - pad - w, pad, width - pad, pad + h)
    draw.rounded_rectangle(box, radius=h // 4, fill=(17, 24, 39, 200))
    font = load_font('Arial', max(1, int(h * 0.5)))
    draw.text(((box[0] + box[2]) / 2, (box[1] + box[3]) / 2), 'Edit', font=font, fill=(255, 255, 255), anchor='mm')


# =============================================================================
# SURFACE
# =============================================================================

class DeckSurface(SlideSurface):
    """Every slide of a deck, mounted in order; images start loading at mount time."""

    def __init__(self, deck: Deck, theme: Optional[Theme] = None, config: ExportConfig = DEFAULT_CONFIG,
                 size: Tuple[int, int] = PREVIEW_SIZE):
        self.deck = deck
        self.theme = theme or deck.theme
        self.config = config
        self.size = size
        self.pool = ThreadPoolExecutor(max_workers=max(1, config.max_concurrent_fetches))
        self._views: Optional[List[RenderedSlide]] = None

    def query_slides(self, selector: str = SLIDE_SELECTOR) -> List[SlideView]:
        if self._views is None:
            background = resolve_background(self.theme, self.config) if self.deck.slides else None
            self._views = [
                RenderedSlide(i, slide, self.theme, background, self.size, self.config, self.pool)
                for i, slide in enumerate(self.deck.slides)
            ]
            logger.info(f'[Render] Mounted {len(self._views)} slides')
        return list(self._views)

    def close(self):
        """Stop loading images that nobody will wait for."""
        self.pool.shutdown(wait=False, cancel_futures=True)
