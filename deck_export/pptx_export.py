"""Structured exporter: build an editable PPTX from the in-memory deck.

Every slide gets its own background, native text boxes for title and body,
and either the (framed) image or a neutral placeholder. Assets for all
slides are resolved concurrently up front; slides are emitted in deck order.
"""

import io
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from lxml import etree
from PIL import Image
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.oxml.ns import qn
from pptx.util import Inches, Pt

from deck_export.backgrounds import BackgroundSpec, resolve_background
from deck_export.config import DEFAULT_CONFIG, SLIDE_HEIGHT_IN, SLIDE_WIDTH_IN, ExportConfig
from deck_export.images import (
    PLACEHOLDER_BORDER, PLACEHOLDER_FILL, PLACEHOLDER_FONT_SIZE, PLACEHOLDER_TEXT,
    PLACEHOLDER_TEXT_COLOR, ResolvedImage, fetch_overlay, resolve_image,
)
from deck_export.layouts import CANVAS_HEIGHT, CANVAS_WIDTH, Box, geometry_for
from deck_export.models import Deck, OverlayElement, Slide, Theme
from deck_export.progress import NULL_REPORTER, ProgressReporter
from deck_export.slide_text import TextBlock, text_blocks
from deck_export.styles import normalize_color
from deck_export.utils import get_logger

logger = get_logger(__name__)

DECK_SUBJECT = 'AI Generated Presentation'

ALIGN = {
    'left': PP_ALIGN.LEFT,
    'center': PP_ALIGN.CENTER,
    'right': PP_ALIGN.RIGHT,
    'justify': PP_ALIGN.JUSTIFY,
}


def hex_to_rgb(hex_color: str) -> RGBColor:
    """Convert hex color to RGBColor"""
    return RGBColor.from_string(normalize_color(hex_color))


# =============================================================================
# ASSET RESOLUTION
# =============================================================================

@dataclass
class SlideAssets:
    image: Optional[ResolvedImage] = None
    overlays: List[Optional[bytes]] = field(default_factory=list)


@dataclass
class PendingAssets:
    image: Optional[Future]
    overlays: List[Future]

    def result(self) -> SlideAssets:
        image = self.image.result() if self.image is not None else None
        return SlideAssets(image=image, overlays=[f.result() for f in self.overlays])


def resolve_slide_assets(slide: Slide, theme: Theme, pool: ThreadPoolExecutor,
                         config: ExportConfig) -> PendingAssets:
    """Start fetching a slide's image and overlays; none depend on each other."""
    geometry = geometry_for(slide.layout)
    image = None
    if geometry.show_image and slide.image and slide.image.url:
        image = pool.submit(resolve_image, slide.image.url, theme.id, slide.layout, config)
    overlays = [pool.submit(fetch_overlay, element.svg, config) for element in slide.elements]
    return PendingAssets(image, overlays)


# =============================================================================
# SHAPES
# =============================================================================

def _set_marker(paragraph, color: str, start_at: Optional[int] = None):
    """Native bullet, or auto-numbering from ``start_at``."""
    pPr = paragraph._p.get_or_add_pPr()
    for child in list(pPr):
        if etree.QName(child).localname.startswith('bu'):
            pPr.remove(child)
    pPr.set('marL', str(Inches(0.35)))
    pPr.set('indent', str(-Inches(0.3)))

    bu_clr = etree.SubElement(pPr, qn('a:buClr'))
    etree.SubElement(bu_clr, qn('a:srgbClr')).set('val', normalize_color(color))
    if start_at is None:
        etree.SubElement(pPr, qn('a:buChar')).set('char', '•')
    else:
        bu_num = etree.SubElement(pPr, qn('a:buAutoNum'))
        bu_num.set('type', 'arabicPeriod')
        bu_num.set('startAt', str(start_at))


def _style_font(font, block: TextBlock):
    font.size = Pt(block.size)
    font.name = block.family
    font.bold = block.bold
    font.italic = block.rich.italic
    font.underline = block.rich.underline
    font.color.rgb = hex_to_rgb(block.color)
    if block.rich.strike:
        font._rPr.set('strike', 'sngStrike')


def add_text_block(slide, block: TextBlock):
    """Top-anchored, word-wrapped text box with one paragraph per line."""
    box = block.box
    shape = slide.shapes.add_textbox(Inches(box.x), Inches(box.y), Inches(box.w), Inches(box.h))
    shape.name = block.name
    tf = shape.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = MSO_ANCHOR.TOP

    for i, line in enumerate(block.lines or ['']):
        p = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
        if block.marker == 'number':
            _set_marker(p, block.marker_color or block.color, block.start_at + i)
        elif block.marker == 'bullet':
            _set_marker(p, block.marker_color or block.color)
        p.text = line
        p.alignment = ALIGN.get(block.align, PP_ALIGN.LEFT)
        _style_font(p.font, block)
        for run in p.runs:
            _style_font(run.font, block)
    return shape


def add_placeholder(slide, box: Box):
    """Neutral block standing in for an image that could not be resolved."""
    shape = slide.shapes.add_textbox(Inches(box.x), Inches(box.y), Inches(box.w), Inches(box.h))
    shape.name = 'Image Placeholder'
    shape.fill.solid()
    shape.fill.fore_color.rgb = hex_to_rgb(PLACEHOLDER_FILL)
    shape.line.color.rgb = hex_to_rgb(PLACEHOLDER_BORDER)
    shape.line.width = Pt(1)

    tf = shape.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = MSO_ANCHOR.MIDDLE
    p = tf.paragraphs[0]
    p.text = PLACEHOLDER_TEXT
    p.alignment = PP_ALIGN.CENTER
    p.font.size = Pt(PLACEHOLDER_FONT_SIZE)
    p.font.color.rgb = hex_to_rgb(PLACEHOLDER_TEXT_COLOR)
    return shape


def contain(box: Box, width: int, height: int) -> Box:
    """Largest box with the image's aspect ratio that fits ``box``, centred."""
    if width <= 0 or height <= 0:
        return box
    scale = min(box.w / width, box.h / height)
    w, h = width * scale, height * scale
    return Box(box.x + (box.w - w) / 2, box.y + (box.h - h) / 2, w, h)


def add_image(slide, box: Box, image: ResolvedImage):
    content = image.read()
    with Image.open(io.BytesIO(content)) as picture:
        width, height = picture.size
    target = contain(box, width, height)
    picture = slide.shapes.add_picture(io.BytesIO(content), Inches(target.x), Inches(target.y),
                                       width=Inches(target.w), height=Inches(target.h))
    picture.name = 'Image'
    return picture


def add_overlays(slide, elements: Sequence[OverlayElement], rendered: Sequence[Optional[bytes]]):
    for i, (element, content) in enumerate(zip(elements, rendered)):
        if content is None:
            continue
        x = element.x / 100 * CANVAS_WIDTH
        y = element.y / 100 * CANVAS_HEIGHT
        w = element.w / 100 * CANVAS_WIDTH
        h = element.h / 100 * CANVAS_HEIGHT
        try:
            picture = slide.shapes.add_picture(io.BytesIO(content), Inches(x), Inches(y),
                                               width=Inches(w), height=Inches(h))
            picture.name = f'Overlay {i + 1}'
        except Exception as e:
            logger.warning(f'[PPTX] Could not place overlay {i + 1}: {e}')


def apply_background(slide, background: BackgroundSpec):
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = hex_to_rgb(background.color)
    if background.image is not None:
        picture = slide.shapes.add_picture(io.BytesIO(background.image), 0, 0,
                                           width=Inches(SLIDE_WIDTH_IN), height=Inches(SLIDE_HEIGHT_IN))
        picture.name = 'Background'


# =============================================================================
# SLIDES
# =============================================================================

def create_slide(prs, data: Slide, theme: Theme, background: BackgroundSpec, assets: SlideAssets):
    slide = prs.slides.add_slide(prs.slide_layouts[6])  # Blank
    apply_background(slide, background)

    geometry = geometry_for(data.layout)
    has_image = geometry.show_image and data.image is not None and bool(data.image.url)

    def place_image():
        if assets.image is None:
            add_placeholder(slide, geometry.image)
            return
        try:
            add_image(slide, geometry.image, assets.image)
        except Exception as e:
            logger.warning(f'[PPTX] Error adding image: {e}')
            add_placeholder(slide, geometry.image)

    # full-bleed image sits under the overlay text
    if geometry.overlay and has_image:
        place_image()
    for block in text_blocks(data, theme):
        add_text_block(slide, block)
    if not geometry.overlay and has_image:
        place_image()

    add_overlays(slide, data.elements, assets.overlays)
    return slide


def build_pptx(deck: Deck, reporter: Optional[ProgressReporter] = None, config: ExportConfig = DEFAULT_CONFIG,
               theme: Optional[Theme] = None) -> bytes:
    """Create an editable PPTX from a deck; ``theme`` overrides the deck's own."""
    reporter = reporter or NULL_REPORTER
    theme = theme or deck.theme

    prs = Presentation()
    # Keep authoring metadata out of the file
    prs.core_properties.author = ''
    prs.core_properties.last_modified_by = ''
    prs.core_properties.comments = ''
    prs.core_properties.title = deck.title
    prs.core_properties.subject = DECK_SUBJECT
    prs.slide_width = Inches(SLIDE_WIDTH_IN)  # 16:9
    prs.slide_height = Inches(SLIDE_HEIGHT_IN)

    background = resolve_background(theme, config)
    total = len(deck.slides)

    with ThreadPoolExecutor(max_workers=max(1, config.max_concurrent_fetches)) as pool:
        pending = [resolve_slide_assets(s, theme, pool, config) for s in deck.slides]
        for i, (data, assets) in enumerate(zip(deck.slides, pending)):
            reporter.progress(f'Creating slide {i + 1}/{total}...')
            logger.info(f'[PPTX] Creating slide {i + 1}: {data.layout}')
            create_slide(prs, data, theme, background, assets.result())

    reporter.progress('Saving PPTX file...')
    pptx_bytes = io.BytesIO()
    prs.save(pptx_bytes)
    pptx_bytes.seek(0)

    return pptx_bytes.getvalue()
