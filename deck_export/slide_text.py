"""Where and how a slide's title and body text are placed.

Shared by the PPTX writer and the headless renderer so both outputs size,
colour and stack text identically. Boxes are in canvas inches.
"""

from dataclasses import dataclass
from typing import List, Optional

from deck_export.layouts import Box, Layout, column_boxes, geometry_for, split_columns
from deck_export.models import Slide, Theme
from deck_export.richtext import (
    BODY_HEADING_BUMP, OVERLAY_BODY_HEADING_BUMP, OVERLAY_TITLE_HEADING_BUMP, TITLE_HEADING_BUMP,
    RichText, rich_or_plain,
)
from deck_export.styles import resolve_text_style, role_colors, text_alignment

TEXT_ONLY_TITLE_BUMP = 4
OVERLAY_TITLE_BUMP = 4
OVERLAY_BODY_BUMP = 2
OVERLAY_TITLE_Y = 1.5
OVERLAY_STEP = 1.3
NUMBERED_ITEM_SPACING = 0.8
NUMBERED_ITEM_HEIGHT = 0.7
NUMBERED_ITEM_INSET = 0.3
WHITE = 'FFFFFF'


@dataclass(frozen=True)
class TextBlock:
    name: str
    box: Box
    lines: List[str]
    size: int
    family: str
    color: str
    bold: bool
    rich: RichText
    align: str = 'left'
    # None, 'bullet' or 'number'
    marker: Optional[str] = None
    marker_color: Optional[str] = None
    start_at: int = 1


def body_items(slide: Slide) -> List[RichText]:
    """Non-blank body items, each from its rich-text source when present."""
    html = slide.bullets_html or []
    items = []
    for i, bullet in enumerate(slide.bullets):
        if not bullet or not bullet.strip():
            continue
        items.append(rich_or_plain(bullet, html[i] if i < len(html) else None))
    return items


def title_block(slide: Slide, theme: Theme, box: Box, layout: Layout) -> Optional[TextBlock]:
    if not slide.title:
        return None
    style = resolve_text_style(theme, 'heading')
    rich = rich_or_plain(slide.title, slide.title_html)
    if layout == Layout.TEXT_ONLY:
        size = style.size + TEXT_ONLY_TITLE_BUMP
    else:
        size = style.size + TITLE_HEADING_BUMP.get(rich.heading_level, 0)
    default_align = 'center' if layout == Layout.TITLE_ONLY else style.alignment
    return TextBlock(
        name='Title', box=box, lines=[rich.text], size=size, family=style.family, color=style.color,
        bold=rich.bold or style.bold, rich=rich, align=text_alignment(rich.align, default_align),
    )


def body_blocks(slide: Slide, theme: Theme, box: Box, layout: Layout, columns: int = 0) -> List[TextBlock]:
    items = body_items(slide)
    if not items:
        return []
    style = resolve_text_style(theme, 'body')
    bullet_color = role_colors(theme)['bullet']

    if layout == Layout.TEXT_ONLY:
        # one numbered box per item so long lists never overlap
        return [
            TextBlock(
                name=f'Body {i + 1}',
                box=Box(box.x + NUMBERED_ITEM_INSET, box.y + i * NUMBERED_ITEM_SPACING,
                        box.w - 2 * NUMBERED_ITEM_INSET, NUMBERED_ITEM_HEIGHT),
                lines=[rich.text], size=style.size, family=style.family, color=style.color,
                bold=rich.bold or style.bold, rich=rich, align=text_alignment(rich.align, style.alignment),
                marker='number', marker_color=bullet_color, start_at=i + 1,
            )
            for i, rich in enumerate(items)
        ]

    first = items[0]
    common = dict(
        size=style.size + BODY_HEADING_BUMP.get(first.heading_level, 0), family=style.family,
        color=style.color, bold=first.bold or style.bold, rich=first,
        align=text_alignment(first.align, style.alignment), marker_color=bullet_color,
    )
    texts = [rich.text for rich in items]

    if columns:
        return [
            TextBlock(name=f'Body Column {i + 1}', box=column_box, lines=column, marker='bullet', **common)
            for i, (column, column_box) in enumerate(zip(split_columns(texts, columns), column_boxes(box, columns)))
            if column
        ]

    marker = None if layout == Layout.PARAGRAPH else 'bullet'
    return [TextBlock(name='Body', box=box, lines=texts, marker=marker, **common)]


def overlay_blocks(slide: Slide, theme: Theme) -> List[TextBlock]:
    """White, centred title and body stacked on a full-bleed image."""
    heading = resolve_text_style(theme, 'heading')
    body = resolve_text_style(theme, 'body')
    blocks = []
    y = OVERLAY_TITLE_Y

    if slide.title:
        rich = rich_or_plain(slide.title, slide.title_html)
        blocks.append(TextBlock(
            name='Title', box=Box(0.5, y, 12.33, 1.2), lines=[rich.text],
            size=heading.size + OVERLAY_TITLE_HEADING_BUMP.get(rich.heading_level, OVERLAY_TITLE_BUMP),
            family=heading.family, color=WHITE, bold=rich.bold or heading.bold, rich=rich,
            align=text_alignment(rich.align, 'center'),
        ))
        y += OVERLAY_STEP

    items = body_items(slide)
    if items:
        first = items[0]
        blocks.append(TextBlock(
            name='Body', box=Box(1, y, 11.33, 3), lines=[rich.text for rich in items],
            size=body.size + OVERLAY_BODY_HEADING_BUMP.get(first.heading_level, OVERLAY_BODY_BUMP),
            family=body.family, color=WHITE, bold=first.bold or body.bold, rich=first,
            align=text_alignment(first.align, 'center'), marker='bullet', marker_color=WHITE,
        ))
    return blocks


def text_blocks(slide: Slide, theme: Theme) -> List[TextBlock]:
    """All text blocks for a slide, in emission order."""
    layout = Layout.parse(slide.layout)
    geometry = geometry_for(layout)
    if geometry.overlay:
        return overlay_blocks(slide, theme)

    blocks = []
    if geometry.show_title:
        title = title_block(slide, theme, geometry.title, layout)
        if title is not None:
            blocks.append(title)
    if geometry.show_body:
        blocks.extend(body_blocks(slide, theme, geometry.body, layout, geometry.columns))
    return blocks
