"""Layout geometry table.

Boxes are expressed on the 13.33 x 7.5 PPTX canvas (inches) and scaled to
any other aspect-locked canvas, e.g. pixels for the headless renderer.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

CANVAS_WIDTH = 13.33
CANVAS_HEIGHT = 7.5
COLUMN_GUTTER = 0.3


class Layout(str, Enum):
    IMAGE_LEFT = 'image-left'
    IMAGE_RIGHT = 'image-right'
    IMAGE_TOP = 'image-top'
    IMAGE_BOTTOM = 'image-bottom'
    FULL_IMAGE = 'full-image'
    TEXT_ONLY = 'text-only'
    TITLE_ONLY = 'title-only'
    SPLIT = 'split'
    PARAGRAPH = 'paragraph'
    TWO_COLUMNS = '2-columns'
    THREE_COLUMNS = '3-columns'
    FOUR_COLUMNS = '4-columns'

    @classmethod
    def parse(cls, value) -> 'Layout':
        """Parse a layout tag; unknown tags fall back to image-left."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.IMAGE_LEFT


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def scaled(self, sx: float, sy: float) -> 'Box':
        return Box(self.x * sx, self.y * sy, self.w * sx, self.h * sy)

    def overlaps(self, other: 'Box') -> bool:
        return (self.x < other.right and other.x < self.right
                and self.y < other.bottom and other.y < self.bottom)


@dataclass(frozen=True)
class LayoutGeometry:
    title: Box
    body: Box
    image: Box
    show_title: bool = True
    show_body: bool = True
    show_image: bool = True
    # Title/body drawn centred on top of a full-bleed image
    overlay: bool = False
    columns: int = 0

    def scaled(self, sx: float, sy: float) -> 'LayoutGeometry':
        return replace(
            self,
            title=self.title.scaled(sx, sy),
            body=self.body.scaled(sx, sy),
            image=self.image.scaled(sx, sy),
        )


_NO_IMAGE = Box(0, 0, 0, 0)
_WIDE_TITLE = Box(1, 0.5, 11.33, 1)
_WIDE_BODY = Box(1, 1.8, 11.33, 5.2)

GEOMETRY: Dict[Layout, LayoutGeometry] = {
    Layout.IMAGE_LEFT: LayoutGeometry(
        title=Box(7, 1, 5.5, 1.2), body=Box(7, 2.5, 5.5, 4.5), image=Box(0.5, 1, 5.5, 5.5)),
    Layout.IMAGE_RIGHT: LayoutGeometry(
        title=Box(1, 1, 5.5, 1.2), body=Box(1, 2.5, 5.5, 4.5), image=Box(7.33, 1, 5.5, 5.5)),
    Layout.IMAGE_TOP: LayoutGeometry(
        title=Box(1, 3, 11.33, 1), body=Box(1, 4.2, 11.33, 2.8), image=Box(1, 0.5, 11.33, 2)),
    Layout.IMAGE_BOTTOM: LayoutGeometry(
        title=Box(1, 0.5, 11.33, 1), body=Box(1, 1.7, 11.33, 2.5), image=Box(1, 4.5, 11.33, 2)),
    Layout.FULL_IMAGE: LayoutGeometry(
        title=Box(0.5, 1.5, 12.33, 1.2), body=Box(1, 2.8, 11.33, 3),
        image=Box(0, 0, CANVAS_WIDTH, CANVAS_HEIGHT), overlay=True),
    Layout.TEXT_ONLY: LayoutGeometry(
        title=Box(1, 1, 11.33, 1.5), body=Box(1, 3, 11.33, 3.5), image=_NO_IMAGE, show_image=False),
    Layout.TITLE_ONLY: LayoutGeometry(
        title=Box(0, 3, CANVAS_WIDTH, 1.5), body=_NO_IMAGE, image=_NO_IMAGE,
        show_body=False, show_image=False),
    Layout.SPLIT: LayoutGeometry(
        title=Box(7, 0.5, 5.5, 1), body=Box(7, 2, 5.5, 5), image=Box(0.5, 1, 6, 5.5)),
    Layout.PARAGRAPH: LayoutGeometry(
        title=_WIDE_TITLE, body=_WIDE_BODY, image=_NO_IMAGE, show_image=False),
    Layout.TWO_COLUMNS: LayoutGeometry(
        title=_WIDE_TITLE, body=_WIDE_BODY, image=_NO_IMAGE, show_image=False, columns=2),
    Layout.THREE_COLUMNS: LayoutGeometry(
        title=_WIDE_TITLE, body=_WIDE_BODY, image=_NO_IMAGE, show_image=False, columns=3),
    Layout.FOUR_COLUMNS: LayoutGeometry(
        title=_WIDE_TITLE, body=_WIDE_BODY, image=_NO_IMAGE, show_image=False, columns=4),
}


def geometry_for(layout, canvas: Tuple[float, float] = (CANVAS_WIDTH, CANVAS_HEIGHT)) -> LayoutGeometry:
    """Geometry for a layout tag, scaled to ``canvas`` (width, height)."""
    geometry = GEOMETRY[Layout.parse(layout)]
    sx = canvas[0] / CANVAS_WIDTH
    sy = canvas[1] / CANVAS_HEIGHT
    if sx == 1 and sy == 1:
        return geometry
    return geometry.scaled(sx, sy)


def split_columns(items: Sequence[str], n: int) -> List[List[str]]:
    """Split non-blank items over ``n`` columns, ceil(N/n) in the first.

    The remainder is split the same way over the remaining columns, so
    7 items over 3 columns yield 3/2/2.
    """
    remaining = [item for item in items if item and item.strip()]
    columns: List[List[str]] = []
    for left in range(n, 0, -1):
        take = math.ceil(len(remaining) / left)
        columns.append(remaining[:take])
        remaining = remaining[take:]
    return columns


def column_boxes(body: Box, n: int, gutter: Optional[float] = None) -> List[Box]:
    """Divide ``body`` into ``n`` equal columns separated by a gutter."""
    if n <= 0:
        return []
    gap = COLUMN_GUTTER * (body.w / _WIDE_BODY.w) if gutter is None else gutter
    width = (body.w - gap * (n - 1)) / n
    return [Box(body.x + i * (width + gap), body.y, width, body.h) for i in range(n)]
