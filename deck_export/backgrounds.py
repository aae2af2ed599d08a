"""Slide backgrounds: image > gradient > solid colour."""

import io
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from PIL import Image, ImageChops

from deck_export.config import DEFAULT_CONFIG, ExportConfig
from deck_export.images import resolve_image
from deck_export.models import Theme
from deck_export.styles import normalize_color
from deck_export.utils import get_logger

logger = get_logger(__name__)

GRADIENT_SIZE = (1920, 1080)

# Tailwind gradient classes used by the themes, as CSS
GRADIENT_CSS = {
    'bg-gradient-to-r from-yellow-50 to-orange-500':
        'linear-gradient(to right, #fef3c7 0%, #fbbf24 100%)',
    'bg-gradient-to-br from-amber-50 via-yellow-100 to-orange-200':
        'linear-gradient(135deg, #fffbeb 0%, #fef3c7 50%, #fdba74 100%)',
    'bg-gradient-to-br from-pink-50 to-rose-100':
        'linear-gradient(135deg, #fdf2f8 0%, #ffe4e6 100%)',
    'bg-gradient-to-br from-purple-50 to-violet-100':
        'linear-gradient(135deg, #f5f3ff 0%, #ede9fe 100%)',
    'bg-gradient-to-br from-green-50 to-emerald-100':
        'linear-gradient(135deg, #f0fdf4 0%, #d1fae5 100%)',
    'bg-gradient-to-br from-amber-50 to-yellow-100':
        'linear-gradient(135deg, #fffbeb 0%, #fef9c3 100%)',
    'bg-gradient-to-br from-slate-900 via-green-900 to-emerald-900':
        'linear-gradient(135deg, #0f172a 0%, #022c22 50%, #064e3b 100%)',
    'bg-gradient-to-br from-black via-gray-900 to-blue-900':
        'linear-gradient(135deg, #000000 0%, #111827 50%, #1e3a8a 100%)',
}

_GRADIENT_RE = re.compile(r'^linear-gradient\((.*)\)$', re.IGNORECASE | re.DOTALL)
_HEX_COLOR_RE = re.compile(r'^#([0-9a-fA-F]{3}){1,2}$')
_RGB_RE = re.compile(r'^rgba?\(([^)]*)\)$', re.IGNORECASE)
_DIRECTION_RE = re.compile(r'^(to\s+[a-z]+(\s+[a-z]+)?|-?[\d.]+(deg|grad|rad|turn))$', re.IGNORECASE)

Color = Tuple[int, int, int]


@dataclass(frozen=True)
class LinearGradient:
    direction: str
    stops: List[Tuple[float, Color]]


@dataclass(frozen=True)
class BackgroundSpec:
    kind: str  # 'image' | 'gradient' | 'color'
    color: str
    image: Optional[bytes] = None


def _split_top_level(value: str) -> List[str]:
    """Split on commas outside parentheses."""
    parts, depth, current = [], 0, ''
    for char in value:
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
        if char == ',' and depth == 0:
            parts.append(current.strip())
            current = ''
        else:
            current += char
    if current.strip():
        parts.append(current.strip())
    return parts


def _parse_color(token: str) -> Optional[Color]:
    if _HEX_COLOR_RE.match(token):
        hex_color = normalize_color(token)
        return (int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16))
    match = _RGB_RE.match(token)
    if match:
        channels = [c.strip() for c in match.group(1).split(',')][:3]
        try:
            return tuple(max(0, min(255, int(float(c)))) for c in channels)
        except ValueError:
            return None
    return None


def css_for(tag: Optional[str]) -> Optional[str]:
    """CSS gradient for a Tailwind tag, or the tag itself if already CSS."""
    if not tag:
        return None
    if tag.strip().lower().startswith('linear-gradient'):
        return tag.strip()
    return GRADIENT_CSS.get(tag.strip())


def parse_linear_gradient(css: str) -> Optional[LinearGradient]:
    match = _GRADIENT_RE.match((css or '').strip())
    if not match:
        return None
    parts = _split_top_level(match.group(1))
    if len(parts) < 2:
        return None

    # CSS defaults to top-to-bottom when no direction is given
    direction, raw_stops = 'to bottom', parts
    if _DIRECTION_RE.match(parts[0].strip()):
        direction, raw_stops = parts[0].strip().lower(), parts[1:]
    stops = []
    for i, raw in enumerate(raw_stops):
        if raw.lower().startswith('rgb'):
            close = raw.index(')') + 1
            color_token, position_token = raw[:close], raw[close:].strip()
        else:
            pieces = raw.split()
            color_token = pieces[0]
            position_token = pieces[1] if len(pieces) > 1 else ''
        color = _parse_color(color_token)
        if color is None:
            continue
        fallback = i / (len(raw_stops) - 1) if len(raw_stops) > 1 else 0.0
        try:
            position = float(position_token.rstrip('%')) / 100 if position_token else fallback
        except ValueError:
            position = fallback
        stops.append((position, color))

    if not stops:
        return None
    return LinearGradient(direction=direction, stops=sorted(stops, key=lambda s: s[0]))


def _lookup_table(stops: List[Tuple[float, Color]]) -> List[Color]:
    table = []
    for i in range(256):
        t = i / 255
        if t <= stops[0][0]:
            table.append(stops[0][1])
            continue
        if t >= stops[-1][0]:
            table.append(stops[-1][1])
            continue
        for (p0, c0), (p1, c1) in zip(stops, stops[1:]):
            if p0 <= t <= p1:
                f = 0.0 if p1 == p0 else (t - p0) / (p1 - p0)
                table.append(tuple(int(round(a + (b - a) * f)) for a, b in zip(c0, c1)))
                break
    return table


def _ramp(size: Tuple[int, int], horizontal: bool, peak: float) -> Image.Image:
    ramp = Image.linear_gradient('L')
    if horizontal:
        ramp = ramp.rotate(90)
    ramp = ramp.resize(size)
    return ramp.point(lambda v: int(v * peak))


def render_gradient(css: str, size: Tuple[int, int] = GRADIENT_SIZE) -> Optional[bytes]:
    """Draw a CSS linear gradient into a PNG; None if it cannot be parsed.

    ``to right``/``90deg`` run left to right, ``135deg`` runs corner to
    corner; every other direction is drawn left to right.
    """
    gradient = parse_linear_gradient(css)
    if gradient is None:
        return None

    width, height = size
    if gradient.direction == '135deg':
        total = float(width * width + height * height)
        position = ImageChops.add(
            _ramp(size, True, width * width / total),
            _ramp(size, False, height * height / total),
        )
    else:
        position = _ramp(size, True, 1.0)

    table = _lookup_table(gradient.stops)
    channels = [position.point([color[c] for color in table]) for c in range(3)]
    image = Image.merge('RGB', channels)

    output = io.BytesIO()
    image.save(output, format='PNG')
    return output.getvalue()


def resolve_background(theme: Theme, config: ExportConfig = DEFAULT_CONFIG) -> BackgroundSpec:
    """Resolve the one active background; failures fall back to the flat colour."""
    color = normalize_color(theme.colors.background or '#FFFFFF')
    kind, value = theme.active_background()

    if kind == 'image':
        resolved = resolve_image(value, theme.id, config=config, frame=False)
        if resolved is not None:
            return BackgroundSpec('image', color, resolved.read())
        logger.warning(f'[Background] Could not load {value[:100]}, using colour #{color}')

    elif kind == 'gradient':
        css = css_for(value)
        rendered = render_gradient(css) if css else None
        if rendered is not None:
            return BackgroundSpec('gradient', color, rendered)
        logger.info(f'[Background] No renderable gradient for {value!r}, using colour #{color}')

    return BackgroundSpec('color', color)
