"""Image resolver.

Turns an image reference into something the writers can embed without any
further network access: remote images are fetched, encoded and framed with
the theme's effect; local asset paths pass straight through.
"""

import base64
import io
import math
import mimetypes
import os
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from urllib.parse import unquote_to_bytes

import requests
from PIL import Image, ImageDraw, ImageFilter, ImageOps

from deck_export.config import DEFAULT_CONFIG, ExportConfig
from deck_export.errors import AssetFetchError, FramingError
from deck_export.utils import get_logger

try:
    import cairosvg
except Exception:  # cairo system libraries missing
    cairosvg = None

logger = get_logger(__name__)

PLACEHOLDER_TEXT = 'AI Generated Image'
PLACEHOLDER_FILL = 'F0F0F0'
PLACEHOLDER_TEXT_COLOR = '666666'
PLACEHOLDER_BORDER = 'CCCCCC'
PLACEHOLDER_FONT_SIZE = 14

FRAME_SIZE = 300
CAPTURE_SCALE = 2

_DATA_URL_RE = re.compile(r'^data:([^;,]*)(;base64)?,(.*)$', re.IGNORECASE | re.DOTALL)


# =============================================================================
# FETCH / ENCODE
# =============================================================================

def is_data_url(url: Optional[str]) -> bool:
    return bool(url) and url.strip().lower().startswith('data:')


def is_remote(url: Optional[str]) -> bool:
    if not url:
        return False
    lowered = url.strip().lower()
    return lowered.startswith(('http://', 'https://')) or lowered.startswith('localhost:')


def fetch_bytes(url: str, timeout: float) -> Tuple[bytes, str]:
    """GET ``url`` without credentials; returns (content, mimetype)."""
    if url.lower().startswith('localhost:'):
        url = f'http://{url}'
    try:
        response = requests.get(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        raise AssetFetchError(f'Failed to fetch {url[:100]}: {e}') from e

    if not response.ok:
        raise AssetFetchError(f'HTTP {response.status_code} fetching {url[:100]}')

    mimetype = (response.headers.get('Content-Type') or '').split(';')[0].strip()
    if not mimetype:
        mimetype = mimetypes.guess_type(url)[0] or 'application/octet-stream'
    return response.content, mimetype


def to_data_url(content: bytes, mimetype: str = 'image/png') -> str:
    return f'data:{mimetype};base64,{base64.b64encode(content).decode("ascii")}'


def decode_data_url(url: str) -> Tuple[bytes, str]:
    """Decode a data URL into (content, mimetype)."""
    match = _DATA_URL_RE.match(url.strip()) if url else None
    if not match:
        raise AssetFetchError('Not a data URL')
    mimetype = match.group(1) or 'text/plain'
    payload = match.group(3)
    if match.group(2):
        try:
            return base64.b64decode(payload, validate=True), mimetype
        except (base64.binascii.Error, ValueError) as e:
            raise AssetFetchError('Unable to decode base64 image data.') from e
    return unquote_to_bytes(payload), mimetype


# =============================================================================
# FRAMING EFFECTS
# =============================================================================

@dataclass(frozen=True)
class Shadow:
    offset_x: float
    offset_y: float
    blur: float
    rgba: Tuple[int, int, int, float]


@dataclass(frozen=True)
class Border:
    width: float
    rgba: Tuple[int, int, int, float]


@dataclass(frozen=True)
class FramingEffect:
    scale: float
    radius: str
    shadow: Shadow
    border: Border


FRAMING_EFFECTS = {
    # Geometric
    'modern-blue': FramingEffect(1.02, '0', Shadow(0, 20, 40, (0, 0, 0, 0.15)), Border(2, (59, 130, 246, 0.3))),
    'modern-dark': FramingEffect(1.05, '0', Shadow(0, 25, 50, (0, 0, 0, 0.3)), Border(2, (156, 163, 175, 0.4))),
    'tech-cyber': FramingEffect(1.08, '0', Shadow(0, 30, 60, (16, 185, 129, 0.2)), Border(2, (16, 185, 129, 0.6))),
    # Organic
    'creative-pink': FramingEffect(1.03, '30% 70% 70% 30% / 30% 30% 70% 70%',
                                   Shadow(0, 15, 35, (236, 72, 153, 0.2)), Border(2, (236, 72, 153, 0.3))),
    'warm-orange': FramingEffect(1.04, '60% 40% 30% 70% / 60% 30% 70% 40%',
                                 Shadow(0, 20, 40, (251, 146, 60, 0.25)), Border(2, (251, 146, 60, 0.4))),
    'luxury-gold': FramingEffect(1.06, '50% 50% 50% 50% / 60% 40% 60% 40%',
                                 Shadow(0, 25, 50, (245, 158, 11, 0.3)), Border(3, (245, 158, 11, 0.5))),
    # Professional
    'corporate-blue': FramingEffect(1.02, '15px', Shadow(0, 10, 30, (30, 58, 138, 0.15)), Border(1, (30, 58, 138, 0.2))),
    'business-green': FramingEffect(1.03, '20px 5px 20px 5px',
                                    Shadow(0, 15, 35, (5, 122, 85, 0.2)), Border(2, (5, 122, 85, 0.3))),
    # Minimal
    'clean-white': FramingEffect(1.01, '8px', Shadow(0, 8, 25, (0, 0, 0, 0.1)), Border(1, (0, 0, 0, 0.1))),
    'minimalist-black': FramingEffect(1.01, '4px', Shadow(0, 5, 20, (0, 0, 0, 0.15)), Border(1, (0, 0, 0, 0.2))),
}

DEFAULT_FRAMING = 'clean-white'


def framing_for(theme_id: Optional[str]) -> FramingEffect:
    return FRAMING_EFFECTS.get(theme_id or '', FRAMING_EFFECTS[DEFAULT_FRAMING])


class OffscreenCanvas:
    """Scratch surface for compositing; every buffer is released on exit."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.mounted = False
        self._buffers: List[Image.Image] = []

    def __enter__(self) -> 'OffscreenCanvas':
        self.mounted = True
        return self

    def __exit__(self, exc_type, exc, tb):
        for buffer in self._buffers:
            buffer.close()
        self._buffers = []
        self.mounted = False
        return False

    def track(self, image: Image.Image) -> Image.Image:
        self._buffers.append(image)
        return image

    def new(self, mode: str, size: Optional[Tuple[int, int]] = None, color=0) -> Image.Image:
        return self.track(Image.new(mode, size or (self.width, self.height), color))


def _expand_css_box(values: Sequence[str]) -> List[str]:
    """CSS 1-4 value shorthand, ordered top-left, top-right, bottom-right, bottom-left."""
    if len(values) == 1:
        return [values[0]] * 4
    if len(values) == 2:
        return [values[0], values[1], values[0], values[1]]
    if len(values) == 3:
        return [values[0], values[1], values[2], values[1]]
    return list(values[:4])


def _radius_length(token: str, extent: float, scale: float) -> float:
    token = token.strip().lower()
    if token.endswith('%'):
        return float(token[:-1]) / 100 * extent
    if token.endswith('px'):
        return float(token[:-2]) * scale
    return float(token) * scale


def parse_border_radius(value: str, width: float, height: float, scale: float = 1.0) -> List[Tuple[float, float]]:
    """Resolve a CSS border-radius into per-corner (rx, ry) pixel radii.

    Radii that would overflow an edge are scaled down together.
    """
    value = (value or '0').strip()
    if '/' in value:
        horizontal, vertical = value.split('/', 1)
    else:
        horizontal = vertical = value
    hx = _expand_css_box(horizontal.split())
    vy = _expand_css_box(vertical.split())
    radii = [(_radius_length(h, width, scale), _radius_length(v, height, scale)) for h, v in zip(hx, vy)]

    (tl, tr, br, bl) = radii
    sums = [
        (tl[0] + tr[0], width), (bl[0] + br[0], width),
        (tl[1] + bl[1], height), (tr[1] + br[1], height),
    ]
    factor = min([1.0] + [extent / total for total, extent in sums if total > extent])
    return [(rx * factor, ry * factor) for rx, ry in radii]


def _corner_mask(size: Tuple[int, int], radii: List[Tuple[float, float]], steps: int = 24) -> Image.Image:
    width, height = size
    if all(rx <= 0 or ry <= 0 for rx, ry in radii):
        return Image.new('L', size, 255)

    (tl, tr, br, bl) = radii
    corners = [
        ((tl[0], tl[1]), (tl[0], tl[1]), math.pi, 1.5 * math.pi),
        ((width - tr[0], tr[1]), tr, 1.5 * math.pi, 2 * math.pi),
        ((width - br[0], height - br[1]), br, 0, 0.5 * math.pi),
        ((bl[0], height - bl[1]), bl, 0.5 * math.pi, math.pi),
    ]
    points = []
    for (cx, cy), (rx, ry), start, end in corners:
        for i in range(steps + 1):
            angle = start + (end - start) * i / steps
            points.append((cx + rx * math.cos(angle), cy + ry * math.sin(angle)))

    mask = Image.new('L', size, 0)
    ImageDraw.Draw(mask).polygon(points, fill=255)
    return mask


def _tinted(canvas: OffscreenCanvas, mask: Image.Image, rgba: Tuple[int, int, int, float]) -> Image.Image:
    r, g, b, a = rgba
    layer = canvas.new('RGBA', mask.size, (r, g, b, 0))
    layer.putalpha(mask.point(lambda v: int(v * a)))
    return layer


def apply_framing(content: bytes, effect: FramingEffect) -> bytes:
    """Composite ``content`` into the themed frame and return PNG bytes.

    The image is drawn object-fit cover into a 300x300 frame captured at 2x,
    zoomed by the effect scale, clipped to the corner shape, and given the
    effect's shadow and border. Raises FramingError on any failure.
    """
    frame = FRAME_SIZE * CAPTURE_SCALE
    shadow = effect.shadow
    pad = int(math.ceil((shadow.blur + max(abs(shadow.offset_x), abs(shadow.offset_y))) * CAPTURE_SCALE / 2))
    side = frame + 2 * pad

    try:
        with OffscreenCanvas(side, side) as canvas:
            source = canvas.track(Image.open(io.BytesIO(content)))
            source = canvas.track(source.convert('RGBA'))

            zoomed = int(round(frame * effect.scale))
            fitted = canvas.track(ImageOps.fit(source, (zoomed, zoomed), method=Image.LANCZOS))
            offset = (zoomed - frame) // 2
            fitted = canvas.track(fitted.crop((offset, offset, offset + frame, offset + frame)))

            radii = parse_border_radius(effect.radius, frame, frame, CAPTURE_SCALE)
            mask = canvas.track(_corner_mask((frame, frame), radii))

            surface = canvas.new('RGBA', color=(0, 0, 0, 0))

            shadow_mask = canvas.new('L')
            shadow_mask.paste(mask, (pad + int(shadow.offset_x * CAPTURE_SCALE),
                                     pad + int(shadow.offset_y * CAPTURE_SCALE)))
            if shadow.blur:
                shadow_mask = canvas.track(shadow_mask.filter(ImageFilter.GaussianBlur(shadow.blur * CAPTURE_SCALE / 2)))
            surface.alpha_composite(_tinted(canvas, shadow_mask, shadow.rgba))

            framed = canvas.new('RGBA', (frame, frame), (0, 0, 0, 0))
            framed.paste(fitted, (0, 0), mask)
            surface.alpha_composite(framed, (pad, pad))

            border_px = int(round(effect.border.width * CAPTURE_SCALE))
            if border_px > 0:
                # erode inside a blank margin so the frame edge counts as outside
                margin = border_px + 1
                padded = canvas.new('L', (frame + 2 * margin, frame + 2 * margin), 0)
                padded.paste(mask, (margin, margin))
                eroded = canvas.track(padded.filter(ImageFilter.MinFilter(2 * border_px + 1)))
                inner = canvas.track(eroded.crop((margin, margin, margin + frame, margin + frame)))
                outside = canvas.track(inner.point(lambda v: 255 - v))
                ring = canvas.track(Image.composite(mask, canvas.new('L', mask.size, 0), outside))
                surface.alpha_composite(_tinted(canvas, ring, effect.border.rgba), (pad, pad))

            output = io.BytesIO()
            surface.save(output, format='PNG')
            return output.getvalue()
    except Exception as e:
        raise FramingError(f'Framing failed: {e}') from e


def frame_image(content: bytes, theme_id: Optional[str]) -> Tuple[bytes, bool]:
    """Frame an image for a theme; on failure returns the original bytes."""
    try:
        return apply_framing(content, framing_for(theme_id)), True
    except FramingError as e:
        logger.warning(f'[Image] {e}; using unframed image')
        return content, False


# =============================================================================
# RESOLUTION
# =============================================================================

@dataclass
class ResolvedImage:
    """Embeddable image payload: in-memory bytes or a local file path."""
    data: Optional[bytes] = None
    mimetype: str = 'image/png'
    path: Optional[str] = None
    framed: bool = False

    @property
    def data_url(self) -> Optional[str]:
        return to_data_url(self.data, self.mimetype) if self.data is not None else None

    def read(self) -> bytes:
        if self.data is not None:
            return self.data
        with open(self.path, 'rb') as f:
            return f.read()

    def stream(self) -> io.BytesIO:
        return io.BytesIO(self.read())


def local_path(url: str, asset_root: str) -> str:
    if os.path.isabs(url) and os.path.exists(url):
        return url
    return os.path.join(asset_root, url.lstrip('/'))


def resolve_image(url: Optional[str], theme_id: Optional[str] = None, layout: Optional[str] = None,
                  config: ExportConfig = DEFAULT_CONFIG, frame: bool = True) -> Optional[ResolvedImage]:
    """Resolve an image reference; ``None`` means the caller draws a placeholder.

    ``layout`` is accepted for parity with the preview, which keys effects
    on theme only.
    """
    if not url:
        return None

    if is_remote(url) or is_data_url(url):
        try:
            if is_data_url(url):
                content, mimetype = decode_data_url(url)
            else:
                content, mimetype = fetch_bytes(url, config.image_fetch_timeout)
        except AssetFetchError as e:
            logger.warning(f'[Image] {e}')
            return None

        if not frame:
            return ResolvedImage(data=content, mimetype=mimetype)
        framed, ok = frame_image(content, theme_id)
        return ResolvedImage(data=framed, mimetype='image/png' if ok else mimetype, framed=ok)

    path = local_path(url, config.asset_root)
    if not os.path.exists(path):
        logger.warning(f'[Image] Local asset not found: {path}')
        return None
    mimetype = mimetypes.guess_type(path)[0] or 'image/png'
    if frame:
        with open(path, 'rb') as f:
            framed, ok = frame_image(f.read(), theme_id)
        if ok:
            return ResolvedImage(data=framed, mimetype='image/png', path=path, framed=True)
    return ResolvedImage(path=path, mimetype=mimetype)


def resolve_many(urls: Sequence[Optional[str]], theme_id: Optional[str] = None, layout: Optional[str] = None,
                 config: ExportConfig = DEFAULT_CONFIG) -> List[Optional[ResolvedImage]]:
    """Resolve several images concurrently; results keep input order."""
    if not urls:
        return []
    workers = max(1, min(config.max_concurrent_fetches, len(urls)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda u: resolve_image(u, theme_id, layout, config), urls))


# =============================================================================
# VECTOR OVERLAYS
# =============================================================================

def _looks_like_svg(content: bytes, mimetype: str) -> bool:
    if 'svg' in (mimetype or ''):
        return True
    head = content[:1024].lstrip().lower()
    return head.startswith(b'<svg') or (head.startswith(b'<?xml') and b'<svg' in head)


def rasterize_overlay(content: bytes, mimetype: str) -> Optional[bytes]:
    """Bitmaps pass through; SVG is rendered to PNG when cairosvg is available."""
    if not _looks_like_svg(content, mimetype):
        with Image.open(io.BytesIO(content)) as candidate:
            candidate.verify()
        return content
    if cairosvg is None:
        logger.warning('[Image] SVG overlay provided but cairosvg is unavailable; skipping')
        return None
    return cairosvg.svg2png(bytestring=content)


def fetch_overlay(url: str, config: ExportConfig = DEFAULT_CONFIG) -> Optional[bytes]:
    """Fetch an overlay graphic as embeddable bytes; None means skip it."""
    try:
        if is_data_url(url):
            content, mimetype = decode_data_url(url)
        elif is_remote(url):
            content, mimetype = fetch_bytes(url, config.overlay_fetch_timeout)
        else:
            path = local_path(url, config.asset_root)
            with open(path, 'rb') as f:
                content = f.read()
            mimetype = mimetypes.guess_type(path)[0] or ''
        return rasterize_overlay(content, mimetype)
    except AssetFetchError as e:
        logger.warning(f'[Image] Skipping overlay: {e}')
    except Exception as e:
        logger.warning(f'[Image] Skipping unreadable overlay {url[:100]}: {e}')
    return None
