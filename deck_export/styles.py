"""Theme/style resolution shared by every exporter.

All functions are pure: the same theme and role always give the same
colour, font and size whether the output is a bitmap or a PPTX shape.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional

from deck_export.models import FontSpec, Theme

DEFAULT_HEADING_SIZE = 28
DEFAULT_BODY_SIZE = 18
BASE_FONT_PX = 16

# =============================================================================
# COLOURS
# =============================================================================

# Tuned per-theme role colours (title, text, bullet, primary, accent)
COLOR_OVERRIDES: Dict[str, Dict[str, str]] = {
    'modern-blue': {'title': '1e40af', 'text': '1e3a8a', 'bullet': '3b82f6', 'primary': '1e40af', 'accent': '3b82f6'},
    'creative-gradient': {'title': '1f2937', 'text': '374151', 'bullet': 'fbbf24', 'primary': '1f2937', 'accent': 'fbbf24'},
    'minimal-gray': {'title': '374151', 'text': '1f2937', 'bullet': '6b7280', 'primary': '374151', 'accent': '6b7280'},
    'business-green': {'title': '047857', 'text': '047857', 'bullet': '059669', 'primary': '047857', 'accent': '059669'},
    'modern-dark': {'title': 'f9fafb', 'text': 'f9fafb', 'bullet': 'd1d5db', 'primary': 'f9fafb', 'accent': 'd1d5db'},
    'warm-orange': {'title': 'c2410c', 'text': '1f2937', 'bullet': 'ea580c', 'primary': 'c2410c', 'accent': 'ea580c'},
    'elegant-purple': {'title': 'ffffff', 'text': 'f3f4f6', 'bullet': 'd8b4fe', 'primary': '4c1d95', 'accent': '7c3aed'},
    'clean-white': {'title': '000000', 'text': '000000', 'bullet': '374151', 'primary': '000000', 'accent': '374151'},
    'tech-futuristic': {'title': '00ffff', 'text': '00ffff', 'bullet': 'ffff00', 'primary': '00ffff', 'accent': 'ffff00'},
    'vintage-retro': {'title': '8b4513', 'text': '2f1b14', 'bullet': 'daa520', 'primary': '8b4513', 'accent': 'daa520'},
    'corporate-blue': {'title': '1e3a8a', 'text': '1e293b', 'bullet': '60a5fa', 'primary': '1e3a8a', 'accent': '60a5fa'},
    'minimalist-black': {'title': '000000', 'text': '000000', 'bullet': '374151', 'primary': '000000', 'accent': '374151'},
    'luxury-gold': {'title': '92400e', 'text': '451a03', 'bullet': 'd97706', 'primary': '92400e', 'accent': 'd97706'},
    'tech-cyber': {'title': '10b981', 'text': '10b981', 'bullet': '6ee7b7', 'primary': '10b981', 'accent': '6ee7b7'},
    'flamingo': {'title': '1f1e1e', 'text': '5e5858', 'bullet': 'e91e63', 'primary': '1f1e1e', 'accent': 'e91e63'},
    'kraft': {'title': '282824', 'text': '5f5f59', 'bullet': '5f5f59', 'primary': '282824', 'accent': '5f5f59'},
    'daktilo': {'title': '151617', 'text': '151617', 'bullet': '151617', 'primary': '151617', 'accent': '151617'},
    'plant-shop': {'title': '233e32', 'text': '45423c', 'bullet': '45423c', 'primary': '233e32', 'accent': '45423c'},
}

# Gradient backgrounds wash out theme colours; use charcoal text with red bullets
GRADIENT_PALETTE = {'title': '36454f', 'text': '36454f', 'bullet': 'dc2626', 'primary': '36454f', 'accent': 'dc2626'}

IMAGE_BACKGROUND_FALLBACK = '1f2937'

_HEX_RE = re.compile(r'^[0-9a-fA-F]{6}$')


def normalize_color(value: Optional[str]) -> str:
    """Return 6 uppercase hex digits without '#', or '000000' when invalid."""
    if not value or not isinstance(value, str):
        return '000000'
    hex_color = value.strip().lstrip('#')
    if len(hex_color) == 3:
        hex_color = ''.join(c * 2 for c in hex_color)
    if not _HEX_RE.match(hex_color):
        return '000000'
    return hex_color.upper()


def hex_to_tuple(value: Optional[str]) -> tuple:
    hex_color = normalize_color(value)
    return (int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16))


def contrast_color(background: Optional[str]) -> str:
    """Black text on light backgrounds, white on dark ones."""
    r, g, b = hex_to_tuple(background)
    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
    return '000000' if luminance > 0.5 else 'FFFFFF'


def role_colors(theme: Theme) -> Dict[str, str]:
    """Resolve title/text/bullet/primary/accent colours for a theme."""
    override = COLOR_OVERRIDES.get(theme.id)
    if override:
        return {role: normalize_color(c) for role, c in override.items()}

    if theme.background_gradient and not theme.background_image:
        return {role: normalize_color(c) for role, c in GRADIENT_PALETTE.items()}

    fallback = IMAGE_BACKGROUND_FALLBACK if theme.background_image else '000000'
    colors = theme.colors
    raw = {
        'title': colors.primary,
        'text': colors.text,
        'bullet': colors.accent,
        'primary': colors.primary,
        'accent': colors.accent,
    }
    return {role: normalize_color(c or fallback) for role, c in raw.items()}


# =============================================================================
# FONTS
# =============================================================================

SAFE_FONTS = {
    'arial': 'Arial',
    'verdana': 'Verdana',
    'tahoma': 'Tahoma',
    'trebuchet ms': 'Trebuchet MS',
    'calibri': 'Calibri',
    'cambria': 'Cambria',
    'times new roman': 'Times New Roman',
    'georgia': 'Georgia',
    'garamond': 'Garamond',
    'courier new': 'Courier New',
    'courier': 'Courier New',
    'monaco': 'Courier New',
    'consolas': 'Courier New',
}

_SANS = ('Inter', 'Poppins', 'Montserrat', 'Open Sans', 'Roboto', 'Source Sans Pro', 'Nunito',
         'Quicksand', 'Rajdhani', 'SF Pro Display', 'SF Pro Text', 'Helvetica Neue', 'Helvetica',
         'Patrick Hand', 'Red Hat Text', 'Hubot Sans', 'Roboto Condensed', 'Kanit', 'Orbitron',
         'Dancing Script', 'Impact', 'Comic Sans MS')
_SERIF = ('Playfair Display', 'Crimson Text', 'Palatino', 'Baskerville', 'Libre Baskerville', 'Alice')
_MONO = ('JetBrains Mono', 'Fira Code', 'Cascadia Code', 'Space Grotesk', 'Inconsolata')

FONT_MAPPING: Dict[str, str] = {}
FONT_MAPPING.update({name.lower(): 'Arial' for name in _SANS})
FONT_MAPPING.update({name.lower(): 'Times New Roman' for name in _SERIF})
FONT_MAPPING.update({name.lower(): 'Courier New' for name in _MONO})

DEFAULT_FONT = 'Arial'

ALIGNMENTS = {
    'text-center': 'center', 'center': 'center', 'centered': 'center',
    'text-right': 'right', 'right': 'right', 'right-aligned': 'right',
    'text-left': 'left', 'left': 'left', 'left-aligned': 'left',
    'text-justify': 'justify', 'justify': 'justify', 'justified': 'justify',
}

BOLD_WEIGHTS = {'bold': True, 'bolder': True, 'normal': False, 'lighter': False}


def _font_spec(theme: Optional[Theme], role: str) -> Optional[FontSpec]:
    if theme is None or theme.fonts is None:
        return None
    spec = getattr(theme.fonts, role, None)
    return spec or theme.fonts.body


def font_family(theme: Optional[Theme], role: str = 'body') -> str:
    """Map the first family of a CSS font stack to an Office-safe font."""
    spec = _font_spec(theme, role)
    if spec is None or not spec.family:
        return DEFAULT_FONT
    first = spec.family.split(',')[0].strip().strip('"\'').strip()
    key = first.lower()
    if key in SAFE_FONTS:
        return SAFE_FONTS[key]
    return FONT_MAPPING.get(key, DEFAULT_FONT)


def font_size(theme: Optional[Theme], role: str = 'body') -> int:
    """Font size in points from a rem/em/px size string."""
    default = DEFAULT_HEADING_SIZE if role == 'heading' else DEFAULT_BODY_SIZE
    if theme is None or theme.fonts is None:
        return default

    size = None
    spec = getattr(theme.fonts, role, None)
    if spec is not None and spec.size:
        size = spec.size
    elif theme.fonts.body is not None and theme.fonts.body.size:
        size = theme.fonts.body.size
    size = (size or '1rem').strip().lower()

    match = re.match(r'^(\d*\.?\d+)\s*(rem|em|px)$', size)
    if not match:
        return default
    value, unit = float(match.group(1)), match.group(2)
    if unit == 'px':
        return int(value)
    return int(round(value * BASE_FONT_PX))


def is_bold(theme: Optional[Theme], role: str = 'body') -> bool:
    spec = _font_spec(theme, role)
    if spec is None or not spec.weight:
        return role == 'heading' and (theme is None or theme.fonts is None)
    weight = spec.weight.strip().lower()
    if weight in BOLD_WEIGHTS:
        return BOLD_WEIGHTS[weight]
    try:
        return int(weight) >= 600
    except ValueError:
        return False


def text_alignment(value: Optional[str], default: str = 'left') -> str:
    if not value:
        return default
    return ALIGNMENTS.get(value.strip().lower(), default)


# =============================================================================
# TEXT STYLE BUNDLE
# =============================================================================

_ROLE_COLOR = {'heading': 'title', 'body': 'text', 'accent': 'accent'}


@dataclass(frozen=True)
class TextStyle:
    family: str
    size: int
    bold: bool
    color: str
    alignment: str


def resolve_text_style(theme: Theme, role: str = 'body') -> TextStyle:
    """Bundle family, size, weight, colour and alignment for one text role."""
    colors = role_colors(theme)
    return TextStyle(
        family=font_family(theme, role),
        size=font_size(theme, role),
        bold=is_bold(theme, role),
        color=colors[_ROLE_COLOR.get(role, 'text')],
        alignment=text_alignment(theme.alignment),
    )
