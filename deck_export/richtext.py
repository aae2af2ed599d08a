"""Extract plain text and run formatting from the editor's rich-text HTML."""

import re
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup

_ALIGN_RE = re.compile(r'text-align\s*:\s*(center|right|left|justify)', re.IGNORECASE)

# Font size increments per heading level
TITLE_HEADING_BUMP = {1: 8, 2: 6, 3: 4, 4: 2, 5: 1, 6: 0}
BODY_HEADING_BUMP = {1: 6, 2: 4, 3: 2, 4: 1, 5: 0, 6: 0}
OVERLAY_TITLE_HEADING_BUMP = {1: 12, 2: 10, 3: 8, 4: 6, 5: 4, 6: 2}
OVERLAY_BODY_HEADING_BUMP = {1: 8, 2: 6, 3: 4, 4: 2, 5: 0, 6: 0}


@dataclass(frozen=True)
class RichText:
    text: str
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strike: bool = False
    heading_level: Optional[int] = None
    align: Optional[str] = None


def extract_rich_text(markup: Optional[str]) -> RichText:
    """Collapse whitespace and detect bold/italic/underline/strike, heading level and alignment.

    Formatting applies to the whole run if any part of the markup carries it.
    """
    if not markup:
        return RichText(text=markup or '')

    soup = BeautifulSoup(markup, 'html.parser')
    text = re.sub(r'\s+', ' ', soup.get_text()).strip()

    heading_level = None
    for level in range(1, 7):
        if soup.find(f'h{level}'):
            heading_level = level
            break

    found = {_ALIGN_RE.search(tag['style']).group(1).lower() for tag in soup.find_all(style=_ALIGN_RE)}
    align = next((value for value in ('center', 'right', 'left', 'justify') if value in found), None)

    return RichText(
        text=text,
        bold=soup.find(['strong', 'b']) is not None,
        italic=soup.find(['em', 'i']) is not None,
        underline=soup.find('u') is not None,
        strike=soup.find(['s', 'strike']) is not None,
        heading_level=heading_level,
        align=align,
    )


def rich_or_plain(plain: str, markup: Optional[str]) -> RichText:
    """Prefer the rich-text source when present."""
    if markup:
        return extract_rich_text(markup)
    return RichText(text=plain or '')
