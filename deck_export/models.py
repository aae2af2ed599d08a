"""Deck data model handed to the export pipeline by the editing UI.

- `Slide`: one page (title, body items, optional image, vector overlays, layout tag);
- `Theme`: colours, fonts, style tokens and background shared by every exporter;
- `Deck`: ordered slides + theme + title, the unit of export.

Field aliases accept the camelCase JSON produced by the web client.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SlideImage(_Model):
    """Image attached to a slide."""
    url: str = Field(description='Remote URL, data URL or local asset path')
    alt: str = Field(default='', description='Alt text')
    source: str = Field(default='unsplash', description="Provenance tag ('ideogram', 'unsplash', 'icon')")
    prompt: Optional[str] = Field(default=None, description='Prompt used to generate the image')


class OverlayElement(_Model):
    """Free-floating vector graphic positioned in percent of the slide size."""
    svg: str = Field(description='URL of the vector source')
    x: float = Field(default=0.0, description='Left edge, percent of slide width')
    y: float = Field(default=0.0, description='Top edge, percent of slide height')
    w: float = Field(default=10.0, description='Width, percent of slide width')
    h: float = Field(default=10.0, description='Height, percent of slide height')


class Slide(_Model):
    """One deck page."""
    id: str = Field(description='Stable slide id')
    title: str = Field(default='', description='Plain title text')
    title_html: Optional[str] = Field(default=None, alias='titleHtml', description='Rich-text title source')
    bullets: List[str] = Field(default_factory=list, description='Body items (bullets or paragraphs)')
    bullets_html: Optional[List[Optional[str]]] = Field(default=None, alias='bulletsHtml')
    image: Optional[SlideImage] = None
    elements: List[OverlayElement] = Field(default_factory=list, description='Vector overlays')
    layout: str = Field(default='image-left', description='Layout tag')

    def body_items(self) -> List[str]:
        """Body items with blank entries removed."""
        return [b for b in self.bullets if b and b.strip()]


class FontSpec(_Model):
    family: Optional[str] = None
    weight: Optional[str] = None
    size: Optional[str] = None


class ThemeFonts(_Model):
    heading: Optional[FontSpec] = None
    body: Optional[FontSpec] = None
    accent: Optional[FontSpec] = None


class ThemeColors(_Model):
    primary: Optional[str] = None
    secondary: Optional[str] = None
    accent: Optional[str] = None
    background: Optional[str] = None
    text: Optional[str] = None


class ThemeStyles(_Model):
    border_radius: Optional[str] = Field(default=None, alias='borderRadius')
    shadow: Optional[str] = None
    spacing: Optional[str] = None


class Theme(_Model):
    """Visual style descriptor shared by the preview and all exporters."""
    id: str = Field(default='custom', description='Theme id, keys the override tables')
    name: str = ''
    colors: ThemeColors = Field(default_factory=ThemeColors)
    fonts: Optional[ThemeFonts] = None
    styles: ThemeStyles = Field(default_factory=ThemeStyles)
    background_image: Optional[str] = Field(default=None, alias='backgroundImage')
    background_gradient: Optional[str] = Field(default=None, alias='backgroundGradient')
    alignment: Optional[str] = None

    def active_background(self) -> Tuple[str, str]:
        """The single active background: image > gradient > solid colour."""
        if self.background_image:
            return 'image', self.background_image
        if self.background_gradient:
            return 'gradient', self.background_gradient
        return 'color', self.colors.background or '#FFFFFF'


class Deck(_Model):
    """Ordered slides + theme + title."""
    title: str = Field(default='Presentation')
    slides: List[Slide] = Field(default_factory=list)
    theme: Theme = Field(default_factory=Theme)
