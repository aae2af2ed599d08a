import io

import pytest
import requests
from PIL import Image

from deck_export.config import ExportConfig
from deck_export.models import Deck, Slide, SlideImage, Theme, ThemeColors


def make_png(size=(40, 20), color=(200, 30, 30)) -> bytes:
    output = io.BytesIO()
    Image.new('RGB', size, color).save(output, format='PNG')
    return output.getvalue()


class FakeResponse:
    def __init__(self, content=b'', status_code=200, content_type='image/png'):
        self.content = content
        self.status_code = status_code
        self.headers = {'Content-Type': content_type}

    @property
    def ok(self):
        return 200 <= self.status_code < 400


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def fake_web(monkeypatch):
    """Route ``requests.get`` to a dict of url -> FakeResponse; unknown urls fail."""
    routes = {}
    calls = []

    def fake_get(url, timeout=None, allow_redirects=True, **kwargs):
        calls.append(url)
        if url not in routes:
            raise requests.ConnectionError(f'no route to {url}')
        return routes[url]

    monkeypatch.setattr(requests, 'get', fake_get)
    return routes, calls


@pytest.fixture
def fast_config(tmp_path):
    return ExportConfig(
        asset_root=str(tmp_path),
        image_fetch_timeout=1,
        overlay_fetch_timeout=1,
        image_load_timeout=1,
        slide_render_wait=0,
        final_render_wait=0,
        max_slide_bytes=None,
        max_concurrent_fetches=2,
    )


@pytest.fixture
def plain_theme():
    return Theme(id='custom', name='Plain', colors=ThemeColors(primary='#000000', text='#000000',
                                                             accent='#333333', background='#ffffff'))


@pytest.fixture
def widget_deck(plain_theme):
    return Deck(
        title='Widgets 2024!',
        theme=plain_theme,
        slides=[
            Slide(id='s1', title='Revolutionizing Widgets', layout='image-left',
                  bullets=['Faster', 'Cheaper', 'Better'],
                  image=SlideImage(url='https://img.example.com/widget.png', alt='widget')),
            Slide(id='s2', title='Next Steps', layout='title-only'),
        ],
    )
