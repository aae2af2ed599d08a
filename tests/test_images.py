import io

import pytest
from PIL import Image

from deck_export import images
from deck_export.errors import AssetFetchError, FramingError
from deck_export.images import (
    FRAMING_EFFECTS, OffscreenCanvas, apply_framing, decode_data_url, fetch_bytes, fetch_overlay, frame_image,
    is_data_url, is_remote, parse_border_radius, resolve_image, resolve_many, to_data_url,
)
from tests.conftest import FakeResponse, make_png

URL = 'https://img.example.com/photo.png'


def test_url_classification():
    assert is_remote('https://a.b/c.png')
    assert is_remote('http://a.b/c.png')
    assert is_remote('localhost:3000/x.png')
    assert not is_remote('/images/local.png')
    assert is_data_url('data:image/png;base64,AAAA')
    assert not is_data_url(None)


def test_data_url_round_trip(png_bytes):
    content, mimetype = decode_data_url(to_data_url(png_bytes, 'image/png'))
    assert content == png_bytes
    assert mimetype == 'image/png'


def test_decode_percent_encoded_data_url():
    content, mimetype = decode_data_url('data:image/svg+xml,%3Csvg%3E%3C/svg%3E')
    assert content == b'<svg></svg>'
    assert mimetype == 'image/svg+xml'


def test_decode_rejects_bad_base64():
    with pytest.raises(AssetFetchError):
        decode_data_url('data:image/png;base64,@@@')


def test_fetch_bytes_non_2xx_raises(fake_web):
    routes, _ = fake_web
    routes[URL] = FakeResponse(b'nope', status_code=404)
    with pytest.raises(AssetFetchError):
        fetch_bytes(URL, timeout=1)


def test_fetch_bytes_network_error_raises(fake_web):
    with pytest.raises(AssetFetchError):
        fetch_bytes(URL, timeout=1)


def test_fetch_bytes_adds_scheme_to_localhost(fake_web, png_bytes):
    routes, calls = fake_web
    routes['http://localhost:3000/a.png'] = FakeResponse(png_bytes)
    content, mimetype = fetch_bytes('localhost:3000/a.png', timeout=1)
    assert content == png_bytes
    assert calls == ['http://localhost:3000/a.png']


def test_border_radius_percent_and_px():
    radii = parse_border_radius('15px', 600, 600, scale=2)
    assert radii == [(30, 30)] * 4

    organic = parse_border_radius('30% 70% 70% 30% / 30% 30% 70% 70%', 600, 600)
    assert organic[0] == pytest.approx((180, 180))
    assert organic[1] == pytest.approx((420, 180))


def test_border_radius_overflow_is_scaled_down():
    radii = parse_border_radius('60% 60% 60% 60%', 100, 100)
    assert radii[0][0] + radii[1][0] == pytest.approx(100)


@pytest.mark.parametrize('theme_id', sorted(FRAMING_EFFECTS))
def test_apply_framing_produces_png(theme_id):
    framed = apply_framing(make_png((120, 80)), FRAMING_EFFECTS[theme_id])
    with Image.open(io.BytesIO(framed)) as image:
        assert image.format == 'PNG'
        assert image.mode == 'RGBA'
        assert image.width >= 600 and image.width == image.height


def test_framing_clips_organic_corners():
    framed = apply_framing(make_png((100, 100), (0, 0, 255)), FRAMING_EFFECTS['creative-pink'])
    with Image.open(io.BytesIO(framed)) as image:
        center = image.getpixel((image.width // 2, image.height // 2))
        assert center[2] > 200 and center[3] == 255


def test_framing_failure_returns_original():
    content, framed = frame_image(b'not an image', 'modern-blue')
    assert content == b'not an image'
    assert framed is False


def test_offscreen_canvas_released_on_error(monkeypatch):
    canvases = []

    class TrackingCanvas(OffscreenCanvas):
        def __enter__(self):
            canvases.append(self)
            return super().__enter__()

    monkeypatch.setattr(images, 'OffscreenCanvas', TrackingCanvas)
    with pytest.raises(FramingError):
        apply_framing(b'garbage', FRAMING_EFFECTS['clean-white'])
    assert canvases and not canvases[0].mounted


def test_offscreen_canvas_closes_buffers():
    with OffscreenCanvas(10, 10) as canvas:
        buffer = canvas.new('RGBA')
        assert canvas.mounted
    assert not canvas.mounted
    assert canvas._buffers == []
    assert buffer.size == (10, 10)


def test_resolve_remote_image_is_framed(fake_web, png_bytes, fast_config):
    routes, _ = fake_web
    routes[URL] = FakeResponse(png_bytes)
    resolved = resolve_image(URL, 'modern-blue', 'image-left', fast_config)
    assert resolved.framed
    assert resolved.mimetype == 'image/png'
    assert resolved.data_url.startswith('data:image/png;base64,')


def test_resolve_remote_failure_returns_none(fake_web, fast_config):
    routes, _ = fake_web
    routes[URL] = FakeResponse(b'', status_code=500)
    assert resolve_image(URL, 'modern-blue', 'image-left', fast_config) is None
    assert resolve_image('https://elsewhere.example.com/x.png', None, None, fast_config) is None


def test_resolve_local_image_is_framed_without_fetching(fast_config, tmp_path, png_bytes, fake_web):
    (tmp_path / 'assets').mkdir()
    (tmp_path / 'assets' / 'photo.png').write_bytes(png_bytes)
    resolved = resolve_image('/assets/photo.png', 'modern-blue', 'image-left', fast_config)
    assert resolved.framed
    assert resolved.mimetype == 'image/png'
    with Image.open(resolved.stream()) as image:
        assert image.mode == 'RGBA'
        assert image.width >= 600 and image.width == image.height
    assert fake_web[1] == []


def test_resolve_local_image_passes_through_when_framing_fails(fast_config, tmp_path, fake_web):
    (tmp_path / 'broken.png').write_bytes(b'not an image')
    resolved = resolve_image('/broken.png', 'modern-blue', 'image-left', fast_config)
    assert not resolved.framed
    assert resolved.path == str(tmp_path / 'broken.png')
    assert resolved.data is None
    assert resolved.read() == b'not an image'


def test_resolve_local_image_unframed_on_request(fast_config, tmp_path, png_bytes):
    (tmp_path / 'bg.png').write_bytes(png_bytes)
    resolved = resolve_image('/bg.png', config=fast_config, frame=False)
    assert resolved.data is None
    assert resolved.read() == png_bytes


def test_resolve_missing_local_image(fast_config):
    assert resolve_image('/missing.png', config=fast_config) is None


def test_resolve_many_keeps_order(fake_web, fast_config):
    routes, _ = fake_web
    routes['https://a.example.com/1.png'] = FakeResponse(make_png(color=(255, 0, 0)))
    routes['https://a.example.com/3.png'] = FakeResponse(make_png(color=(0, 0, 255)))
    results = resolve_many(['https://a.example.com/1.png', 'https://a.example.com/2.png',
                            'https://a.example.com/3.png'], 'modern-blue', config=fast_config)
    assert [r is not None for r in results] == [True, False, True]


def test_fetch_overlay_bitmap_and_failure(fake_web, png_bytes, fast_config):
    routes, _ = fake_web
    routes['https://a.example.com/icon.png'] = FakeResponse(png_bytes)
    assert fetch_overlay('https://a.example.com/icon.png', fast_config) == png_bytes
    assert fetch_overlay('https://a.example.com/gone.svg', fast_config) is None


def test_fetch_overlay_svg_without_cairosvg(monkeypatch, fast_config):
    monkeypatch.setattr(images, 'cairosvg', None)
    assert fetch_overlay('data:image/svg+xml,%3Csvg%3E%3C/svg%3E', fast_config) is None


def test_fetch_overlay_reads_local_asset(fake_web, png_bytes, fast_config, tmp_path):
    (tmp_path / 'assets' / 'elements').mkdir(parents=True)
    (tmp_path / 'assets' / 'elements' / 'star.png').write_bytes(png_bytes)
    assert fetch_overlay('/assets/elements/star.png', fast_config) == png_bytes
    assert fetch_overlay('/assets/elements/missing.png', fast_config) is None
    assert fake_web[1] == []


def test_fetch_overlay_local_svg_is_rasterized(monkeypatch, fast_config, tmp_path):
    (tmp_path / 'star.svg').write_bytes(b'<svg xmlns="http://www.w3.org/2000/svg"></svg>')
    rendered = []

    class FakeCairo:
        @staticmethod
        def svg2png(bytestring):
            rendered.append(bytestring)
            return b'png'

    monkeypatch.setattr(images, 'cairosvg', FakeCairo)
    assert fetch_overlay('/star.svg', fast_config) == b'png'
    assert rendered[0].startswith(b'<svg')
