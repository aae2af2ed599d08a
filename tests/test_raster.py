import io
import random
import re

import pytest
from PIL import Image
from pptx import Presentation
from pptx.util import Inches

from deck_export.errors import NoSlidesError, SlideTooLargeError
from deck_export.progress import ProgressReporter
from deck_export.raster import (
    CHROME_SELECTOR, SLIDE_SELECTOR, CapturedSlide, InteractiveElement, LoadableImage, SlideSurface, SlideView,
    build_html, build_image_pptx, build_pdf, capture_slides, encode_capture,
)


class FakeChrome(InteractiveElement):
    def __init__(self, log):
        self.log = log
        self.hidden = False

    def hide(self):
        self.hidden = True
        self.log.append('hide')

    def restore(self):
        self.hidden = False
        self.log.append('restore')


class FakeImage(LoadableImage):
    def __init__(self, result=True):
        self.result = result

    def wait_until_loaded(self, timeout):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakeView(SlideView):
    def __init__(self, index, log, color=(255, 255, 255), images=(), noisy=False, fail_capture=False):
        self.index = index
        self.log = log
        self.color = color
        self._images = list(images)
        self.noisy = noisy
        self.fail_capture = fail_capture
        self.chrome = FakeChrome(log)
        self.chrome_hidden_at_capture = None

    def scroll_into_view(self):
        self.log.append(f'scroll {self.index}')

    def interactive_elements(self, selector=CHROME_SELECTOR):
        return [self.chrome]

    def images(self):
        return self._images

    def reflow(self):
        self.log.append(f'reflow {self.index}')

    def capture(self, scale, ignore=()):
        self.log.append(f'capture {self.index}')
        self.chrome_hidden_at_capture = self.chrome.hidden
        if self.fail_capture:
            raise RuntimeError('canvas exploded')
        size = (int(80 * scale), int(45 * scale))
        if self.noisy:
            rng = random.Random(self.index)
            return Image.frombytes('RGB', size, bytes(rng.getrandbits(8) for _ in range(size[0] * size[1] * 3)))
        return Image.new('RGB', size, self.color)


class FakeSurface(SlideSurface):
    def __init__(self, views):
        self.views = views
        self.selectors = []

    def query_slides(self, selector=SLIDE_SELECTOR):
        self.selectors.append(selector)
        return self.views


def no_sleep(seconds):
    pass


def test_zero_slides_aborts_before_any_work(fast_config):
    log = []
    messages = []
    with pytest.raises(NoSlidesError):
        capture_slides(FakeSurface([]), ProgressReporter(on_progress=messages.append), fast_config, sleep=no_sleep)
    assert log == [] and messages == []


def test_slides_captured_in_order_with_chrome_hidden(fast_config):
    log = []
    views = [FakeView(i, log, color=(i * 50, 0, 0)) for i in range(3)]
    messages = []

    captures = capture_slides(FakeSurface(views), ProgressReporter(on_progress=messages.append), fast_config,
                              sleep=no_sleep)

    assert [c.index for c in captures] == [0, 1, 2]
    assert all(v.chrome_hidden_at_capture for v in views)
    assert not any(v.chrome.hidden for v in views)
    assert log[:5] == ['scroll 0', 'hide', 'reflow 0', 'capture 0', 'restore']
    assert messages == ['Processing slide 1/3...', 'Processing slide 2/3...', 'Processing slide 3/3...']
    assert captures[0].size == (160, 90)
    assert captures[0].mimetype == 'image/png'


def test_settle_delays_are_applied(fast_config):
    waits = []
    config = fast_config.with_overrides(slide_render_wait=2.0, final_render_wait=3.0)
    capture_slides(FakeSurface([FakeView(0, [])]), config=config, sleep=waits.append)
    assert waits == [2.0, 3.0]


def test_failed_images_do_not_abort_slide(fast_config):
    view = FakeView(0, [], images=[FakeImage(False), FakeImage(TimeoutError('slow')), FakeImage(True)])
    captures = capture_slides(FakeSurface([view]), config=fast_config, sleep=no_sleep)
    assert len(captures) == 1


def test_chrome_restored_when_capture_fails(fast_config):
    view = FakeView(0, [], fail_capture=True)
    with pytest.raises(RuntimeError):
        capture_slides(FakeSurface([view]), config=fast_config, sleep=no_sleep)
    assert view.chrome.hidden is False


def test_oversized_slide_is_skipped_with_warning(fast_config):
    log = []
    views = [FakeView(0, log), FakeView(1, log, noisy=True), FakeView(2, log)]
    warnings = []
    config = fast_config.with_overrides(max_slide_bytes=2000, raster_scale=2.0)

    captures = capture_slides(FakeSurface(views), ProgressReporter(on_warning=warnings.append), config,
                              sleep=no_sleep)

    assert [c.index for c in captures] == [0, 2]
    assert len(warnings) == 1
    assert 'Slide 2' in warnings[0]


def test_encode_capture_downscales_to_jpeg(fast_config):
    rng = random.Random(1)
    bitmap = Image.frombytes('RGB', (100, 100), bytes(rng.getrandbits(8) for _ in range(100 * 100 * 3)))
    png_size = len(encode_capture(0, bitmap, fast_config).data)

    config = fast_config.with_overrides(max_slide_bytes=png_size - 1, downscale_factor=0.5, jpeg_quality=30)
    capture = encode_capture(0, bitmap, config)
    assert capture.mimetype == 'image/jpeg'
    assert capture.size == (50, 50)


def test_encode_capture_raises_when_still_too_large(fast_config):
    bitmap = Image.new('RGB', (50, 50), (10, 20, 30))
    with pytest.raises(SlideTooLargeError) as info:
        encode_capture(4, bitmap, fast_config.with_overrides(max_slide_bytes=10))
    assert info.value.index == 4


def make_capture(index, size=(160, 90), color=(0, 128, 255)):
    output = io.BytesIO()
    Image.new('RGB', size, color).save(output, format='PNG')
    return CapturedSlide(index, output.getvalue(), 'image/png', size)


def test_build_pdf_has_one_page_per_capture():
    data = build_pdf([make_capture(0), make_capture(1), make_capture(2)], title='Deck')
    assert data.startswith(b'%PDF')
    assert len(re.findall(rb'/Type\s*/Page[^s]', data)) == 3


def test_build_html_captions_and_print_css():
    document = build_html([make_capture(0), make_capture(1)], title='Q3 <Review>').decode('utf-8')
    assert document.count('<div class="slide">') == 2
    assert 'Slide 1 of 2' in document and 'Slide 2 of 2' in document
    assert 'page-break-after: always' in document
    assert '<title>Q3 &lt;Review&gt;</title>' in document
    assert 'src="data:image/png;base64,' in document


def test_build_html_keeps_deck_positions_after_skips():
    document = build_html([make_capture(0), make_capture(2)], title='Deck', total=3).decode('utf-8')
    assert 'Slide 1 of 3' in document and 'Slide 3 of 3' in document
    assert 'Slide 2 of' not in document


def test_build_image_pptx_covers_each_slide():
    prs = Presentation(io.BytesIO(build_image_pptx([make_capture(0), make_capture(1)])))
    assert len(prs.slides) == 2
    picture = prs.slides[0].shapes[0]
    assert (picture.left, picture.top) == (0, 0)
    assert picture.width == Inches(13.333)
