import io

import pytest
from pptx import Presentation

from deck_export import orchestrator
from deck_export.errors import ExportFailedError, NoSlidesError
from deck_export.models import Deck, Slide
from deck_export.orchestrator import export, export_filename
from deck_export.progress import ProgressReporter
from tests.conftest import FakeResponse
from tests.test_raster import FakeSurface, FakeView


class Recorder:
    def __init__(self):
        self.progress, self.warnings, self.alerts, self.delivered = [], [], [], []

    def reporter(self):
        return ProgressReporter(self.progress.append, self.warnings.append, self.alerts.append)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.mark.parametrize('format, expected', [
    ('pdf', 'Widgets_2024_.pdf'),
    ('html', 'Widgets_2024_.html'),
    ('pptx', 'Widgets_2024__editable.pptx'),
    ('pptx-images', 'Widgets_2024_.pptx'),
])
def test_export_filename(format, expected):
    assert export_filename('Widgets 2024!', format) == expected


def test_pptx_export_delivers_file(fake_web, png_bytes, widget_deck, fast_config, recorder):
    routes, _ = fake_web
    routes['https://img.example.com/widget.png'] = FakeResponse(png_bytes)

    result = export('pptx', widget_deck.title, deck=widget_deck, theme=widget_deck.theme,
                    reporter=recorder.reporter(), config=fast_config, deliver=recorder.delivered.append)

    assert recorder.delivered == [result]
    assert result.filename == 'Widgets_2024__editable.pptx'
    assert result.slide_count == 2
    assert len(Presentation(io.BytesIO(result.data)).slides) == 2
    assert 'Creating slide 2/2...' in recorder.progress
    assert recorder.alerts == []


def test_pptx_requires_deck_and_theme(widget_deck):
    with pytest.raises(ValueError):
        export('pptx', 'x', deck=widget_deck)
    with pytest.raises(ValueError):
        export('pptx', 'x', theme=widget_deck.theme)


def test_unknown_format_rejected(widget_deck):
    with pytest.raises(ValueError):
        export('docx', 'x', deck=widget_deck, theme=widget_deck.theme)


def test_raster_requires_surface_or_deck():
    with pytest.raises(ValueError):
        export('pdf', 'x')


def test_pdf_export_from_mounted_surface(fast_config, recorder):
    surface = FakeSurface([FakeView(0, []), FakeView(1, [])])

    result = export('pdf', 'Quarterly Review', surface=surface, reporter=recorder.reporter(),
                    config=fast_config, deliver=recorder.delivered.append)

    assert result.filename == 'Quarterly_Review.pdf'
    assert result.mimetype == 'application/pdf'
    assert result.data.startswith(b'%PDF')
    assert result.slide_count == 2
    assert recorder.progress[:2] == ['Processing slide 1/2...', 'Processing slide 2/2...']


def test_html_export_from_deck_uses_headless_renderer(plain_theme, fast_config):
    deck = Deck(title='Deck', theme=plain_theme, slides=[Slide(id='1', title='Hello', layout='title-only')])
    result = export('html', 'Deck', deck=deck, config=fast_config)
    assert result.mimetype == 'text/html'
    assert b'Slide 1 of 1' in result.data


def test_image_pptx_export(fast_config):
    result = export('pptx-images', 'Pics', surface=FakeSurface([FakeView(0, [])]), config=fast_config)
    assert result.filename == 'Pics.pptx'
    assert len(Presentation(io.BytesIO(result.data)).slides) == 1


def test_no_slides_is_alerted_and_raised(fast_config, recorder):
    with pytest.raises(NoSlidesError):
        export('pdf', 'Empty', surface=FakeSurface([]), reporter=recorder.reporter(), config=fast_config,
               deliver=recorder.delivered.append)
    assert recorder.alerts == ['No slides found to download.']
    assert recorder.delivered == []


def test_empty_deck_pptx_is_a_precondition_failure(plain_theme, fast_config, recorder):
    with pytest.raises(NoSlidesError):
        export('pptx', 'Empty', deck=Deck(theme=plain_theme), theme=plain_theme, reporter=recorder.reporter(),
               config=fast_config)
    assert len(recorder.alerts) == 1


def test_writer_failure_surfaces_single_alert(monkeypatch, widget_deck, fast_config, recorder):
    def explode(*args, **kwargs):
        raise RuntimeError('disk full')

    monkeypatch.setattr(orchestrator, 'build_pptx', explode)

    with pytest.raises(ExportFailedError):
        export('pptx', 'x', deck=widget_deck, theme=widget_deck.theme, reporter=recorder.reporter(),
               config=fast_config, deliver=recorder.delivered.append)
    assert recorder.alerts == [orchestrator.FAILURE_MESSAGE]
    assert recorder.delivered == []


def test_all_slides_oversized_fails_without_file(fast_config, recorder):
    surface = FakeSurface([FakeView(0, [], noisy=True)])
    config = fast_config.with_overrides(max_slide_bytes=100)

    with pytest.raises(ExportFailedError):
        export('pdf', 'Big', surface=surface, reporter=recorder.reporter(), config=config,
               deliver=recorder.delivered.append)
    assert len(recorder.warnings) == 1
    assert recorder.alerts == [orchestrator.FAILURE_MESSAGE]
    assert recorder.delivered == []


def test_oversized_slide_reported_in_result(fast_config):
    surface = FakeSurface([FakeView(0, []), FakeView(1, [], noisy=True), FakeView(2, [])])
    result = export('html', 'Mixed', surface=surface, config=fast_config.with_overrides(max_slide_bytes=2000))
    assert result.slide_count == 2
    assert len(result.warnings) == 1
    assert b'Slide 3 of 3' in result.data
    assert b'Slide 2 of 3' not in result.data


def test_progress_callback_failure_is_ignored(widget_deck, fast_config, fake_web):
    def broken(message):
        raise RuntimeError('ui gone')

    result = export('pptx', 'x', deck=widget_deck, theme=widget_deck.theme,
                    reporter=ProgressReporter(on_progress=broken), config=fast_config)
    assert result.slide_count == 2


def test_caller_deck_is_not_mutated(widget_deck, fast_config, fake_web):
    before = widget_deck.model_dump()
    export('pptx', 'x', deck=widget_deck, theme=widget_deck.theme, config=fast_config)
    assert widget_deck.model_dump() == before
