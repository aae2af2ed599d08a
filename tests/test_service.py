import importlib.util
import io
import os

import pytest
from pptx import Presentation

SERVICE_PATH = os.path.join(os.path.dirname(__file__), '..', 'cloud-run', 'deck-export', 'main.py')


def load_service():
    spec = importlib.util.spec_from_file_location('deck_export_service', SERVICE_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def service(monkeypatch, tmp_path, fast_config):
    module = load_service()
    monkeypatch.setattr(module, 'EXPORT_DIR', str(tmp_path / 'exports'))
    monkeypatch.setattr(module, 'DEFAULT_CONFIG', fast_config)
    return module


@pytest.fixture
def client(service):
    service.app.config['TESTING'] = True
    return service.app.test_client()


DECK = {
    'title': 'Launch Plan',
    'slides': [
        {'id': '1', 'title': 'Why now', 'layout': 'text-only', 'bullets': ['Market', 'Timing']},
        {'id': '2', 'title': 'Thanks', 'layout': 'title-only'},
    ],
}


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_index_lists_formats(client):
    body = client.get('/').get_json()
    assert set(body['formats']) == {'pdf', 'html', 'pptx', 'pptx-images'}


def test_themes(client):
    body = client.get('/themes').get_json()
    assert body['default'] in body['themes']
    assert 'modern-blue' in body['themes']


def test_pptx_export_then_download(client):
    response = client.post('/export', json={'format': 'pptx', 'deck': DECK, 'theme': 'modern-dark'})
    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True
    assert body['filename'] == 'Launch_Plan_editable.pptx'
    assert body['slide_count'] == 2
    assert body['theme'] == 'modern-dark'

    download = client.get(body['download_url'])
    assert download.status_code == 200
    assert 'attachment' in download.headers['Content-Disposition']
    assert len(Presentation(io.BytesIO(download.data)).slides) == 2


def test_html_export_uses_headless_renderer(client):
    response = client.post('/export', json={'format': 'html', 'deck': DECK, 'title': 'Board Deck'})
    assert response.status_code == 200
    body = response.get_json()
    assert body['filename'] == 'Board_Deck.html'

    download = client.get(body['download_url'])
    assert download.mimetype == 'text/html'
    assert b'Slide 2 of 2' in download.data


def test_unsupported_format(client):
    response = client.post('/export', json={'format': 'docx', 'deck': DECK})
    assert response.status_code == 400
    assert 'request_id' in response.get_json()


def test_empty_deck_is_rejected_without_file(client, service):
    response = client.post('/export', json={'format': 'pptx', 'deck': {'title': 'Empty', 'slides': []}})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'No slides found to download.'
    assert not os.path.exists(service.EXPORT_DIR)


def test_invalid_deck_reports_validation_errors(client):
    response = client.post('/export', json={'format': 'pptx', 'deck': {'slides': [{'layout': 'nonsense'}]}})
    assert response.status_code == 400
    assert response.get_json()['details']


def test_unknown_theme_falls_back_to_default(client):
    response = client.post('/export', json={'format': 'pptx', 'deck': DECK, 'theme': 'no-such-theme'})
    assert response.status_code == 200
    assert response.get_json()['theme'] == 'modern-blue'


def test_download_missing(client):
    assert client.get('/download/deadbeef').status_code == 404
