"""
Deck Export Service v1.0
Turns an edited slide deck into a downloadable file

Formats:
- pdf: Rasterized slides, one A4 page each (ReportLab)
- html: Rasterized slides in a single static page
- pptx: Editable PowerPoint rebuilt from the deck (python-pptx)
- pptx-images: PowerPoint with one full-slide picture per slide
"""

import os
import time
import uuid
import tempfile
from typing import Optional

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from pydantic import ValidationError

from deck_export import Deck, NoSlidesError, ProgressReporter, Theme, export, get_theme
from deck_export.config import DEFAULT_CONFIG
from deck_export.orchestrator import FORMATS
from deck_export.themes import BUILTIN_THEMES, DEFAULT_THEME_ID
from deck_export.utils import get_logger

logger = get_logger('deck-export')

app = Flask(__name__)
CORS(app)

# Configuration
EXPORT_DIR = os.environ.get('DECK_EXPORT_DIR', os.path.join(tempfile.gettempdir(), 'deck-export'))

# =============================================================================
# HEALTH CHECK
# =============================================================================

@app.route('/', methods=['GET'])
def index():
    return jsonify({
        'service': 'Deck Export Service',
        'version': '1.0.0',
        'status': 'healthy',
        'formats': list(FORMATS.keys()),
        'themes': list(BUILTIN_THEMES.keys()),
        'endpoints': {
            'POST /export': 'Export a deck as pdf, html, pptx or pptx-images',
            'GET /themes': 'Get built-in themes',
            'GET /download/:id': 'Download an exported file',
        }
    })

@app.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'healthy', 'timestamp': time.strftime('%Y-%m-%dT%H:%M:%SZ')})

@app.route('/themes', methods=['GET'])
def get_themes():
    return jsonify({'themes': BUILTIN_THEMES, 'default': DEFAULT_THEME_ID})

# =============================================================================
# EXPORT
# =============================================================================

def resolve_theme(value, deck_data: dict) -> Theme:
    """Theme from an id, an inline object, or the deck's own theme"""
    if isinstance(value, str):
        return get_theme(value)
    if isinstance(value, dict):
        return Theme.model_validate(value)
    if isinstance(deck_data.get('theme'), dict):
        return Theme.model_validate(deck_data['theme'])
    return get_theme(DEFAULT_THEME_ID)

def export_path(request_id: str, filename: Optional[str] = None) -> str:
    folder = os.path.join(EXPORT_DIR, request_id)
    return os.path.join(folder, filename) if filename else folder

@app.route('/export', methods=['POST'])
def export_deck():
    """Export a deck; the file is stored only when the whole export succeeds"""

    start_time = time.time()
    request_id = str(uuid.uuid4())[:8]

    try:
        data = request.get_json(silent=True) or {}
        export_format = data.get('format', 'pptx')
        deck_data = data.get('deck') or {}
        title = data.get('title', deck_data.get('title', 'Presentation'))

        logger.info(f'[{request_id}] Request params: format={export_format}, title={title!r}, '
                    f'slides={len(deck_data.get("slides", []))}')

        if export_format not in FORMATS:
            return jsonify({'error': f'Unsupported format: {export_format}', 'request_id': request_id}), 400

        try:
            theme = resolve_theme(data.get('theme', data.get('themeId')), deck_data)
            deck = Deck.model_validate({**deck_data, 'title': title, 'theme': theme.model_dump(by_alias=True)})
        except ValidationError as e:
            return jsonify({'error': f'Invalid deck: {e.error_count()} validation errors',
                            'details': e.errors(include_url=False, include_context=False), 'request_id': request_id}), 400

        config = DEFAULT_CONFIG
        if data.get('maxSlideBytes'):
            config = config.with_overrides(max_slide_bytes=int(data['maxSlideBytes']))

        warnings = []
        reporter = ProgressReporter(
            on_progress=lambda message: logger.info(f'[{request_id}] {message}'),
            on_warning=warnings.append,
        )

        def deliver(result):
            os.makedirs(export_path(request_id), exist_ok=True)
            with open(export_path(request_id, result.filename), 'wb') as f:
                f.write(result.data)

        result = export(export_format, title, deck=deck, theme=theme, reporter=reporter,
                        config=config, deliver=deliver)

        duration = round(time.time() - start_time, 2)
        logger.info(f'[{request_id}] {result.filename} created in {duration}s')

        return jsonify({
            'success': True,
            'request_id': request_id,
            'download_url': f'/download/{request_id}',
            'filename': result.filename,
            'format': result.format,
            'slide_count': result.slide_count,
            'theme': theme.id,
            'warnings': result.warnings,
            'duration': duration
        })

    except (NoSlidesError, ValueError) as e:
        logger.warning(f'[{request_id}] Rejected: {e}')
        return jsonify({'error': str(e), 'request_id': request_id}), 400
    except Exception as e:
        logger.error(f'[{request_id}] Error: {e}')
        return jsonify({'error': str(e), 'request_id': request_id}), 500

@app.route('/download/<request_id>', methods=['GET'])
def download_export(request_id: str):
    """Download an exported file"""

    folder = export_path(os.path.basename(request_id))
    files = sorted(os.listdir(folder)) if os.path.isdir(folder) else []
    if not files:
        return jsonify({'error': 'Export not found or expired'}), 404

    filename = files[0]
    extension = os.path.splitext(filename)[1]
    mimetype = next(m for m, suffix in FORMATS.values() if suffix.endswith(extension))

    return send_file(
        os.path.join(folder, filename),
        mimetype=mimetype,
        as_attachment=True,
        download_name=filename
    )

# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    app.run(host='0.0.0.0', port=port, debug=False)
