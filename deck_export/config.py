"""Export configuration.

Defaults come from the environment so the Cloud Run service can be tuned
without a rebuild; ``ExportConfig`` carries them into a single export call.
"""

import os
from dataclasses import dataclass, replace
from typing import Optional


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name, '')
    if not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Configuration
ASSET_ROOT = os.environ.get('DECK_EXPORT_ASSET_ROOT', os.path.join(os.getcwd(), 'public'))
IMAGE_FETCH_TIMEOUT = _env_float('DECK_EXPORT_IMAGE_TIMEOUT', 30.0)
OVERLAY_FETCH_TIMEOUT = _env_float('DECK_EXPORT_OVERLAY_TIMEOUT', 10.0)
IMAGE_LOAD_TIMEOUT = _env_float('DECK_EXPORT_IMAGE_LOAD_TIMEOUT', 15.0)
SLIDE_RENDER_WAIT = _env_float('DECK_EXPORT_SLIDE_RENDER_WAIT', 2.0)
FINAL_RENDER_WAIT = _env_float('DECK_EXPORT_FINAL_RENDER_WAIT', 3.0)
MAX_SLIDE_BYTES = _env_int('DECK_EXPORT_MAX_SLIDE_BYTES', None)
MAX_CONCURRENT_FETCHES = _env_int('DECK_EXPORT_MAX_CONCURRENT_FETCHES', 4)

# Canvas (16:9) in inches, as used by the PPTX writer
SLIDE_WIDTH_IN = 13.333
SLIDE_HEIGHT_IN = 7.5


@dataclass(frozen=True)
class ExportConfig:
    asset_root: str = ASSET_ROOT
    image_fetch_timeout: float = IMAGE_FETCH_TIMEOUT
    overlay_fetch_timeout: float = OVERLAY_FETCH_TIMEOUT
    image_load_timeout: float = IMAGE_LOAD_TIMEOUT
    slide_render_wait: float = SLIDE_RENDER_WAIT
    final_render_wait: float = FINAL_RENDER_WAIT
    raster_scale: float = 2.0
    # None means the output target has no per-slide size limit
    max_slide_bytes: Optional[int] = MAX_SLIDE_BYTES
    downscale_factor: float = 0.7
    downscale_attempts: int = 1
    jpeg_quality: int = 70
    max_concurrent_fetches: int = MAX_CONCURRENT_FETCHES or 4

    def with_overrides(self, **kwargs) -> 'ExportConfig':
        return replace(self, **kwargs)


DEFAULT_CONFIG = ExportConfig()
