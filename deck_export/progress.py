"""Best-effort progress and alert reporting for an export job."""

from typing import Callable, Optional

from deck_export.utils import get_logger

logger = get_logger(__name__)

Callback = Callable[[str], None]


class ProgressReporter:
    """Forwards status text to caller-supplied callbacks.

    ``progress`` receives coarse status ("Creating slide 2/5..."), ``warn``
    per-slide warnings and ``alert`` the single total-failure message.
    A callback that raises is logged and otherwise ignored.
    """

    def __init__(self, on_progress: Optional[Callback] = None, on_warning: Optional[Callback] = None,
                 on_alert: Optional[Callback] = None):
        self.on_progress = on_progress
        self.on_warning = on_warning
        self.on_alert = on_alert

    def _emit(self, callback: Optional[Callback], message: str):
        if callback is None:
            return
        try:
            callback(message)
        except Exception as e:
            logger.debug(f'[Export] Progress callback failed: {e}')

    def progress(self, message: str):
        logger.info(f'[Export] {message}')
        self._emit(self.on_progress, message)

    def warn(self, message: str):
        logger.warning(f'[Export] {message}')
        self._emit(self.on_warning, message)

    def alert(self, message: str):
        logger.error(f'[Export] {message}')
        self._emit(self.on_alert, message)


NULL_REPORTER = ProgressReporter()
