"""Shared helpers: logger setup and file-name sanitising."""

import logging
import re

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name: str) -> logging.Logger:
    """Return a named logger, configuring the root handler on first use.

    Messages carry a bracketed subsystem tag (``[PPTX]``, ``[PDF]``,
    ``[Image]``, ``[Export]``) so service logs read the same across modules.
    """
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    return logging.getLogger(name)


def safe_filename(title: str) -> str:
    """Replace every non-alphanumeric character of ``title`` with ``_``."""
    return re.sub(r'[^a-zA-Z0-9]', '_', title or '')
