"""Process-wide logging setup."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: str) -> None:
    """Configure root logging with the service format at ``level``.

    Unknown or blank level names fall back to ``INFO``.
    """
    normalized = level.strip().upper() if level and level.strip() else "INFO"
    resolved = getattr(logging, normalized, logging.INFO)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(level=resolved, format=_LOG_FORMAT)
