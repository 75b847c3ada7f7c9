from __future__ import annotations

import logging

from commerce.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: logging.Handler | None = None


def configure_logging(level: str | None = None) -> None:
    global _handler

    settings = get_settings()
    root = logging.getLogger()

    # Repeated calls (CLI entry point, tests) replace our handler instead of stacking another.
    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(_handler)
    root.setLevel((level or settings.log_level).upper())
