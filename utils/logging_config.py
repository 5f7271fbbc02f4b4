from __future__ import annotations

import logging

from utils.settings import log_level


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    resolved = (level or log_level()).upper()
    root.setLevel(resolved)
    if any(getattr(handler, "_datasource_handler", False) for handler in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._datasource_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
