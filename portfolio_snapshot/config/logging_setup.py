from __future__ import annotations

import logging
import sys

_HANDLER_FLAG = "_portfolio_snapshot_handler"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _level_to_int(level: str | int | None, default: int = logging.INFO) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        lvl = getattr(logging, level.upper(), None)
        if isinstance(lvl, int):
            return lvl
    return default


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a single stdout handler to the root logger. Safe to call repeatedly."""
    root = logging.getLogger()
    root.setLevel(_level_to_int(level))

    for handler in root.handlers:
        if getattr(handler, _HANDLER_FLAG, False):
            return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    setattr(handler, _HANDLER_FLAG, True)
    root.addHandler(handler)

    # httpx logs every request URL at INFO, which includes the apikey param
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return root
