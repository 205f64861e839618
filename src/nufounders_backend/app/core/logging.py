# src/nufounders_backend/app/core/logging.py
from __future__ import annotations
import logging
import os

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# one INFO line per outbound request otherwise (token exchange, userinfo, emails)
_CHATTY = ("httpx", "httpcore")


def _level(name: str) -> int:
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """
    Configure the root logger once; later calls only re-apply LOG_LEVEL.
    Provider HTTP client logs stay at WARNING unless LOG_LEVEL=DEBUG.
    """
    level = _level(os.getenv("LOG_LEVEL", "INFO"))
    root = logging.getLogger()
    root.setLevel(level)

    for name in _CHATTY:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    if root.handlers:
        # uvicorn / pytest already installed handlers
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
