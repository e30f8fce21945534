"""Logging configuration for the keyword service.

Application loggers (``sitekeywords.*``) and third-party loggers are levelled
separately so a crawl request does not flood the output with ``urllib3``
connection chatter. File output is opt-in through ``SITEKEYWORDS_LOG_FILE``.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

APP_LOGGER = "sitekeywords"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
NOISY_LOGGERS = ("urllib3", "uvicorn.access", "httpx")


def _resolve_level(level: Optional[str | int], default: int = logging.INFO) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip():
        value = level.strip().upper()
        if value.isdigit():
            return int(value)
        mapped = logging.getLevelName(value)
        if isinstance(mapped, int):
            return mapped
    return default


def configure_logging(
    level: Optional[str | int] = None,
    log_file: Optional[str | Path] = None,
    third_party_level: Optional[str | int] = None,
) -> Optional[Path]:
    """Configure console logging and, when a path is given, a fresh log file.

    ``log_file`` falls back to ``SITEKEYWORDS_LOG_FILE`` and
    ``third_party_level`` to ``SITEKEYWORDS_THIRD_PARTY_LOG_LEVEL`` (WARNING
    by default). Returns the log file path, or ``None`` when logging only to
    the console.
    """

    app_level = _resolve_level(level)
    vendor_level = _resolve_level(
        third_party_level or os.getenv("SITEKEYWORDS_THIRD_PARTY_LOG_LEVEL"),
        default=logging.WARNING,
    )
    log_file = log_file or os.getenv("SITEKEYWORDS_LOG_FILE") or None

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_path: Optional[Path] = None
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, mode="w", encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    # Handlers pass everything; loggers decide what gets through.
    root.setLevel(min(app_level, vendor_level))

    logging.getLogger(APP_LOGGER).setLevel(app_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(vendor_level)

    logging.getLogger(__name__).debug(
        "Logging configured: app=%s third_party=%s file=%s",
        logging.getLevelName(app_level),
        logging.getLevelName(vendor_level),
        log_path or "-",
    )
    return log_path
