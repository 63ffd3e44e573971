from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

LOGGER_NAME = "poloniex_api"
LOG_FILE_NAME = "poloniex-api.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.environ.get("POLONIEX_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(log_dir: Path | None = None, level: str | int | None = None) -> logging.Logger:
    """Attach handlers to the ``poloniex_api`` logger.

    Records from every module of the package go to the console and, when
    ``log_dir`` is given, to a rotating file. The root logger and other
    libraries' loggers are left alone. Calling this again replaces the
    handlers installed by the previous call.

    Args:
        log_dir: Directory for ``poloniex-api.log``
        level: Level name or number; defaults to ``POLONIEX_LOG_LEVEL`` or INFO
    """
    resolved = _resolve_level(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(resolved)
    package_logger.propagate = False

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(resolved)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    # 10MB per file, 5 backups
    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=10*1024*1024,
            backupCount=5
        )
        file_handler.setLevel(resolved)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    return package_logger
