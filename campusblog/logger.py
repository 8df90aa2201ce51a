"""
Logging for the blog builder.

Every module logs through ``get_logger(__name__)``, which places it under the
``campusblog`` logger. ``setup_logging`` is called once by the CLI and
configures that logger only, so third-party libraries (httpx, bleach) keep
their own settings.

Usage:
    from campusblog.logger import setup_logging, get_logger

    setup_logging(level="DEBUG", log_file="build.log", log_format="json")

    logger = get_logger(__name__)
    logger.info("Rendered %d pages", count, extra={"output_dir": "public"})
"""

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, TextIO

ROOT_LOGGER_NAME = "campusblog"

CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FORMATS = ("text", "json")

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
    "RESET": "\033[0m",
}

# Anything on a record beyond these came in through ``extra=``
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


class ColorFormatter(logging.Formatter):
    """Console formatter; colors the level name when ``use_color`` is set."""

    def __init__(self, fmt: str = CONSOLE_FORMAT, datefmt: str = DATE_FORMAT, use_color: bool = True):
        super().__init__(fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{COLORS.get(levelname, '')}{levelname}{COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``extra=`` fields are nested under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in vars(record).items() if k not in _STANDARD_RECORD_ATTRS}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


def _file_handler(
    log_file: str,
    log_dir: Path | None,
    log_format: str,
    max_bytes: int,
    backup_count: int,
) -> RotatingFileHandler:
    log_path = Path(log_dir) / log_file if log_dir else Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_file: str | None = None,
    log_dir: Path | None = None,
    log_format: str = "text",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    (Re)configure the ``campusblog`` logger.

    Handlers installed by an earlier call are replaced, so the CLI can call
    this once per invocation.

    Args:
        level: Level name, case-insensitive.
        log_file: Also write records to this rotating file.
        log_dir: Directory for ``log_file``; created if missing.
        log_format: "text" or "json"; applies to the file only.
        max_bytes: Rotate the file at this size.
        backup_count: Rotated files to keep.
        stream: Console stream, stdout by default. Colors are used only when
            it is a terminal.

    Raises:
        ValueError: For an unknown level or format.
    """
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        raise ValueError(f"Unknown log level: {level}")
    log_format = log_format.lower()
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {log_format}")

    stream = stream or sys.stdout

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level_no)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream)
    is_tty = getattr(stream, "isatty", None)
    console.setFormatter(ColorFormatter(use_color=bool(is_tty and is_tty())))
    root_logger.addHandler(console)

    if log_file:
        root_logger.addHandler(_file_handler(log_file, log_dir, log_format, max_bytes, backup_count))

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger; pass ``__name__`` so it nests under ``campusblog``."""
    return logging.getLogger(name)
