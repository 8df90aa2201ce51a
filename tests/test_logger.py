"""Tests for the logging module."""

import io
import json
import logging
import sys
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from campusblog.logger import (
    COLORS,
    ROOT_LOGGER_NAME,
    ColorFormatter,
    JSONFormatter,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def log_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def make_record(msg="Rendered %s", args=("hello-world",), level=logging.INFO,
                name="campusblog.generators.html"):
    return logging.LogRecord(name, level, "", 0, msg, args, None)


def flush():
    for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
        handler.flush()


class TestFormatters:
    def test_color_formatter_colors_level_and_restores_it(self):
        record = make_record(level=logging.WARNING)
        result = ColorFormatter(use_color=True).format(record)
        assert f"{COLORS['WARNING']}WARNING{COLORS['RESET']}" in result
        assert record.levelname == "WARNING"

    def test_color_formatter_plain(self):
        result = ColorFormatter(use_color=False).format(make_record())
        assert "\033[" not in result
        assert "[campusblog.generators.html] Rendered hello-world" in result

    def test_json_formatter_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "campusblog.generators.html"
        assert data["message"] == "Rendered hello-world"
        assert data["timestamp"].endswith("Z")
        assert "extra" not in data

    def test_json_formatter_collects_extra_fields(self):
        record = make_record()
        record.slug = "hello-world"
        record.page_count = 3
        data = json.loads(JSONFormatter().format(record))
        assert data["extra"] == {"slug": "hello-world", "page_count": 3}

    def test_json_formatter_exception(self):
        try:
            raise ValueError("bad payload")
        except ValueError:
            record = logging.LogRecord("campusblog.api", logging.ERROR, "", 0, "failed", (), sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad payload" in data["exception"]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_configures_package_logger(self):
        logger = setup_logging(level="debug", stream=io.StringIO())
        assert logger.name == ROOT_LOGGER_NAME == "campusblog"
        assert logger.level == logging.DEBUG

    def test_module_loggers_nest_under_package(self):
        setup_logging(level="WARNING", stream=io.StringIO())
        logger = get_logger("campusblog.cleaner")
        assert logger.getEffectiveLevel() == logging.WARNING

    def test_repeated_calls_replace_handlers(self):
        setup_logging(stream=io.StringIO())
        logger = setup_logging(stream=io.StringIO())
        assert len(logger.handlers) == 1

    def test_console_not_colored_when_not_a_terminal(self):
        stream = io.StringIO()
        setup_logging(stream=stream)
        get_logger("campusblog.api").info("Fetched 2 pages")
        assert "Fetched 2 pages" in stream.getvalue()
        assert "\033[" not in stream.getvalue()

    def test_file_handler_in_created_directory(self, log_dir):
        target = log_dir / "logs" / "nested"
        logger = setup_logging(
            log_file="build.log", log_dir=target, max_bytes=1024, backup_count=2, stream=io.StringIO()
        )

        handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(handlers) == 1
        assert handlers[0].maxBytes == 1024
        assert handlers[0].backupCount == 2
        assert (target / "build.log").exists()

    def test_level_filters_file_output(self, log_dir):
        setup_logging(level="WARNING", log_file="build.log", log_dir=log_dir, stream=io.StringIO())
        logger = get_logger("campusblog.generators.html")

        logger.info("Created: public/index.html")
        logger.warning("Skipping draft page: notes")
        flush()

        content = (log_dir / "build.log").read_text(encoding="utf-8")
        assert "Created: public/index.html" not in content
        assert "Skipping draft page: notes" in content

    def test_json_file_lines(self, log_dir):
        setup_logging(log_file="build.log", log_dir=log_dir, log_format="JSON", stream=io.StringIO())
        get_logger("campusblog.api").info("Fetched pages", extra={"count": 2})
        flush()

        lines = (log_dir / "build.log").read_text(encoding="utf-8").splitlines()
        data = json.loads(lines[-1])
        assert data["message"] == "Fetched pages"
        assert data["extra"] == {"count": 2}

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="log level"):
            setup_logging(level="LOUD")

    def test_unknown_format(self, log_dir):
        with pytest.raises(ValueError, match="log format"):
            setup_logging(log_file="build.log", log_dir=log_dir, log_format="xml")
