"""
Unit tests for planecut.logging_config module.

Tests:
- JSON formatter output (numpy-aware extra fields)
- Console formatter output
- Logging setup
- Timing utilities
- Context management
"""

import json
import logging
import sys
from io import StringIO

import numpy as np
import pytest

from planecut.logging_config import (
    PACKAGE_LOGGER,
    ConsoleFormatter,
    JSONFormatter,
    LogContext,
    configure_default_logging,
    get_logger,
    log_timing,
    setup_logging,
    timed,
)


def _record(name="test", level=logging.INFO, msg="Message", lineno=1, exc_info=None):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=lineno,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


pytestmark = pytest.mark.usefixtures("restore_package_logger")


class TestJSONFormatter:
    """Tests for JSONFormatter class."""

    def test_basic_format(self):
        """Test basic JSON log format."""
        data = json.loads(JSONFormatter().format(_record(name="planecut.section.engine")))

        assert data["level"] == "INFO"
        assert data["logger"] == "planecut.section.engine"
        assert data["message"] == "Message"
        assert "timestamp" in data

    def test_extra_fields(self):
        """Test that extra fields are included in JSON output."""
        record = _record()
        record.model = "bracket.stl"
        record.n_loops = 3

        data = json.loads(JSONFormatter().format(record))

        assert data["model"] == "bracket.stl"
        assert data["n_loops"] == 3

    def test_numpy_extra_fields(self):
        """numpy scalars and arrays become plain JSON values."""
        record = _record()
        record.n_triangles = np.int64(12)
        record.normal = np.array([0.0, 1.0, 0.0])

        data = json.loads(JSONFormatter().format(record))

        assert data["n_triangles"] == 12
        assert data["normal"] == [0.0, 1.0, 0.0]

    def test_unserializable_extra_falls_back_to_str(self):
        record = _record()
        record.owner = object()

        data = json.loads(JSONFormatter().format(record))

        assert data["owner"].startswith("<object")

    def test_extra_disabled(self):
        record = _record()
        record.model = "bracket.stl"

        data = json.loads(JSONFormatter(include_extra=False).format(record))

        assert "model" not in data

    def test_location_for_warning(self):
        """Test that location info is included for warnings."""
        data = json.loads(JSONFormatter().format(_record(level=logging.WARNING, lineno=42)))

        assert "location" in data
        assert data["location"]["line"] == 42

    def test_no_location_for_info(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert "location" not in data

    def test_exception_format(self):
        """Test that exceptions are formatted."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert "exception" in data
        assert "ValueError" in data["exception"]

    def test_unicode_message(self):
        """Test Unicode characters in messages."""
        record = _record(msg="Сечение: ellipse, контуров: 1, угол 60°")

        data = json.loads(JSONFormatter().format(record))

        assert "Сечение" in data["message"]
        assert "°" in data["message"]


class TestConsoleFormatter:
    """Tests for ConsoleFormatter class."""

    def test_basic_format(self):
        """Test basic console format."""
        record = _record(name="planecut.section.welding", msg="Welding points")

        result = ConsoleFormatter(use_colors=False).format(record)

        assert "INFO" in result
        assert "section.welding" in result
        assert "planecut.section" not in result  # Prefix stripped
        assert "Welding points" in result

    def test_extra_fields_shown(self):
        """Test that extra fields are shown inline."""
        record = _record()
        record.elapsed_seconds = 0.012345

        result = ConsoleFormatter(use_colors=False, show_extra=True).format(record)

        assert "elapsed_seconds=0.0123" in result

    def test_large_array_summarized(self):
        record = _record()
        record.points = np.zeros((100, 3))

        result = ConsoleFormatter(use_colors=False).format(record)

        assert "<array (100, 3)>" in result

    def test_colors_disabled(self):
        """Test that colors are not present when disabled."""
        result = ConsoleFormatter(use_colors=False).format(_record(level=logging.ERROR))

        # No ANSI escape codes
        assert "\033[" not in result

    def test_colors_enabled(self):
        result = ConsoleFormatter(use_colors=True).format(_record(level=logging.ERROR))
        assert "\033[31m" in result


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_returns_package_logger(self):
        """Test that setup returns the planecut logger."""
        logger = setup_logging(level=logging.DEBUG, console=False)
        assert isinstance(logger, logging.Logger)
        assert logger.name == PACKAGE_LOGGER
        assert logger.propagate is False

    def test_console_handler_added(self):
        """Test that console handler is added."""
        logger = setup_logging(console=True)

        stream_handlers = [h for h in logger.handlers
                           if isinstance(h, logging.StreamHandler)]
        assert len(stream_handlers) == 1

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(console=True)
        logger = setup_logging(console=True)
        assert len(logger.handlers) == 1

    def test_json_file_handler(self, tmp_path):
        """Test JSON file handler creation."""
        json_path = tmp_path / "planecut.log.json"

        logger = setup_logging(json_file=json_path, console=False)
        logger.info("Test message", extra={"model": "box.stl"})
        for handler in logger.handlers:
            handler.flush()

        data = json.loads(json_path.read_text(encoding='utf-8').strip())
        assert data["message"] == "Test message"
        assert data["model"] == "box.stl"

    def test_level_setting(self):
        """Test that log level is correctly set."""
        logger = setup_logging(level=logging.WARNING, console=False)
        assert logger.level == logging.WARNING


class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_logger(self):
        logger = get_logger("planecut.section.loops")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "planecut.section.loops"

    def test_same_logger_returned(self):
        assert get_logger("planecut.io") is get_logger("planecut.io")


class TestLogTiming:
    """Tests for log_timing context manager."""

    @staticmethod
    def _stream_logger(name):
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        logger.addHandler(handler)
        return logger, stream, handler

    def test_logs_start_and_complete(self):
        """Test that start and complete messages are logged."""
        logger, stream, handler = self._stream_logger("timing_test")
        try:
            with log_timing(logger, "mesh section"):
                pass
        finally:
            logger.removeHandler(handler)

        output = stream.getvalue()
        assert "Starting" in output
        assert "Completed" in output
        assert "mesh section" in output

    def test_timing_info_updated(self):
        """Test that the yielded dict is populated."""
        logger = logging.getLogger("timing_test2")
        logger.addHandler(logging.NullHandler())

        with log_timing(logger, "operation") as timing_info:
            timing_info["n_loops"] = 2

        assert timing_info["n_loops"] == 2
        assert timing_info["elapsed_seconds"] >= 0

    def test_completion_record_carries_fields(self):
        records = []
        logger = logging.getLogger("timing_test4")
        logger.setLevel(logging.DEBUG)
        handler = logging.Handler()
        handler.emit = records.append
        logger.addHandler(handler)
        try:
            with log_timing(logger, "weld", n_segments=8) as info:
                info["n_points"] = 8
        finally:
            logger.removeHandler(handler)

        done = records[-1]
        assert done.event == "complete"
        assert done.n_segments == 8
        assert done.n_points == 8

    def test_error_logged_on_exception(self):
        """Test that errors are logged when exception occurs."""
        logger, stream, handler = self._stream_logger("timing_test3")
        try:
            with pytest.raises(ValueError):
                with log_timing(logger, "failing operation"):
                    raise ValueError("Test error")
        finally:
            logger.removeHandler(handler)

        output = stream.getvalue()
        assert "ERROR" in output
        assert "Failed" in output


class TestTimedDecorator:
    """Tests for timed decorator."""

    def test_function_executed(self):
        logger = logging.getLogger("timed_test")
        logger.addHandler(logging.NullHandler())

        @timed(logger=logger)
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    def test_preserves_function_name(self):
        @timed()
        def my_function():
            pass

        assert my_function.__name__ == "my_function"


class TestLogContext:
    """Tests for LogContext class."""

    def test_fields_added_to_records(self):
        """Context fields are added to records of the package logger."""
        logger = setup_logging(console=False)
        captured = []

        class CaptureHandler(logging.Handler):
            def emit(self, record):
                captured.append(record)

        capture = CaptureHandler()
        logger.addHandler(capture)
        try:
            with LogContext(model="box.stl", cut=1):
                logger.info("Test message")
            logger.info("Outside")
        finally:
            logger.removeHandler(capture)

        assert captured[0].model == "box.stl"
        assert captured[0].cut == 1
        assert not hasattr(captured[1], "model")

    def test_context_current(self):
        """LogContext.current() returns the innermost context."""
        assert LogContext.current() is None

        outer = LogContext(model="a.stl")
        inner = LogContext(cut=2)
        with outer:
            assert LogContext.current() is outer
            with inner:
                assert LogContext.current() is inner
            assert LogContext.current() is outer

        assert LogContext.current() is None


class TestConfigureDefaultLogging:
    """Tests for configure_default_logging function."""

    def test_info_level_default(self):
        logger = configure_default_logging(verbose=False)
        assert logger.level == logging.INFO

    def test_debug_level_verbose(self):
        logger = configure_default_logging(verbose=True)
        assert logger.level == logging.DEBUG
