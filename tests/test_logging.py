"""
Tests for logging helpers.
"""

import logging

import orjson
from rich.console import Console

from dirsweep.core.logging import (
    JSONFormatter,
    RichConsoleHandler,
    get_contextual_logger,
    setup_logging,
)


def make_record(**extra):
    record = logging.LogRecord("dirsweep.runner", logging.WARNING, __file__, 1, "Backoff %ss", (60,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogging:
    """Tests for logging setup and formatting."""

    def test_json_formatter_includes_context(self):
        line = JSONFormatter().format(make_record(target="GLENELG", attempt=2))

        data = orjson.loads(line)
        assert data["message"] == "Backoff 60s"
        assert data["level"] == "WARNING"
        assert data["target"] == "GLENELG"
        assert data["attempt"] == 2
        assert "batch" not in data
        assert "run_id" not in data

    def test_contextual_logger_only_sets_given_fields(self):
        log = get_contextual_logger("runner", target="X", attempt=3)

        _, kwargs = log.process("hello", {})
        assert kwargs["extra"] == {"target": "X", "attempt": 3}

        _, kwargs = get_contextual_logger("scheduler", batch=2).process("hello", {"extra": {"note": 1}})
        assert kwargs["extra"] == {"batch": 2, "note": 1}

    def test_console_prefix(self):
        console = Console(record=True, width=120, color_system=None)
        handler = RichConsoleHandler(console=console)
        handler.setFormatter(logging.Formatter("%(message)s"))

        handler.emit(make_record(target="GLENELG", attempt=2))
        handler.emit(make_record(batch=3))

        lines = console.export_text().splitlines()
        assert lines[0] == "[GLENELG #2] Backoff 60s"
        assert lines[1] == "[batch 3] Backoff 60s"

    def test_file_log_is_json_lines(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        logger = setup_logging(level="WARNING", log_file=log_file, rich_console=False)

        get_contextual_logger("scheduler", batch=1).debug("Batch 1 :: 5 target(s)")
        for handler in logger.handlers:
            handler.flush()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        entry = orjson.loads(lines[-1])
        assert entry["batch"] == 1
        assert entry["level"] == "DEBUG"
