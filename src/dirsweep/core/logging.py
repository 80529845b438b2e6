"""
Logging for sweep runs.

Everything logs under the ``dirsweep`` logger. The console gets rich
markup with a ``[target #attempt]`` prefix; the optional log file gets one
JSON object per line carrying the same context as separate fields.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from rich.markup import escape

if TYPE_CHECKING:
    from rich.console import Console

ROOT_LOGGER = "dirsweep"

# Extra attributes the runner and scheduler attach to records
CONTEXT_FIELDS = ("target", "attempt", "batch")

LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if getattr(record, key, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context fields flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return orjson.dumps(entry, default=str).decode("utf-8")


class RichConsoleHandler(logging.Handler):
    """Console handler that colors by level and prefixes the target."""

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    @staticmethod
    def _prefix(record: logging.LogRecord) -> str:
        ctx = _context(record)
        if "target" in ctx:
            attempt = f" #{ctx['attempt']}" if "attempt" in ctx else ""
            label = escape(f"[{ctx['target']}{attempt}]")
            return f"[cyan]{label}[/cyan] "
        if "batch" in ctx:
            label = escape(f"[batch {ctx['batch']}]")
            return f"[magenta]{label}[/magenta] "
        return ""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            style = LEVEL_STYLES.get(record.levelno, "default")
            text = f"{self._prefix(record)}[{style}]{escape(self.format(record))}[/{style}]"
            self.console.print(text, highlight=False)
            if record.exc_info:
                self.console.print_exception()
        except Exception:
            self.handleError(record)


def _console_handler(rich_console: bool, level: int) -> logging.Handler:
    if rich_console:
        handler: logging.Handler = RichConsoleHandler(level=level)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    handler.setLevel(level)
    return handler


def _file_handler(log_file: Path | str, json_format: bool) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the ``dirsweep`` logger, replacing any earlier handlers.

    The file handler, when enabled, always records DEBUG and up.
    """
    numeric = getattr(logging, level.upper())
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file else numeric)
    logger.handlers.clear()

    logger.addHandler(_console_handler(rich_console, numeric))
    if log_file:
        logger.addHandler(_file_handler(log_file, json_format))

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger under ``dirsweep`` (``dirsweep.<name>`` when named)."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


class ContextualLogger(logging.LoggerAdapter):
    """Adapter stamping target, attempt and batch onto every record."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_contextual_logger(
    name: str | None = None,
    target: str | None = None,
    attempt: int | None = None,
    batch: int | None = None,
) -> ContextualLogger:
    """Logger for ``name`` with whichever of the context fields are set."""
    context = {"target": target, "attempt": attempt, "batch": batch}
    return ContextualLogger(get_logger(name), {k: v for k, v in context.items() if v is not None})
