"""Structured logging configuration for assetgraft.

Provides two logging modes:
- Console logging: Controlled by -v flag (rich output on stderr)
- File logging: Controlled by --log-dir (all events to {log_dir}/debug.jsonl)
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - Used at runtime for path operations
from typing import TYPE_CHECKING

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import Processor

# Module-level state
_configured = False
_file_handler: logging.FileHandler | None = None
_logs_dir: Path | None = None


class JSONLFileHandler(logging.FileHandler):
    """File handler that writes JSONL format."""

    def emit(self, record: logging.LogRecord) -> None:
        """Write log record as JSON line."""
        try:
            entry = {
                "timestamp": datetime.now(UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
            }

            # structlog passes the event dict via record.msg when using wrap_for_formatter
            if isinstance(record.msg, dict):
                event_dict = record.msg.copy()
                event_dict.pop("level", None)
                event_dict.pop("timestamp", None)
                entry["message"] = event_dict.pop("event", str(record.msg))
                entry.update(event_dict)
            else:
                entry["message"] = record.getMessage()

            line = json.dumps(entry, default=str) + "\n"
            if self.stream:
                self.stream.write(line)
                self.stream.flush()
        except Exception:
            self.handleError(record)


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Configure logging for assetgraft.

    Args:
        verbosity: 0=WARNING (default), 1=INFO, 2+=DEBUG
        log_to_file: If True, enable JSONL file logging into ``log_dir``.
        log_dir: Directory for ``debug.jsonl``. Required if log_to_file=True.

    Raises:
        ValueError: If log_to_file=True but log_dir is not provided.
    """
    global _configured, _file_handler, _logs_dir

    if log_to_file and log_dir is None:
        raise ValueError("log_dir is required when log_to_file=True")

    # Close existing file handler if reconfiguring
    if _file_handler is not None:
        _file_handler.close()
        _file_handler = None

    levels = {0: logging.WARNING, 1: logging.INFO}
    console_level = levels.get(verbosity, logging.DEBUG)

    console = Console(stderr=True)
    console_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 2,
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        markup=False,
        level=console_level,
    )

    handlers: list[logging.Handler] = [console_handler]

    _logs_dir = None
    if log_to_file and log_dir:
        _logs_dir = log_dir
        _logs_dir.mkdir(parents=True, exist_ok=True)

        _file_handler = JSONLFileHandler(str(_logs_dir / "debug.jsonl"), mode="a")
        _file_handler.setLevel(logging.DEBUG)
        handlers.append(_file_handler)

    root_level = logging.DEBUG if (verbosity > 0 or log_to_file) else logging.WARNING
    logging.basicConfig(
        level=root_level,
        format="%(message)s",
        handlers=handlers,
        force=True,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a structured logger instance.

    Automatically configures logging if not already done.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Bound logger instance.
    """
    if not _configured:
        configure_logging()

    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


def get_logs_dir() -> Path | None:
    """Get the configured logs directory.

    Returns:
        Path to logs directory if file logging is enabled, None otherwise.
    """
    return _logs_dir


def close_file_logging() -> None:
    """Close file logging handler."""
    global _file_handler
    if _file_handler:
        _file_handler.close()
        _file_handler = None


def bind_package_context(**context: str) -> None:
    """Tag every following log event with the packages being edited.

    Replaces any previously bound context, so each run starts clean.

    Args:
        **context: Key/value pairs such as ``target="Map.uasset"``.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**context)
