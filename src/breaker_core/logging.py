from __future__ import annotations

import logging
import sys
from typing import Literal, Protocol, TextIO

import structlog
from structlog.typing import EventDict

_LOG_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_StdlibLogger = logging.Logger | logging.LoggerAdapter[logging.Logger]


class StructuredLogger(Protocol):
    """Logger protocol for the structured events breakers and tools emit."""

    def info(self, event: str, **kwargs: object) -> None:
        """Log an informational event."""

    def warning(self, event: str, **kwargs: object) -> None:
        """Log a warning event."""


def get_log_level_value(level: str) -> int:
    """Return stdlib log level constant for a normalized level string."""
    normalized = level.strip().upper()
    try:
        return _LOG_LEVELS[normalized]
    except KeyError as error:
        choices = ", ".join(sorted(_LOG_LEVELS))
        raise ValueError(f"log_level must be one of: {choices}") from error


def add_elapsed_ms(_: object, __: str, event_dict: EventDict) -> EventDict:
    """Render ``elapsed_seconds`` call timings as rounded milliseconds too."""
    elapsed = event_dict.get("elapsed_seconds")
    if isinstance(elapsed, (int, float)):
        event_dict["elapsed_ms"] = round(elapsed * 1000, 3)
    return event_dict


def _select_renderer(stream: TextIO) -> structlog.types.Processor:
    if stream.isatty():
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def _log(
    logger: StructuredLogger | _StdlibLogger,
    level: Literal["info", "warning"],
    event: str,
    **fields: object,
) -> None:
    """Log one event across structlog and stdlib logger implementations."""
    method = getattr(logger, level)
    if isinstance(logger, (logging.Logger, logging.LoggerAdapter)):
        method(event, extra=fields)
        return
    method(event, **fields)


def log_info(
    logger: StructuredLogger | _StdlibLogger,
    event: str,
    **fields: object,
) -> None:
    """Log an informational event."""
    _log(logger, "info", event, **fields)


def log_warning(
    logger: StructuredLogger | _StdlibLogger,
    event: str,
    **fields: object,
) -> None:
    """Log a warning event."""
    _log(logger, "warning", event, **fields)


def configure_structlog(
    *,
    log_level: str,
    stream: TextIO | None = None,
) -> structlog.stdlib.BoundLogger:
    """Configure structlog + stdlib logging for breaker hosts and tools.

    Context bound with ``structlog.contextvars`` (for example the simulation
    ``scenario``) is merged into every event, and call timings get an
    ``elapsed_ms`` field next to ``elapsed_seconds``.

    Args:
        log_level: Level name such as ``"INFO"``.
        stream: Output stream. Defaults to ``sys.stderr``. Events render as
            JSON unless the stream is a TTY.
    """
    level_value = get_log_level_value(log_level)
    output = sys.stderr if stream is None else stream
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    renderer = _select_renderer(output)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_elapsed_ms,
        timestamper,
    ]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(output)
    handler.setFormatter(formatter)

    logging.basicConfig(
        format="%(message)s",
        handlers=[handler],
        level=level_value,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            add_elapsed_ms,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return structlog.stdlib.get_logger()
