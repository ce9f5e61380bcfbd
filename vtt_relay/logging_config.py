"""Application-wide structlog configuration for JSON logging."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import add_logger_name
from opentelemetry.trace import get_current_span


def _add_trace_context(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Inject trace_id/span_id from the current OpenTelemetry span, if any."""
    span_context = get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = f"{span_context.trace_id:032x}"
        event_dict["span_id"] = f"{span_context.span_id:016x}"
    return event_dict


def setup_logging(
    service_name: str,
    environment: str | None = None,
    level: str = "INFO",
) -> None:
    """Configure structlog and stdlib logging for JSON output to stdout."""
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_trace_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=shared_processors + [structlog.processors.JSONRenderer()],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stdout,
    )

    # Static context for every log line.
    structlog.contextvars.clear_contextvars()
    bind_args: dict[str, Any] = {"service": service_name}
    if environment:
        bind_args["environment"] = environment
    structlog.contextvars.bind_contextvars(**bind_args)
