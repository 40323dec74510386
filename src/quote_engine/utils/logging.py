"""Logging helpers for the quote engine.

Every record carries the correlation ID of the request being handled, so a
single back-office action can be followed from the HTTP layer through the
catalog, tracker and history writes. The quote and package helpers emit one
pipe-separated line per operation:

    Quote operation: apply_recalculation | quote_id=QTE-1 | version=3
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

NO_CORRELATION_ID = "no-correlation-id"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context, generating one if absent."""
    cid = correlation_id or str(uuid.uuid4())
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamp ``correlation_id`` onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefix each line with ``[correlation_id]``."""

    def format(self, record: logging.LogRecord) -> str:
        cid = getattr(record, "correlation_id", None) or get_correlation_id() or NO_CORRELATION_ID
        return f"[{cid}] {super().format(record)}"


def get_logger(name: str) -> logging.Logger:
    """Return the named logger with the correlation filter attached once."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def configure_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger.

    Args:
        level: Log level name (e.g. "INFO", "DEBUG")
    """
    handler = logging.StreamHandler()
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(
        StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())


def _log_operation(
    logger: logging.Logger,
    prefix: str,
    operation: str,
    context: dict[str, Any],
    error: str | None,
) -> None:
    context = {key: value for key, value in context.items() if value is not None}
    context["operation"] = operation
    if error:
        context["error"] = error

    msg_parts = [f"{prefix}: {operation}"]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if error:
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_quote_operation(
    logger: logging.Logger,
    operation: str,
    *,
    quote_id: str | None = None,
    actor_id: str | None = None,
    version: int | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a quote operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "link_package", "apply_recalculation")
        quote_id: Quote ID if available
        actor_id: ID of the acting user
        version: Quote version after the operation
        status: Quote status after the operation
        error: Error message if operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "quote_id": quote_id,
        "actor_id": actor_id,
        "version": version,
        "status": status,
        **extra,
    }
    _log_operation(logger, "Quote operation", operation, context, error)


def log_package_operation(
    logger: logging.Logger,
    operation: str,
    *,
    package_id: str | None = None,
    actor_id: str | None = None,
    version: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a package catalog operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "create_package", "delete_package")
        package_id: Package ID if available
        actor_id: ID of the acting user
        version: Package version after the operation
        error: Error message if operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "package_id": package_id,
        "actor_id": actor_id,
        "version": version,
        **extra,
    }
    _log_operation(logger, "Package operation", operation, context, error)
