"""Sender-id logging context for tracing one lead across modules.

Every queued job runs in its own asyncio task, so setting the sender id at
the start of a job tags every log line that job produces, without threading
the id through each call.

Usage:
    from lead_orchestrator.logging_context import get_lead_logger, set_sender_id

    set_sender_id("5493415551234")
    logger = get_lead_logger(__name__)
    logger.info("Processing message")  # -> ... [5493415551234]: Processing message
"""

import logging
from contextvars import ContextVar

_sender_id: ContextVar[str] = ContextVar("sender_id", default="-")


def set_sender_id(sender_id: str) -> None:
    """Set the correlation id for the current async context."""
    _sender_id.set(sender_id)


class SenderIdFilter(logging.Filter):
    """Injects sender_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.sender_id = _sender_id.get()  # type: ignore[attr-defined]
        return True


def install_sender_filter(handler: logging.Handler) -> None:
    """Attach the filter to a handler so its format may use ``%(sender_id)s``."""
    if not any(isinstance(f, SenderIdFilter) for f in handler.filters):
        handler.addFilter(SenderIdFilter())


def get_lead_logger(name: str) -> logging.Logger:
    """Return a logger with the SenderIdFilter attached.

    The filter adds ``sender_id`` to each record so formatters can
    include ``%(sender_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SenderIdFilter) for f in logger.filters):
        logger.addFilter(SenderIdFilter())
    return logger
