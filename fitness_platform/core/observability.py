import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator


REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def new_correlation_id(prefix: str = "req") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _sanitize(incoming: str | None) -> str | None:
    if not incoming:
        return None
    cleaned = incoming.strip()[:MAX_REQUEST_ID_LENGTH]
    return cleaned if cleaned.isprintable() and cleaned else None


@contextmanager
def correlation_context(incoming: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of a request or job.

    A caller-supplied id (usually the ``X-Request-ID`` header) is reused when it
    is printable; otherwise a fresh ``req-<hex>`` id is generated.
    """
    correlation_id = _sanitize(incoming) or new_correlation_id()
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Expose the bound correlation id to formatters as ``%(correlation_id)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True
