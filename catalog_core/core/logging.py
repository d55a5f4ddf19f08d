from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional, Union
from uuid import UUID


# Context variables for enriched logging
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
tenant_id_var: ContextVar[Optional[str]] = ContextVar("tenant_id", default=None)


class LoggingContextFilter(logging.Filter):
    """
    Logging filter that injects correlation_id and tenant_id from contextvars
    into each log record so formatters can include them.

    If no values are present in the context, placeholders are used.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        cid = correlation_id_var.get()
        tid = tenant_id_var.get()
        setattr(record, "correlation_id", cid or "-")
        setattr(record, "tenant_id", tid or "-")
        return True


# PUBLIC_INTERFACE
def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Configure root logging with a structured format and context filter."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    fmt = (
        "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | tenant=%(tenant_id)s | "
        "%(message)s"
    )
    handler.setFormatter(logging.Formatter(fmt=fmt))
    handler.addFilter(LoggingContextFilter())

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)


# PUBLIC_INTERFACE
@contextmanager
def logging_context(
    *,
    correlation_id: Optional[str] = None,
    tenant_id: Union[str, UUID, None] = None,
) -> Iterator[None]:
    """
    Bind correlation and tenant ids to the current context for the duration of the block.

    Used by the HTTP middleware and by non-HTTP callers such as the seed script.
    """
    token_corr = correlation_id_var.set(correlation_id)
    token_tenant = tenant_id_var.set(str(tenant_id) if tenant_id is not None else None)
    try:
        yield
    finally:
        correlation_id_var.reset(token_corr)
        tenant_id_var.reset(token_tenant)
