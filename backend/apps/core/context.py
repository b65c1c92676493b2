"""
Logging context for non-request code paths.

Management commands and other background jobs have no HTTP request to take
a correlation id from; audit_context binds one so their log lines can be
traced the same way request logs are.
"""

from collections.abc import Generator
from contextlib import contextmanager
from uuid import uuid4

import structlog


@contextmanager
def audit_context(
    correlation_id: str | None = None,
    job: str = "",
) -> Generator[str, None, None]:
    """
    Bind a correlation id (and optional job name) for the duration of a block.

    Usage:
        with audit_context(job="dispatch_notifications") as correlation_id:
            dispatch_due_notifications()

    Args:
        correlation_id: Trace ID to reuse. Auto-generated if not provided.
        job: Name of the background job, logged as "job".

    Yields:
        The bound correlation id
    """
    ctx = {"correlation_id": correlation_id or str(uuid4())}
    if job:
        ctx["job"] = job

    structlog.contextvars.bind_contextvars(**ctx)
    try:
        yield ctx["correlation_id"]
    finally:
        structlog.contextvars.unbind_contextvars(*ctx.keys())
