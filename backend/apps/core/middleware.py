"""
Core middleware.
"""

import time
import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from apps.core.logging import bind_contextvars, clear_contextvars, get_logger
from apps.core.utils import get_client_ip

logger = get_logger(__name__)

REQUEST_ID_HEADER = "HTTP_X_REQUEST_ID"


class CorrelationIdMiddleware:
    """
    Binds a correlation ID and request metadata to the logging context.

    The ID comes from the X-Request-ID header when the caller supplies a
    valid UUID, otherwise a fresh one is generated. It is echoed back in the
    X-Request-ID response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        correlation_id = _parse_request_id(request.META.get(REQUEST_ID_HEADER))
        request.correlation_id = correlation_id  # type: ignore[attr-defined]

        clear_contextvars()
        bind_contextvars(
            correlation_id=correlation_id,
            **{
                "http.method": request.method,
                "http.url_details.path": request.path,
                "request.ip_address": get_client_ip(request),
                "request.user_agent": request.META.get("HTTP_USER_AGENT", ""),
            },
        )

        start = time.monotonic()
        try:
            response = self.get_response(request)
            logger.info(
                "request_finished",
                **{"http.status_code": response.status_code},
                duration_ms=(time.monotonic() - start) * 1000,
            )
            response["X-Request-ID"] = correlation_id
            return response
        finally:
            clear_contextvars()


def _parse_request_id(raw: str | None) -> str:
    """Return raw if it is a UUID, otherwise a new UUID4 string."""
    if raw:
        try:
            return str(uuid.UUID(raw))
        except ValueError:
            pass
    return str(uuid.uuid4())
