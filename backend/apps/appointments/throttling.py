"""
Throttle for anonymous booking creation.

The public booking page has no login, so attempts are counted per client IP
in fixed windows. Counters live in Django's cache; with the database cache
used in production every worker sees the same buckets.
"""

import math
import time

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest

from apps.core.logging import get_logger
from apps.core.utils import get_client_ip

logger = get_logger(__name__)


class BookingThrottled(Exception):
    """The client used up its booking attempts for the current window."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"Too many booking attempts. Try again in {retry_after} seconds.")


class PublicBookingThrottle:
    """
    Fixed-window limit on public booking attempts per client IP.

    Two cache entries make up a bucket: the attempt counter and the instant
    the window resets. Both expire with the window.

    Usage:
        try:
            PublicBookingThrottle().hit(request)
        except BookingThrottled as e:
            return 429, RateLimitedResponse(..., retry_after=e.retry_after)
    """

    key_prefix = "throttle:public_booking"

    def __init__(self, max_attempts: int | None = None, window_seconds: int | None = None) -> None:
        self.max_attempts = (
            settings.BOOKING_PUBLIC_RATE_LIMIT if max_attempts is None else max_attempts
        )
        self.window_seconds = window_seconds or settings.BOOKING_PUBLIC_RATE_WINDOW_SECONDS

    def bucket_key(self, request: HttpRequest) -> str:
        return f"{self.key_prefix}:{get_client_ip(request, default='unknown')}"

    def hit(self, request: HttpRequest) -> int:
        """
        Count one attempt and return how many the client has left.

        Raises:
            BookingThrottled: the window's attempts are used up
        """
        key = self.bucket_key(request)
        now = time.time()

        # add() only writes when the bucket is missing, so the first attempt opens the window
        cache.add(f"{key}:resets_at", now + self.window_seconds, timeout=self.window_seconds)
        cache.add(key, 0, timeout=self.window_seconds)
        try:
            attempts = cache.incr(key)
        except ValueError:
            # Counter expired between add() and incr()
            cache.set(key, 1, timeout=self.window_seconds)
            attempts = 1

        if attempts > self.max_attempts:
            retry_after = self._retry_after(key, now)
            logger.warning(
                "public_booking_throttled",
                bucket=key,
                attempts=attempts,
                limit=self.max_attempts,
                retry_after=retry_after,
            )
            raise BookingThrottled(retry_after)

        return self.max_attempts - attempts

    def _retry_after(self, key: str, now: float) -> int:
        resets_at = cache.get(f"{key}:resets_at")
        if resets_at is None:
            return self.window_seconds
        return max(1, math.ceil(resets_at - now))
