"""
Dispatch notifications management command.

Polls the notification outbox and delivers due messages through their
channel senders. Uses SELECT FOR UPDATE SKIP LOCKED so several workers can
run side by side.
"""

import random
import signal
import time

from django.conf import settings
from django.core.management.base import BaseCommand

from apps.core.context import audit_context
from apps.core.logging import get_logger
from apps.notifications.services import dispatch_due_notifications

logger = get_logger(__name__)


class Command(BaseCommand):
    help = "Send due notifications (email, WhatsApp) from the outbox"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._shutdown_requested = False

    def add_arguments(self, parser):
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run once and exit (default: run continuously)",
        )
        parser.add_argument(
            "--batch-size",
            type=int,
            default=100,
            help="Number of notifications to process per batch (default: 100)",
        )
        parser.add_argument(
            "--poll-interval",
            type=float,
            default=10.0,
            help="Seconds between polls when nothing is due (default: 10)",
        )
        parser.add_argument(
            "--max-attempts",
            type=int,
            default=settings.NOTIFICATION_MAX_ATTEMPTS,
            help="Send attempts before a notification is marked as failed",
        )

    def handle(self, *args, **options):
        self._setup_signal_handlers()

        once = options["once"]
        batch_size = options["batch_size"]
        poll_interval = options["poll_interval"]
        max_attempts = options["max_attempts"]

        logger.info("notification_dispatcher_started", batch_size=batch_size)

        while not self._shutdown_requested:
            try:
                with audit_context(job="dispatch_notifications"):
                    stats = dispatch_due_notifications(batch_size, max_attempts)

                if stats.claimed > 0:
                    logger.info(
                        "notifications_dispatched",
                        claimed=stats.claimed,
                        sent=stats.sent,
                        failed=stats.failed,
                    )
                    if once:
                        break
                    # Continue immediately while there is a backlog
                    continue

            except Exception:
                logger.exception("notification_dispatcher_error")

            if once:
                break

            self._sleep_with_jitter(poll_interval)

        logger.info("notification_dispatcher_shutdown")

    def _sleep_with_jitter(self, base_seconds: float) -> None:
        """Sleep with random jitter to avoid thundering herd."""
        jitter = base_seconds * 0.2 * random.random()
        time.sleep(base_seconds + jitter)

    def _setup_signal_handlers(self) -> None:
        """Setup graceful shutdown on SIGINT/SIGTERM."""
        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, self._handle_signal)

    def _handle_signal(self, signum, frame) -> None:
        logger.info("notification_dispatcher_signal_received", signal=signum)
        self._shutdown_requested = True
