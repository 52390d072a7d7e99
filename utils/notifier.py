"""Deferred notifications: run a callable once, a fixed delay from now, on a daemon timer thread."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)


class DeferredNotifier:
    def __init__(self, delay_seconds: float = 10):
        self.delay_seconds = delay_seconds

    def schedule(self, job: Callable[..., Any], *args, **kwargs) -> threading.Timer:
        def _run():
            try:
                job(*args, **kwargs)
            except Exception:
                logger.exception("deferred notification %s failed", getattr(job, "__name__", job))

        timer = threading.Timer(self.delay_seconds, _run)
        timer.daemon = True
        timer.start()
        logger.debug("scheduled %s in %ss", getattr(job, "__name__", job), self.delay_seconds)
        return timer


def send_appointment_confirmation(email: str, code: str, start_time: str) -> None:
    # Email delivery lives outside this service; the log line is the hand-off point.
    logger.info("Sending appointment confirmation email to %s for appointment %s at %s", email, code, start_time)
