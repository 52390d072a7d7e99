import logging
import time
import uuid

from flask import g, request

logger = logging.getLogger("api.requests")


def register_request_logging(app):
    @app.before_request
    def _start_timer():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_request(response):
        started = g.get("request_started")
        duration_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        request_id = g.get("request_id", "-")
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "[%s] %s %s - Status: %d - Duration: %.1fms - RequestID: %s",
            request.method,
            request.path,
            request.remote_addr,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response
