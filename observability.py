"""
observability.py — Logging, error tracking, request timing
===========================================================
Setup in app.py:
    from observability import init_logging, init_observability
    init_logging("INFO")
    init_observability(app)
"""

import logging
import os
import time
import uuid

import sentry_sdk
from flask import g, request
from flask_cors import CORS
from sentry_sdk.integrations.flask import FlaskIntegration

log = logging.getLogger("observability")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"
SLOW_REQUEST_MS = 1000


def init_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    # requests/urllib3 connection chatter
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def init_observability(app) -> None:
    """Sentry (when SENTRY_DSN is set), CORS on /api/*, and per-request timing headers."""
    sentry_dsn = os.getenv("SENTRY_DSN")
    if sentry_dsn:
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_RATE", "0.0")),
            environment=os.getenv("ENVIRONMENT", "production"),
        )
        log.info("[OBS] Sentry initialized")

    CORS(app, resources={r"/api/*": {"origins": os.getenv("CORS_ORIGINS", "*").split(",")}})

    @app.before_request
    def _start_timer():
        g.start_time = time.time()
        g.trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4())[:16])

    @app.after_request
    def _record_timing(response):
        if hasattr(g, "start_time"):
            latency = (time.time() - g.start_time) * 1000
            response.headers["X-Response-Time-Ms"] = str(int(latency))
            response.headers["X-Trace-Id"] = getattr(g, "trace_id", "")
            if latency > SLOW_REQUEST_MS:
                log.warning("Slow request %s %s: %dms (status %s)",
                            request.method, request.path, int(latency), response.status_code)
        return response
