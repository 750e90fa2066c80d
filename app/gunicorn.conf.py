"""Gunicorn settings for the trailcoach backend.

Run with ``gunicorn -c gunicorn.conf.py main:app`` from ``app/``. Logging and
Sentry are set up again in every worker because neither survives the fork.
"""

import logging
import os

bind = os.environ.get("TRAILCOACH_BIND", "0.0.0.0:5000")
workers = int(os.environ.get("TRAILCOACH_WORKERS", "1"))
threads = 4

# main.log_request writes the access lines
accesslog = None


def _health_sampler(sampling_context):
    path = (sampling_context.get("wsgi_environ") or {}).get("PATH_INFO", "")
    return 0.0 if path == "/health" else 1.0


def post_fork(server, worker):
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.INFO)

    dsn = os.environ.get("SENTRY_DSN")
    if dsn:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=dsn,
            environment=os.getenv("SENTRY_ENV", "production"),
            integrations=[
                FlaskIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            traces_sampler=_health_sampler,
            enable_logs=True,
        )

    logging.getLogger("trailcoach").info("worker %s started", worker.pid)
