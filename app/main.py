"""trailcoach web backend: dashboard API, Strava relay and AI proxy."""

import logging
import os

# Sentry goes first so import-time errors below are reported too.
if _sentry_dsn := os.environ.get("SENTRY_DSN"):
    import sentry_sdk

    def _skip_health_checks(sampling_context: dict) -> float:
        path = (sampling_context.get("wsgi_environ") or {}).get("PATH_INFO")
        return 0.0 if path == "/health" else 1.0

    sentry_sdk.init(
        dsn=_sentry_dsn,
        environment=os.getenv("SENTRY_ENV", "development"),
        send_default_pii=False,
        traces_sampler=_skip_health_checks,
        enable_logs=True,
    )

from db_init import load_trailcoach_config
from dotenv import load_dotenv
from flask import Flask, request

load_dotenv()

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

access_log = logging.getLogger("trailcoach.access")


def setup_logging() -> None:
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    # tests import this module repeatedly
    if any(getattr(h, "_trailcoach", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._trailcoach = True
    root.addHandler(handler)


setup_logging()

app = Flask(__name__)


@app.after_request
def log_request(response):
    if request.endpoint != "api.health":
        access_log.info("%s %s -> %s", request.method, request.full_path.rstrip("?"), response.status_code)
    return response


from routes.ai import ai_bp
from routes.api import api_bp
from routes.auth_strava import strava_bp

for blueprint in (api_bp, strava_bp, ai_bp):
    app.register_blueprint(blueprint)


if __name__ == "__main__":
    config = load_trailcoach_config()
    port = int(os.environ.get("PORT", "5000"))
    print(f"trailcoach backend on http://localhost:{port} (timezone {config.get('home_timezone')})")
    print(f"  health:       http://localhost:{port}/health")
    print(f"  integrations: http://localhost:{port}/api/integrations")
    print(f"  plan:         http://localhost:{port}/api/plan")
    app.run(debug=bool(config.get("debug")), host="0.0.0.0", port=port, threaded=True)
