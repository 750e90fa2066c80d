import os

# Prevent Sentry SDK from initialising during tests.
os.environ.pop("SENTRY_DSN", None)
os.environ.pop("SENTRY_ENV", None)

# Keep a developer's real key from reaching Gemini during tests.
os.environ.pop("GEMINI_API_KEY", None)
