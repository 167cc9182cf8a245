"""
Configuration via ENV VARS.

Values are read once at import time. Everything has a sane default so the
cache works without any environment set up.
"""

from __future__ import annotations
import os
import sys

APP_NAME = os.getenv("APP_NAME", "scrobblecache")
APP_TAG = os.getenv("APP_TAG", "Scrobble cache")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

SCROBBLE_CACHE_DIR = os.getenv("SCROBBLE_CACHE_DIR")
# Last.fm ignores plays shorter than 31 seconds
SCROBBLE_MIN_LENGTH = max(0, int(os.getenv("SCROBBLE_MIN_LENGTH", "31")))

# Notifications (both optional)
NOTIFY_WEBHOOK_URL = os.getenv("NOTIFY_WEBHOOK_URL")
NOTIFY_MIN_LEVEL = os.getenv("NOTIFY_MIN_LEVEL", "WARNING")
GOTIFY_URL = os.getenv("GOTIFY_URL")
GOTIFY_TOKEN = os.getenv("GOTIFY_TOKEN")
GOTIFY_PRIORITY = int(os.getenv("GOTIFY_PRIORITY", "5"))
GOTIFY_MIN_LEVEL = os.getenv("GOTIFY_MIN_LEVEL", "WARNING")


def runtime_data_dir(app_name: str = APP_NAME) -> str:
    """Per-user directory for data that must survive restarts."""
    if SCROBBLE_CACHE_DIR:
        return SCROBBLE_CACHE_DIR

    home = os.path.expanduser("~")
    if sys.platform.startswith("win"):
        base = os.getenv("LOCALAPPDATA") or os.path.join(home, "AppData", "Local")
    elif sys.platform == "darwin":
        base = os.path.join(home, "Library", "Application Support")
    else:
        base = os.getenv("XDG_DATA_HOME") or os.path.join(home, ".local", "share")
    return os.path.join(base, app_name)
