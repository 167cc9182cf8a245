"""
Best-effort alerts about the cache.

Every channel shares the same gate: nothing is sent unless the channel is
configured and the alert is at or above its minimum level. Alerter fans out
to all channels and never raises; a broken notification channel must not
break the cache.
"""

from __future__ import annotations
import logging
from typing import Iterable

import requests

from scrobble_cache import config

log = logging.getLogger("notifier")

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}

def _level(name: str | None) -> int:
    return _LEVELS.get((name or "").upper(), 30)

class Notifier:
    """Level filtering and title tagging; subclasses only build the request."""

    def __init__(self, min_level: str = "WARNING", app_tag: str = config.APP_TAG):
        self.min_level = _level(min_level)
        self.app_tag = app_tag

    @property
    def configured(self) -> bool:
        return False

    def send(self, level: str, title: str, message: str, extra: dict | None = None):
        if not self.configured or _level(level) < self.min_level:
            return
        url, kwargs = self.request(level.upper(), f"{self.app_tag}: {title}", message, extra or {})
        try:
            requests.post(url, timeout=5, **kwargs)
        except requests.RequestException as e:
            log.debug("%s send failed: %s", type(self).__name__, e)

    def request(self, level: str, title: str, message: str, extra: dict):
        raise NotImplementedError

class WebhookNotifier(Notifier):
    """JSON POST; Slack/Discord-compatible webhooks accept it as is."""

    def __init__(self, webhook_url: str | None, **kwargs):
        super().__init__(**kwargs)
        self.webhook_url = webhook_url.strip() if webhook_url else None

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url)

    def request(self, level, title, message, extra):
        payload = {"level": level, "title": title, "message": message, "extra": extra}
        return self.webhook_url, {"json": payload}

class GotifyNotifier(Notifier):
    def __init__(self, url: str | None, token: str | None, default_priority: int = 5, **kwargs):
        super().__init__(**kwargs)
        self.url = url.rstrip("/") if url else None
        self.token = token.strip() if token else None
        self.default_priority = default_priority

    @property
    def configured(self) -> bool:
        return bool(self.url and self.token)

    def request(self, level, title, message, extra):
        body = {
            "title": title,
            "message": f"{message}\n\n{extra}" if extra else message,
            "priority": self.default_priority,
        }
        return f"{self.url}/message", {"json": body, "headers": {"X-Gotify-Key": self.token}}

class Alerter:
    def __init__(self, notifiers: Iterable[Notifier]):
        self.notifiers = list(notifiers)

    def __call__(self, level: str, title: str, message: str, extra: dict | None = None):
        for n in self.notifiers:
            try:
                n.send(level, title, message, extra)
            except Exception as e:
                log.debug("Notifier %s failed: %s", type(n).__name__, e)

def from_env() -> Alerter:
    return Alerter([
        WebhookNotifier(config.NOTIFY_WEBHOOK_URL, min_level=config.NOTIFY_MIN_LEVEL),
        GotifyNotifier(config.GOTIFY_URL, config.GOTIFY_TOKEN, default_priority=config.GOTIFY_PRIORITY,
                       min_level=config.GOTIFY_MIN_LEVEL),
    ])
