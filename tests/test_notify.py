import pytest
import requests

from scrobble_cache import notify
from scrobble_cache.notify import Alerter, GotifyNotifier, WebhookNotifier


@pytest.fixture
def posts(monkeypatch):
    calls = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))

    monkeypatch.setattr(requests, "post", fake_post)
    return calls


def test_webhook_payload(posts):
    WebhookNotifier("https://hooks.example/x ", app_tag="tag").send(
        "error", "Write failed", "disk full", {"path": "/tmp/c.xml"})
    url, kwargs = posts[0]
    assert url == "https://hooks.example/x"
    assert kwargs["json"] == {
        "level": "ERROR",
        "title": "tag: Write failed",
        "message": "disk full",
        "extra": {"path": "/tmp/c.xml"},
    }


def test_webhook_respects_min_level(posts):
    n = WebhookNotifier("https://hooks.example/x", min_level="ERROR")
    n.send("WARNING", "t", "m")
    assert posts == []
    n.send("CRITICAL", "t", "m")
    assert len(posts) == 1


def test_unconfigured_notifiers_do_nothing(posts):
    WebhookNotifier(None).send("ERROR", "t", "m")
    GotifyNotifier("http://nas:8080", None).send("ERROR", "t", "m")
    GotifyNotifier(None, "token").send("ERROR", "t", "m")
    assert posts == []


def test_gotify_request(posts):
    GotifyNotifier("http://nas:8080/", " tok ", default_priority=7, app_tag="tag").send(
        "WARNING", "Rejected", "2 of 5", {"username": "alice"})
    url, kwargs = posts[0]
    assert url == "http://nas:8080/message"
    assert kwargs["headers"] == {"X-Gotify-Key": "tok"}
    assert kwargs["json"]["priority"] == 7
    assert kwargs["json"]["title"] == "tag: Rejected"
    assert kwargs["json"]["message"].startswith("2 of 5\n\n")


def test_network_errors_are_swallowed(monkeypatch):
    def boom(url, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(requests, "post", boom)
    WebhookNotifier("https://hooks.example/x").send("ERROR", "t", "m")
    GotifyNotifier("http://nas:8080", "tok").send("ERROR", "t", "m")


def test_alerter_fans_out_and_survives_broken_notifier():
    received = []

    class Broken:
        def send(self, *args):
            raise RuntimeError("nope")

    class Recorder:
        def send(self, level, title, message, extra=None):
            received.append((level, title))

    Alerter([Broken(), Recorder()])("ERROR", "t", "m")
    assert received == [("ERROR", "t")]


def test_from_env_builds_both(monkeypatch):
    monkeypatch.setattr(notify.config, "NOTIFY_WEBHOOK_URL", "https://hooks.example/x")
    alert = notify.from_env()
    assert [type(n) for n in alert.notifiers] == [WebhookNotifier, GotifyNotifier]
    assert alert.notifiers[0].webhook_url == "https://hooks.example/x"


def test_base_notifier_is_never_configured(posts):
    notify.Notifier(min_level="DEBUG").send("CRITICAL", "t", "m")
    assert posts == []
