from __future__ import annotations

import pytest
import requests

from ghostpost.core import HttpClient, HttpRequest, TransportError
from ghostpost.settings import HttpSettings


class FakeResponse:
    def __init__(self, status_code: int, text: str = "", headers: dict[str, str] | None = None) -> None:
        self.status_code = status_code
        self.text = text
        self.content = text.encode("utf-8")
        self.headers = headers or {}
        self.url = "https://blog.example.com/ghost/api/admin/site/"


class FakeSession:
    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, str, dict]] = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(session: FakeSession, sleeps: list[float], **overrides) -> HttpClient:
    settings = HttpSettings(**{"timeout": 5, "max_attempts": 3, "backoff_factor": 1.0, **overrides})
    return HttpClient(http_settings=settings, session=session, sleep=sleeps.append)


def test_get_is_retried_on_unavailable() -> None:
    session = FakeSession(FakeResponse(503), FakeResponse(200, '{"ok": true}'))
    sleeps: list[float] = []

    response = _client(session, sleeps).fetch(HttpRequest(url="https://blog.example.com/x"))

    assert response.status == 200
    assert response.ok
    assert response.json() == {"ok": True}
    assert len(session.calls) == 2
    assert len(sleeps) == 1
    assert 1.0 <= sleeps[0] <= 1.25


def test_retry_after_header_sets_the_wait() -> None:
    session = FakeSession(FakeResponse(429, headers={"Retry-After": "2"}), FakeResponse(200))
    sleeps: list[float] = []

    _client(session, sleeps).fetch(HttpRequest(url="https://blog.example.com/x"))

    assert 2.0 <= sleeps[0] <= 2.5


def test_post_is_never_retried() -> None:
    session = FakeSession(FakeResponse(503, "busy"))
    sleeps: list[float] = []

    response = _client(session, sleeps).fetch(
        HttpRequest(url="https://blog.example.com/posts/", method="POST", json={"posts": []})
    )

    assert response.status == 503
    assert not response.ok
    assert sleeps == []
    assert session.calls[0][2]["json"] == {"posts": []}


def test_post_network_error_raises_immediately() -> None:
    session = FakeSession(requests.ConnectionError("refused"))

    with pytest.raises(TransportError, match="POST"):
        _client(session, []).fetch(HttpRequest(url="https://blog.example.com/posts/", method="POST"))
    assert len(session.calls) == 1


def test_transport_error_after_exhausting_attempts() -> None:
    session = FakeSession(*(requests.Timeout("slow") for _ in range(3)))
    sleeps: list[float] = []

    with pytest.raises(TransportError, match="slow"):
        _client(session, sleeps).fetch(HttpRequest(url="https://blog.example.com/x"))

    assert len(session.calls) == 3
    assert len(sleeps) == 2


def test_request_options_are_forwarded() -> None:
    session = FakeSession(FakeResponse(200))

    _client(session, []).fetch(
        HttpRequest(
            url="https://blog.example.com/x",
            headers={"Accept-Version": "v5.0"},
            params={"limit": "1"},
            timeout=2,
        )
    )

    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert url == "https://blog.example.com/x"
    assert kwargs["headers"] == {"Accept-Version": "v5.0"}
    assert kwargs["params"] == {"limit": "1"}
    assert kwargs["timeout"] == 2
