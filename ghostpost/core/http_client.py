"""HTTP client backed by ``requests`` with retries for idempotent requests."""

from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import requests

from ..settings import HttpSettings

_LOGGER = logging.getLogger(__name__)
_IDEMPOTENT_METHODS = {"GET", "HEAD"}
_RETRY_STATUSES = {429, 502, 503, 504}


class TransportError(RuntimeError):
    """Raised when a request could not be completed at the network level."""


@dataclass(slots=True)
class HttpRequest:
    url: str
    method: str = "GET"
    headers: Mapping[str, str] | None = None
    params: Mapping[str, str] | None = None
    json: Any = None
    timeout: float | None = None
    max_attempts: int | None = None


@dataclass(slots=True)
class HttpResponse:
    url: str
    status: int
    headers: Mapping[str, str]
    body: bytes
    text: str
    elapsed: float

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.text)


class HttpClient:
    """Thin wrapper around a ``requests.Session``.

    Non-2xx responses are returned to the caller. Only ``GET`` and ``HEAD``
    requests are retried, on network errors and on 429/502/503/504.
    """

    def __init__(
        self,
        *,
        http_settings: HttpSettings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._http_settings = http_settings
        self._session = session or requests.Session()
        self._sleep = sleep

    def fetch(self, request: HttpRequest) -> HttpResponse:
        method = request.method.upper()
        timeout = request.timeout if request.timeout is not None else self._http_settings.timeout
        max_attempts = 1
        if method in _IDEMPOTENT_METHODS:
            max_attempts = (
                request.max_attempts
                if request.max_attempts is not None
                else self._http_settings.max_attempts
            )

        attempt = 0
        start_time = time.monotonic()
        while True:
            attempt += 1
            try:
                resp = self._session.request(
                    method,
                    request.url,
                    headers=dict(request.headers or {}),
                    params=request.params,
                    json=request.json,
                    timeout=timeout,
                )
            except requests.RequestException as exc:
                if attempt >= max_attempts:
                    raise TransportError(f"{method} {request.url} failed: {exc}") from exc
                wait_seconds = self._compute_retry_wait(None, attempt)
                _LOGGER.warning(
                    "%s %s failed on attempt %d/%d (%s); retrying in %.2fs",
                    method,
                    request.url,
                    attempt,
                    max_attempts,
                    exc,
                    wait_seconds,
                )
                self._sleep(wait_seconds)
                continue

            if resp.status_code in _RETRY_STATUSES and attempt < max_attempts:
                wait_seconds = self._compute_retry_wait(resp.headers.get("Retry-After"), attempt)
                _LOGGER.warning(
                    "%s %s returned HTTP %d on attempt %d/%d; retrying in %.2fs",
                    method,
                    request.url,
                    resp.status_code,
                    attempt,
                    max_attempts,
                    wait_seconds,
                )
                self._sleep(wait_seconds)
                continue

            return HttpResponse(
                url=resp.url or request.url,
                status=resp.status_code,
                headers=dict(resp.headers),
                body=resp.content or b"",
                text=resp.text or "",
                elapsed=time.monotonic() - start_time,
            )

    def _compute_retry_wait(self, retry_after: str | None, attempt: int) -> float:
        wait_seconds = 0.0
        if retry_after:
            try:
                wait_seconds = float(retry_after)
            except (TypeError, ValueError):
                wait_seconds = 0.0
        if wait_seconds <= 0:
            wait_seconds = self._http_settings.backoff_factor * attempt
        jitter = random.uniform(0, 0.25 * wait_seconds)
        return wait_seconds + jitter
