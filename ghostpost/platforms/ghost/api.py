"""Ghost Admin API client."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Sequence

from ...core import HttpClient, HttpRequest, HttpResponse, TransportError
from ...settings import GhostSettings
from .credentials import GhostTokenSigner

LOGGER = logging.getLogger(__name__)

ACCEPT_VERSION = "v5.0"


class GhostApiError(RuntimeError):
    """Raised when the Ghost Admin API answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        messages: Sequence[str] = (),
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.messages = list(messages)
        self.details = dict(details or {})

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            base = f"{base} (HTTP {self.status})"
        if self.messages:
            base = f"{base}: {'; '.join(self.messages)}"
        if not self.details:
            return base
        try:
            detail_repr = json.dumps(self.details, ensure_ascii=False)
        except TypeError:
            detail_repr = str(self.details)
        return f"{base} | details: {detail_repr}"


class GhostValidationError(GhostApiError):
    """Ghost refused the payload (HTTP 422)."""


def extract_error_messages(response: HttpResponse) -> list[str]:
    """Pull ``errors[].message`` (or context/type) out of a Ghost error body."""
    try:
        data = response.json()
    except ValueError:
        snippet = response.text.strip()[:200]
        return [snippet] if snippet else []

    messages: list[str] = []
    errors = data.get("errors") if isinstance(data, dict) else None
    for error in errors or []:
        if not isinstance(error, dict):
            continue
        text = error.get("message") or error.get("type")
        if not text:
            continue
        context = error.get("context")
        if context and context != text:
            text = f"{text} ({context})"
        messages.append(str(text))
    return messages


class GhostApiClient:
    """Talks to ``<site>/ghost/api/admin`` with a freshly signed token per request."""

    def __init__(
        self,
        settings: GhostSettings,
        http_client: HttpClient,
        *,
        signer: GhostTokenSigner | None = None,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._signer = signer or GhostTokenSigner.from_raw(settings.admin_api_key)

    def find_post(self, identifier: str) -> dict[str, Any] | None:
        """Return the post whose slug matches ``identifier``.

        Any failure is logged and reported as "not found" so that a flaky
        lookup never prevents creating a new post.
        """
        params = {"filter": f"slug:{identifier}", "limit": "1", "fields": "id,slug,title,updated_at"}
        try:
            data = self._call("GET", "posts/", params=params)
            posts = data.get("posts") or []
        except (GhostApiError, TransportError, ValueError, AttributeError) as exc:
            LOGGER.warning("Lookup of post %r failed, treating it as new: %s", identifier, exc)
            return None
        return posts[0] if posts else None

    def create_post(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        data = self._call("POST", "posts/", params={"source": "html"}, body={"posts": [dict(payload)]})
        return self._first_post(data)

    def update_post(self, post_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        data = self._call(
            "PUT",
            f"posts/{post_id}/",
            params={"source": "html"},
            body={"posts": [dict(payload)]},
        )
        return self._first_post(data)

    def list_tags(self) -> list[dict[str, Any]]:
        try:
            data = self._call("GET", "tags/", params={"limit": "all", "fields": "id,name,slug"})
            tags = data.get("tags") or []
        except (GhostApiError, TransportError, ValueError, AttributeError) as exc:
            LOGGER.warning("Could not load existing Ghost tags: %s", exc)
            return []
        return [tag for tag in tags if isinstance(tag, dict)]

    def check_connection(self) -> bool:
        try:
            data = self._call("GET", "site/")
        except (GhostApiError, TransportError, ValueError) as exc:
            LOGGER.error("Ghost connection test failed: %s", exc)
            return False
        site = data.get("site") if isinstance(data, dict) else None
        LOGGER.info("Connected to Ghost site %s", (site or {}).get("title", self._settings.site_url))
        return True

    def _call(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> dict[str, Any]:
        url = f"{self._settings.admin_api_url}/{path}"
        headers = {
            "Authorization": self._signer.authorization_header(),
            "Accept-Version": ACCEPT_VERSION,
            "Content-Type": "application/json",
        }
        if body is not None:
            LOGGER.debug("Ghost %s %s payload: %s", method, url, json.dumps(body, ensure_ascii=False))

        response = self._http.fetch(HttpRequest(url=url, method=method, headers=headers, params=params, json=body))
        LOGGER.debug("Ghost %s %s -> HTTP %d: %s", method, url, response.status, response.text[:2000])

        if not response.ok:
            messages = extract_error_messages(response)
            if response.status == 422:
                raise GhostValidationError("Ghost rejected the post", status=response.status, messages=messages)
            raise GhostApiError(
                f"Ghost API {method} {path} failed",
                status=response.status,
                messages=messages,
            )

        if not response.text.strip():
            return {}
        return response.json()

    @staticmethod
    def _first_post(data: Mapping[str, Any]) -> dict[str, Any]:
        posts = data.get("posts") or []
        if not posts:
            raise GhostApiError("Ghost response did not contain a post", details={"keys": sorted(data)})
        return posts[0]
