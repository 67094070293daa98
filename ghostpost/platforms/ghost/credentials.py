"""Admin API key handling and short-lived token signing for Ghost."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Callable

import jwt

TOKEN_AUDIENCE = "/admin/"
TOKEN_LIFETIME = timedelta(minutes=5)

_HEX_SECRET = re.compile(r"^[0-9a-fA-F]+$")


@dataclass(frozen=True, slots=True)
class GhostAdminKey:
    """An Admin API key in Ghost's ``<id>:<hex secret>`` form."""

    key_id: str
    secret: bytes

    @classmethod
    def parse(cls, raw: str) -> "GhostAdminKey":
        key_id, sep, secret = raw.strip().partition(":")
        if not sep or not key_id or not secret or ":" in secret:
            raise ValueError("Invalid Admin API key format, expected '<id>:<secret>'")
        if not _HEX_SECRET.match(secret) or len(secret) % 2:
            raise ValueError("Invalid Admin API key format, secret must be hex encoded")
        return cls(key_id=key_id, secret=bytes.fromhex(secret))


class GhostTokenSigner:
    """Signs a fresh HS256 token for every Admin API request."""

    def __init__(
        self,
        key: GhostAdminKey,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._key = key
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    @classmethod
    def from_raw(cls, raw: str, **kwargs) -> "GhostTokenSigner":
        return cls(GhostAdminKey.parse(raw), **kwargs)

    @property
    def key_id(self) -> str:
        return self._key.key_id

    def sign(self) -> str:
        issued = int(self._clock().timestamp())
        payload = {
            "iat": issued,
            "exp": issued + int(TOKEN_LIFETIME.total_seconds()),
            "aud": TOKEN_AUDIENCE,
        }
        return jwt.encode(payload, self._key.secret, algorithm="HS256", headers={"kid": self._key.key_id})

    def authorization_header(self) -> str:
        return f"Ghost {self.sign()}"
