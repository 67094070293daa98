"""Cloudflare R2 object storage through the S3-compatible API."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..base import ObjectStore, StorageError
from ...settings import StorageSettings

LOGGER = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=31536000"


def _default_client_factory(settings: StorageSettings) -> Any:
    return boto3.client(
        "s3",
        region_name="auto",
        endpoint_url=settings.endpoint_url,
        aws_access_key_id=settings.access_key_id,
        aws_secret_access_key=settings.secret_access_key,
    )


class R2Storage(ObjectStore):
    """Uploads images to an R2 bucket and builds their public URLs."""

    def __init__(
        self,
        settings: StorageSettings,
        *,
        client_factory: Callable[[StorageSettings], Any] = _default_client_factory,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._client: Any = None

    def is_configured(self) -> bool:
        return self._settings.is_complete()

    def public_url(self, key: str) -> str:
        domain = self._settings.custom_domain.strip().strip("/")
        if domain:
            return f"https://{domain}/{key}"
        return f"https://{self._settings.bucket}.{self._settings.account_id}.r2.dev/{key}"

    def upload(
        self,
        key: str,
        body: bytes,
        *,
        content_type: str,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        if not self.is_configured():
            raise StorageError("R2 upload is disabled or missing credentials")

        # S3 metadata travels as HTTP headers and must stay ASCII.
        safe_metadata = {name: quote(value, safe=" ") for name, value in (metadata or {}).items()}
        try:
            self._get_client().put_object(
                Bucket=self._settings.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                CacheControl=CACHE_CONTROL,
                Metadata=safe_metadata,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload {key} to R2: {exc}") from exc

        url = self.public_url(key)
        LOGGER.info("Uploaded %s (%d bytes) to %s", key, len(body), url)
        return url

    def check_connection(self) -> bool:
        if not self.is_configured():
            return False
        try:
            self._get_client().head_bucket(Bucket=self._settings.bucket)
        except (BotoCoreError, ClientError) as exc:
            LOGGER.error("R2 credentials test failed: %s", exc)
            return False
        return True

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(self._settings)
        return self._client
