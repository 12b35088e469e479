"""Google Cloud credentials and the temp audio bucket."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import structlog
from google.cloud import storage
from google.oauth2 import service_account

from copy_forge.config import Settings, get_settings
from copy_forge.errors import ConfigurationError

logger = structlog.get_logger()


def load_google_credentials(settings: Settings | None = None) -> service_account.Credentials:
    """Service-account credentials from inline JSON or a key file."""
    settings = settings or get_settings()
    if settings.google_cloud_key_json:
        try:
            info = json.loads(settings.google_cloud_key_json)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"GOOGLE_CLOUD_KEY_JSON is not valid JSON: {e}") from e
        return service_account.Credentials.from_service_account_info(info)
    if settings.google_cloud_key_file:
        return service_account.Credentials.from_service_account_file(settings.google_cloud_key_file)
    raise ConfigurationError(
        "Google Cloud credentials not configured: set GOOGLE_CLOUD_KEY_JSON or GOOGLE_CLOUD_KEY_FILE"
    )


@dataclass
class StoredObject:
    uri: str
    name: str
    created_at: datetime | None
    size: int | None = None


class ObjectStore:
    """Async facade over a single GCS bucket used for temporary audio uploads."""

    def __init__(self, bucket_name: str, client: storage.Client) -> None:
        self.bucket_name = bucket_name
        self._client = client
        self._bucket = client.bucket(bucket_name)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ObjectStore:
        settings = settings or get_settings()
        credentials = load_google_credentials(settings)
        client = storage.Client(
            project=settings.google_cloud_project_id or credentials.project_id,
            credentials=credentials,
        )
        return cls(settings.gcs_bucket, client)

    def uri_for(self, name: str) -> str:
        return f"gs://{self.bucket_name}/{name}"

    def name_from_uri(self, uri: str) -> str:
        prefix = f"gs://{self.bucket_name}/"
        return uri[len(prefix):] if uri.startswith(prefix) else uri

    async def upload_file(self, path: str | Path, name: str, content_type: str = "audio/wav") -> str:
        blob = self._bucket.blob(name)
        await asyncio.to_thread(blob.upload_from_filename, str(path), content_type=content_type)
        uri = self.uri_for(name)
        logger.info("gcs.uploaded", uri=uri)
        return uri

    async def delete(self, uri: str) -> None:
        blob = self._bucket.blob(self.name_from_uri(uri))
        await asyncio.to_thread(blob.delete)
        logger.info("gcs.deleted", uri=uri)

    async def list_objects(self, prefix: str | None = None) -> list[StoredObject]:
        blobs = await asyncio.to_thread(
            lambda: list(self._client.list_blobs(self.bucket_name, prefix=prefix))
        )
        return [
            StoredObject(
                uri=self.uri_for(b.name),
                name=b.name,
                created_at=b.time_created,
                size=b.size,
            )
            for b in blobs
        ]
