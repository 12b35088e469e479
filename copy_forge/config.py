"""Application configuration: reads from environment variables and Docker Swarm secrets."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_SECRET_FIELDS = (
    "supabase_url",
    "supabase_key",
    "google_ai_api_key",
    "dropbox_client_id",
    "dropbox_client_secret",
    "google_cloud_key_json",
)


def _read_secret(name: str) -> str | None:
    """Read a Docker Swarm secret from /run/secrets/."""
    secret_path = Path(f"/run/secrets/{name}")
    if secret_path.exists():
        return secret_path.read_text().strip()
    return None


class Settings(BaseSettings):
    """Application settings with env var and secret support."""

    supabase_url: str = ""
    supabase_key: str = ""

    google_ai_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"

    dropbox_client_id: str = ""
    dropbox_client_secret: str = ""
    dropbox_redirect_uri: str = "http://localhost:8400/api/v1/integrations/dropbox/callback"

    google_cloud_project_id: str = ""
    google_cloud_key_json: str = ""
    google_cloud_key_file: str = ""
    gcs_bucket: str = "kuaby-audio-temp"

    temp_dir: str = "temp"
    nats_url: str = "nats://localhost:4222"
    port: int = 8400
    log_level: str = "INFO"

    cleanup_interval_seconds: int = 3600
    cache_gc_interval_seconds: int = 86400

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Docker Swarm secrets win over env vars
        for name in _SECRET_FIELDS:
            if secret := _read_secret(name):
                setattr(self, name, secret)

    @property
    def has_google_cloud_credentials(self) -> bool:
        return bool(self.google_cloud_key_json or self.google_cloud_key_file)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
