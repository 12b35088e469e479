"""Dropbox file gateway: OAuth token handling, listing, and downloads."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import urlencode

import httpx
import structlog

from copy_forge.config import get_settings
from copy_forge.db.credential_store import CredentialStore, get_credential_store
from copy_forge.db.models import CredentialRow
from copy_forge.errors import ConfigurationError, NoCredentialError, UpstreamError
from copy_forge.utils.security import mask_secret, redact_secrets
from copy_forge.utils.tempfiles import write_temp_file
from copy_forge.utils.timeutil import Clock, parse_timestamp, utcnow

logger = structlog.get_logger()

PROVIDER = "dropbox"

API_BASE = "https://api.dropboxapi.com"
CONTENT_BASE = "https://content.dropboxapi.com"
TOKEN_URL = f"{API_BASE}/oauth2/token"
AUTHORIZE_URL = "https://www.dropbox.com/oauth2/authorize"
SCOPES = "account_info.read files.content.read files.content.write files.metadata.read"

REFRESH_MARGIN = timedelta(minutes=5)

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v"})

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".m4v": "video/x-m4v",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_file_extension(name: str) -> str:
    return PurePosixPath(name).suffix.lower()


def get_file_type(name: str) -> str:
    """Classify a file by extension: ``image``, ``video`` or ``unknown``."""
    ext = get_file_extension(name)
    if ext in IMAGE_EXTENSIONS:
        return "image"
    if ext in VIDEO_EXTENSIONS:
        return "video"
    return "unknown"


def get_mime_type(name: str) -> str:
    return MIME_TYPES.get(get_file_extension(name), DEFAULT_MIME_TYPE)


def normalize_path(path: str) -> str:
    """Lower-case, slash-prefixed path used as fallback identity."""
    cleaned = "/" + path.strip().strip("/")
    return cleaned.lower()


@dataclass
class RemoteFile:
    """A media file listed from Dropbox (not persisted)."""
    id: str
    name: str
    path: str
    size: int = 0
    content_hash: str | None = None
    server_modified_at: str | None = None
    is_downloadable: bool = True
    media_info: dict[str, Any] | None = None

    @property
    def file_type(self) -> str:
        return get_file_type(self.name)

    @property
    def mime_type(self) -> str:
        return get_mime_type(self.name)

    @classmethod
    def from_entry(cls, entry: dict[str, Any]) -> RemoteFile:
        path = entry.get("path_display") or entry.get("path_lower") or entry.get("name", "")
        return cls(
            id=entry.get("id") or normalize_path(entry.get("path_lower") or path),
            name=entry.get("name", PurePosixPath(path).name),
            path=path,
            size=entry.get("size", 0),
            content_hash=entry.get("content_hash"),
            server_modified_at=entry.get("server_modified"),
            is_downloadable=entry.get("is_downloadable", True),
            media_info=entry.get("media_info"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "content_hash": self.content_hash,
            "server_modified_at": self.server_modified_at,
            "is_downloadable": self.is_downloadable,
            "file_type": self.file_type,
            "mime_type": self.mime_type,
        }


@dataclass
class DownloadedFile:
    """Raw bytes plus the temp file they were written to. Caller deletes temp_path."""
    buffer: bytes
    temp_path: Path


def _upstream(resp: httpx.Response, stage: str) -> UpstreamError:
    return UpstreamError(
        f"Dropbox {stage} failed ({resp.status_code}): {redact_secrets(resp.text[:200])}",
        status=resp.status_code,
        stage=stage,
    )


class DropboxGateway:
    """Lists and downloads media on behalf of a user.

    The access token is refreshed transparently when it expires within five
    minutes; the refreshed token is written back to the credential store
    before it is used.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        client_id: str = "",
        client_secret: str = "",
        redirect_uri: str = "",
        temp_dir: str | Path | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.credentials = credentials
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.temp_dir = temp_dir
        self._transport = transport
        self._clock = clock

    def _http(self, timeout: float = 30.0) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    # --- Tokens ---

    def _needs_refresh(self, credential: CredentialRow) -> bool:
        """Refresh when the expiry is unknown or less than five minutes away."""
        if credential.token_expires_at is None:
            return True
        expires_at = parse_timestamp(credential.token_expires_at)
        return expires_at - self._clock() < REFRESH_MARGIN

    async def get_access_token(self, user_id: str) -> str:
        """Resolve a usable access token for the user's active credential."""
        credential = self.credentials.get_active(user_id, PROVIDER)
        if credential is None:
            raise NoCredentialError(user_id, PROVIDER)
        if self._needs_refresh(credential):
            return await self.refresh_access_token(credential)
        return credential.access_token

    async def refresh_access_token(self, credential: CredentialRow) -> str:
        if not credential.refresh_token:
            raise UpstreamError(
                "No Dropbox refresh token available", stage="token_refresh"
            )
        if not self.client_id or not self.client_secret:
            raise ConfigurationError("DROPBOX_CLIENT_ID and DROPBOX_CLIENT_SECRET must be set")

        async with self._http() as client:
            resp = await client.post(
                TOKEN_URL,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": credential.refresh_token,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
            )
        if not resp.is_success:
            raise _upstream(resp, "token_refresh")

        payload = resp.json()
        access_token = payload["access_token"]
        expires_at = self._clock() + timedelta(seconds=int(payload.get("expires_in", 14400)))
        self.credentials.update_tokens(credential.id, access_token, expires_at)
        logger.info("dropbox.token_refreshed", user_id=credential.user_id, token=mask_secret(access_token))
        return access_token

    # --- OAuth connect ---

    def authorization_url(self, state: str | None = None) -> str:
        if not self.client_id:
            raise ConfigurationError("DROPBOX_CLIENT_ID must be set")
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "token_access_type": "offline",
            "scope": SCOPES,
        }
        if state:
            params["state"] = state
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, user_id: str, code: str) -> CredentialRow:
        """Exchange an authorization code and store the resulting credential."""
        if not self.client_id or not self.client_secret:
            raise ConfigurationError("DROPBOX_CLIENT_ID and DROPBOX_CLIENT_SECRET must be set")

        async with self._http() as client:
            resp = await client.post(
                TOKEN_URL,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                },
            )
            if not resp.is_success:
                raise _upstream(resp, "token_exchange")
            tokens = resp.json()

            account_resp = await client.post(
                f"{API_BASE}/2/users/get_current_account",
                headers={"Authorization": f"Bearer {tokens['access_token']}"},
            )
            if not account_resp.is_success:
                raise _upstream(account_resp, "account_lookup")
            account = account_resp.json()

        expires_in = tokens.get("expires_in")
        return self.credentials.save(
            user_id=user_id,
            provider=PROVIDER,
            provider_account_id=account.get("account_id") or tokens.get("account_id", ""),
            provider_account_email=account.get("email"),
            access_token=tokens["access_token"],
            refresh_token=tokens.get("refresh_token"),
            expires_at=self._clock() + timedelta(seconds=int(expires_in)) if expires_in else None,
            scope=tokens.get("scope"),
        )

    # --- Files ---

    async def list_files(
        self, user_id: str, folder_path: str = "", recursive: bool = True
    ) -> list[RemoteFile]:
        """List supported image/video files, following the continuation cursor."""
        token = await self.get_access_token(user_id)
        headers = {"Authorization": f"Bearer {token}"}
        path = "" if folder_path in ("", "/") else "/" + folder_path.strip("/")

        entries: list[dict[str, Any]] = []
        async with self._http() as client:
            resp = await client.post(
                f"{API_BASE}/2/files/list_folder",
                headers=headers,
                json={
                    "path": path,
                    "recursive": recursive,
                    "include_media_info": True,
                    "include_deleted": False,
                    "include_has_explicit_shared_members": False,
                },
            )
            if not resp.is_success:
                raise _upstream(resp, "list_folder")
            page = resp.json()
            entries.extend(page.get("entries", []))

            while page.get("has_more"):
                resp = await client.post(
                    f"{API_BASE}/2/files/list_folder/continue",
                    headers=headers,
                    json={"cursor": page["cursor"]},
                )
                if not resp.is_success:
                    raise _upstream(resp, "list_folder_continue")
                page = resp.json()
                entries.extend(page.get("entries", []))

        files = [
            RemoteFile.from_entry(e)
            for e in entries
            if e.get(".tag", "file") == "file" and get_file_type(e.get("name", "")) != "unknown"
        ]
        logger.info("dropbox.listed", user_id=user_id, path=path or "/", files=len(files))
        return files

    async def download_file(self, user_id: str, remote_path: str) -> DownloadedFile:
        """Download a file into the managed temp directory."""
        token = await self.get_access_token(user_id)
        async with self._http(timeout=120.0) as client:
            resp = await client.post(
                f"{CONTENT_BASE}/2/files/download",
                headers={
                    "Authorization": f"Bearer {token}",
                    "Dropbox-API-Arg": _api_arg({"path": remote_path}),
                },
            )
        if not resp.is_success:
            raise _upstream(resp, "download")

        buffer = resp.content
        temp_path = await write_temp_file(buffer, get_file_extension(remote_path), self.temp_dir)
        logger.info("dropbox.downloaded", path=remote_path, bytes=len(buffer))
        return DownloadedFile(buffer=buffer, temp_path=temp_path)

    async def get_file_metadata(self, user_id: str, remote_path: str) -> RemoteFile:
        token = await self.get_access_token(user_id)
        async with self._http() as client:
            resp = await client.post(
                f"{API_BASE}/2/files/get_metadata",
                headers={"Authorization": f"Bearer {token}"},
                json={"path": remote_path, "include_media_info": True},
            )
        if not resp.is_success:
            raise _upstream(resp, "get_metadata")
        return RemoteFile.from_entry(resp.json())


def _api_arg(payload: dict[str, Any]) -> str:
    # Dropbox-API-Arg must be ASCII
    return json.dumps(payload, ensure_ascii=True)


@lru_cache
def get_dropbox_gateway() -> DropboxGateway:
    """Get cached Dropbox gateway instance."""
    settings = get_settings()
    return DropboxGateway(
        credentials=get_credential_store(),
        client_id=settings.dropbox_client_id,
        client_secret=settings.dropbox_client_secret,
        redirect_uri=settings.dropbox_redirect_uri,
        temp_dir=settings.temp_dir,
    )
