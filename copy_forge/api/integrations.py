"""Dropbox connection and browsing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from copy_forge.api.deps import get_current_user_id, to_http
from copy_forge.api.models import (
    AuthorizeUrlResponse,
    CredentialResponse,
    OAuthCallback,
    RemoteFileResponse,
)
from copy_forge.db.credential_store import CredentialStore, get_credential_store
from copy_forge.errors import CopyForgeError
from copy_forge.integrations.dropbox import PROVIDER, DropboxGateway, get_dropbox_gateway

router = APIRouter()


@router.get("/dropbox/authorize-url", response_model=AuthorizeUrlResponse)
async def dropbox_authorize_url(
    state: str | None = None,
    gateway: DropboxGateway = Depends(get_dropbox_gateway),
) -> AuthorizeUrlResponse:
    try:
        return AuthorizeUrlResponse(url=gateway.authorization_url(state))
    except CopyForgeError as e:
        raise to_http(e)


@router.post("/dropbox/callback", response_model=CredentialResponse, status_code=201)
async def dropbox_callback(
    data: OAuthCallback,
    user_id: str = Depends(get_current_user_id),
    gateway: DropboxGateway = Depends(get_dropbox_gateway),
) -> CredentialResponse:
    """Complete the OAuth flow and store the user's credential."""
    try:
        credential = await gateway.exchange_code(user_id, data.code)
    except CopyForgeError as e:
        raise to_http(e)
    return CredentialResponse(**credential.model_dump())


@router.get("/dropbox/files", response_model=list[RemoteFileResponse])
async def dropbox_files(
    path: str = "",
    recursive: bool = True,
    user_id: str = Depends(get_current_user_id),
    gateway: DropboxGateway = Depends(get_dropbox_gateway),
) -> list[RemoteFileResponse]:
    """List supported image and video files in the user's Dropbox."""
    try:
        files = await gateway.list_files(user_id, folder_path=path, recursive=recursive)
    except CopyForgeError as e:
        raise to_http(e)
    return [RemoteFileResponse(**f.to_dict()) for f in files]


@router.delete("/dropbox", status_code=204)
async def dropbox_disconnect(
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
) -> None:
    store.deactivate(user_id, PROVIDER)
