"""Shared API dependencies and error translation."""

from __future__ import annotations

from fastapi import Header, HTTPException

from copy_forge.errors import (
    ConfigurationError,
    CopyForgeError,
    NoCredentialError,
    NotFoundError,
    PermissionDeniedError,
    UpstreamError,
    ValidationError,
)

_STATUS_CODES: list[tuple[type[CopyForgeError], int]] = [
    (ValidationError, 400),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (NoCredentialError, 404),
    (UpstreamError, 502),
    (ConfigurationError, 503),
]


async def get_current_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Caller identity. Authentication happens upstream of this service."""
    return x_user_id


def to_http(error: CopyForgeError) -> HTTPException:
    for error_type, status in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
