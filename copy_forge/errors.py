"""Error taxonomy shared by the core services.

Core code raises these; API routers translate them into HTTP responses.
Per-item failures inside batches are never raised; they are returned as
result objects with ``success=False``.
"""

from __future__ import annotations


class CopyForgeError(Exception):
    """Base class for all CopyForge errors."""


class ConfigurationError(CopyForgeError):
    """A required external-service credential or setting is missing."""


class NoCredentialError(CopyForgeError):
    """No active stored OAuth credential for (user, provider)."""

    def __init__(self, user_id: str, provider: str) -> None:
        super().__init__(f"No active {provider} integration found for user '{user_id}'")
        self.user_id = user_id
        self.provider = provider


class UpstreamError(CopyForgeError):
    """Non-success response from an external provider."""

    def __init__(self, message: str, status: int | None = None, stage: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.stage = stage


class ValidationError(CopyForgeError, ValueError):
    """Malformed input caught before any external call."""


class NotFoundError(CopyForgeError, ValueError):
    """Requested entity does not exist (or is not visible to the caller)."""


class PermissionDeniedError(CopyForgeError, ValueError):
    """Caller is not allowed to mutate the entity."""
