"""Store layer for per-user OAuth credentials."""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache

import structlog

from copy_forge.core.audit import AuditLogger, get_audit_logger
from copy_forge.db.client import SupabaseClient, get_supabase_client
from copy_forge.db.models import CredentialRow
from copy_forge.utils.timeutil import to_iso

logger = structlog.get_logger()

TABLE = "credentials"


class CredentialStore:
    """Persists access/refresh tokens per (user, provider).

    Credentials are soft-disabled on disconnect and kept for audit; only the
    first active match is ever used.
    """

    def __init__(self, db: SupabaseClient, audit: AuditLogger | None = None) -> None:
        self.db = db
        self.audit = audit

    def get_active(self, user_id: str, provider: str) -> CredentialRow | None:
        rows = self.db.select(
            TABLE,
            filters={"user_id": user_id, "provider": provider, "is_active": True},
            limit=1,
        )
        if not rows:
            return None
        return CredentialRow(**rows[0])

    def list_for_user(self, user_id: str) -> list[CredentialRow]:
        rows = self.db.select(TABLE, filters={"user_id": user_id, "is_active": True})
        return [CredentialRow(**r) for r in rows]

    def save(
        self,
        user_id: str,
        provider: str,
        provider_account_id: str,
        access_token: str,
        refresh_token: str | None = None,
        expires_at: datetime | None = None,
        scope: str | None = None,
        provider_account_email: str | None = None,
    ) -> CredentialRow:
        """Store a freshly exchanged credential, retiring any previous active one."""
        self.db.update_where(
            TABLE,
            {"user_id": user_id, "provider": provider, "is_active": True},
            {"is_active": False},
        )
        row = self.db.insert(
            TABLE,
            {
                "user_id": user_id,
                "provider": provider,
                "provider_account_id": provider_account_id,
                "provider_account_email": provider_account_email,
                "access_token": access_token,
                "refresh_token": refresh_token,
                "token_expires_at": to_iso(expires_at) if expires_at else None,
                "scope": scope,
                "is_active": True,
            },
        )
        logger.info("credentials.saved", user_id=user_id, provider=provider)
        if self.audit:
            self.audit.log("credential.connected", "credential", row["id"], actor=user_id,
                           details={"provider": provider, "account_id": provider_account_id})
        return CredentialRow(**row)

    def update_tokens(
        self, credential_id: str, access_token: str, expires_at: datetime
    ) -> CredentialRow:
        """Write back a refreshed access token and its computed expiry."""
        row = self.db.update(
            TABLE,
            credential_id,
            {"access_token": access_token, "token_expires_at": to_iso(expires_at)},
        )
        logger.info("credentials.refreshed", credential_id=credential_id)
        return CredentialRow(**row)

    def deactivate(self, user_id: str, provider: str) -> int:
        """Soft-disable the user's active credentials for a provider."""
        rows = self.db.update_where(
            TABLE,
            {"user_id": user_id, "provider": provider, "is_active": True},
            {"is_active": False},
        )
        if rows:
            logger.info("credentials.deactivated", user_id=user_id, provider=provider, count=len(rows))
            if self.audit:
                self.audit.log("credential.disconnected", "credential", rows[0]["id"],
                               actor=user_id, details={"provider": provider})
        return len(rows)


@lru_cache
def get_credential_store() -> CredentialStore:
    """Get cached credential store instance."""
    return CredentialStore(get_supabase_client(), get_audit_logger())
