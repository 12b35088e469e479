"""Audit Logger: tracks template and credential mutations."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import structlog

from copy_forge.db.client import SupabaseClient, get_supabase_client

logger = structlog.get_logger()


class AuditLogger:
    """Writes audit trail entries."""

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def log(
        self,
        action: str,
        entity_type: str,
        entity_id: str | None = None,
        actor: str = "system",
        details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create an audit log entry."""
        entry = self.db.insert(
            "audit_log",
            {
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "actor": actor,
                "details": details or {},
            },
        )
        logger.info("audit.logged", action=action, entity_type=entity_type, actor=actor)
        return entry


@lru_cache
def get_audit_logger() -> AuditLogger:
    """Get cached audit logger instance."""
    return AuditLogger(get_supabase_client())
