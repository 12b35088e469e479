"""Content Interpretation Cache: global store of AI interpretations keyed by remote file id.

Every caller checks ``is_fresh`` before paying for a vision or speech call.
Writes are upserts on ``remote_file_id``; concurrent writers race and the
last write wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any

import structlog

from copy_forge.db.client import SupabaseClient, get_supabase_client
from copy_forge.db.models import InterpretationCacheRow
from copy_forge.utils.timeutil import Clock, is_within, parse_timestamp, to_iso, utcnow

logger = structlog.get_logger()

TABLE = "asset_interpretation_cache"
REUSE_TTL_DAYS = 30
GC_TTL_DAYS = 90


@dataclass
class CacheStats:
    total: int
    images: int
    videos: int
    oldest: datetime | None
    newest: datetime | None


class InterpretationCache:
    """Keyed store: get / put / is_fresh / delete_old_entries."""

    def __init__(self, db: SupabaseClient, clock: Clock = utcnow) -> None:
        self.db = db
        self._clock = clock

    def get(self, remote_file_id: str) -> InterpretationCacheRow | None:
        rows = self.db.select(TABLE, filters={"remote_file_id": remote_file_id}, limit=1)
        if not rows:
            return None
        return InterpretationCacheRow(**rows[0])

    def get_many(self, remote_file_ids: list[str]) -> dict[str, InterpretationCacheRow]:
        """Batch lookup; ids without an entry are simply absent from the result."""
        found: dict[str, InterpretationCacheRow] = {}
        for remote_file_id in dict.fromkeys(remote_file_ids):
            entry = self.get(remote_file_id)
            if entry is not None:
                found[remote_file_id] = entry
        return found

    def put(
        self,
        remote_file_id: str,
        file_type: str,
        interpretation: str,
        processing_method: str,
        metadata: dict[str, Any] | None = None,
    ) -> InterpretationCacheRow:
        """Insert, or update in place if an entry for ``remote_file_id`` exists."""
        now = to_iso(self._clock())
        data = {
            "file_type": file_type,
            "interpretation": interpretation,
            "processing_method": processing_method,
            "metadata": metadata or {},
            "updated_at": now,
        }
        existing = self.db.select(TABLE, filters={"remote_file_id": remote_file_id}, limit=1)
        if existing:
            row = self.db.update(TABLE, existing[0]["id"], data)
            logger.info("interpretation_cache.updated", remote_file_id=remote_file_id)
        else:
            row = self.db.insert(
                TABLE, {"remote_file_id": remote_file_id, "created_at": now, **data}
            )
            logger.info("interpretation_cache.inserted", remote_file_id=remote_file_id)
        return InterpretationCacheRow(**row)

    def is_fresh(self, remote_file_id: str, max_age_days: int = REUSE_TTL_DAYS) -> bool:
        entry = self.get(remote_file_id)
        if entry is None:
            return False
        return is_within(entry.updated_at, timedelta(days=max_age_days), self._clock())

    def get_fresh(
        self, remote_file_id: str, max_age_days: int = REUSE_TTL_DAYS
    ) -> InterpretationCacheRow | None:
        """The entry if it is fresh, else None. One lookup instead of get + is_fresh."""
        entry = self.get(remote_file_id)
        if entry and is_within(entry.updated_at, timedelta(days=max_age_days), self._clock()):
            return entry
        return None

    def delete(self, remote_file_id: str) -> bool:
        return self.db.delete_where(TABLE, {"remote_file_id": remote_file_id}) > 0

    def delete_old_entries(self, max_age_days: int = GC_TTL_DAYS) -> int:
        """Garbage-collect entries not updated within ``max_age_days``."""
        max_age = timedelta(days=max_age_days)
        now = self._clock()
        stale = [
            row for row in self.db.select(TABLE)
            if not is_within(row.get("updated_at"), max_age, now)
        ]
        for row in stale:
            self.db.delete(TABLE, row["id"])
        if stale:
            logger.info("interpretation_cache.gc", removed=len(stale), max_age_days=max_age_days)
        return len(stale)

    def stats(self) -> CacheStats:
        rows = self.db.select(TABLE)
        created = [parse_timestamp(r.get("created_at")) for r in rows]
        created = [c for c in created if c is not None]
        return CacheStats(
            total=len(rows),
            images=sum(1 for r in rows if r.get("file_type") == "image"),
            videos=sum(1 for r in rows if r.get("file_type") == "video"),
            oldest=min(created) if created else None,
            newest=max(created) if created else None,
        )


@lru_cache
def get_interpretation_cache() -> InterpretationCache:
    """Get cached interpretation cache instance."""
    return InterpretationCache(get_supabase_client())
