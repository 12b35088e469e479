"""Landing Page Cache: scraped page text keyed by URL with lazy TTL eviction."""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Any

import structlog

from copy_forge.db.client import SupabaseClient, get_supabase_client
from copy_forge.db.models import LandingPageCacheRow
from copy_forge.utils.timeutil import Clock, is_within, to_iso, utcnow

logger = structlog.get_logger()

TABLE = "landing_page_cache"
TTL_DAYS = 7


class LandingPageCache:
    """Global per-URL cache. Age is measured from ``created_at``."""

    def __init__(self, db: SupabaseClient, clock: Clock = utcnow, ttl_days: int = TTL_DAYS) -> None:
        self.db = db
        self._clock = clock
        self.ttl = timedelta(days=ttl_days)

    def get(self, url: str) -> LandingPageCacheRow | None:
        """Return a fresh entry; an expired one is deleted and reported as a miss."""
        rows = self.db.select(TABLE, filters={"url": url}, limit=1)
        if not rows:
            return None
        row = rows[0]
        if not is_within(row.get("created_at"), self.ttl, self._clock()):
            self.db.delete(TABLE, row["id"])
            logger.info("landing_cache.expired", url=url)
            return None
        return LandingPageCacheRow(**row)

    def put(
        self, url: str, title: str | None, content: str, metadata: dict[str, Any]
    ) -> LandingPageCacheRow:
        """Upsert by URL."""
        now = to_iso(self._clock())
        data = {"title": title, "content": content, "metadata": metadata, "updated_at": now}
        existing = self.db.select(TABLE, filters={"url": url}, limit=1)
        if existing:
            row = self.db.update(TABLE, existing[0]["id"], data)
        else:
            row = self.db.insert(TABLE, {"url": url, "created_at": now, **data})
        logger.info("landing_cache.stored", url=url, chars=len(content))
        return LandingPageCacheRow(**row)

    def delete_expired(self, max_age_days: int | None = None) -> int:
        max_age = timedelta(days=max_age_days) if max_age_days is not None else self.ttl
        now = self._clock()
        stale = [r for r in self.db.select(TABLE) if not is_within(r.get("created_at"), max_age, now)]
        for row in stale:
            self.db.delete(TABLE, row["id"])
        if stale:
            logger.info("landing_cache.gc", removed=len(stale))
        return len(stale)


@lru_cache
def get_landing_page_cache() -> LandingPageCache:
    """Get cached landing page cache instance."""
    return LandingPageCache(get_supabase_client())
