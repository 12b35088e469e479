"""Supabase client initialization and helper methods."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import structlog
from supabase import Client, create_client

from copy_forge.config import get_settings
from copy_forge.errors import ConfigurationError

logger = structlog.get_logger()


class SupabaseClient:
    """Wrapper around the Supabase client with convenience methods.

    This is the narrow persistence contract used by the core: insert,
    update-by-key, select-by-filter and delete-by-filter. Nothing here spans
    more than one statement.
    """

    def __init__(self, client: Client) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        """Access the raw Supabase client."""
        return self._client

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return the created row."""
        result = self._client.table(table).insert(data).execute()
        return result.data[0]

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select records with optional equality filters, ordering, and limit."""
        query = self._client.table(table).select("*")

        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)

        if order_by:
            query = query.order(order_by, desc=not ascending)

        if limit:
            query = query.limit(limit)

        result = query.execute()
        return result.data

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update a record by ID."""
        result = self._client.table(table).update(data).eq("id", id).execute()
        return result.data[0]

    def update_where(
        self, table: str, filters: dict[str, Any], data: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Update every record matching the equality filters; returns updated rows."""
        query = self._client.table(table).update(data)
        for key, value in filters.items():
            query = query.eq(key, value)
        return query.execute().data

    def delete(self, table: str, id: str) -> None:
        """Delete a record by ID."""
        self._client.table(table).delete().eq("id", id).execute()

    def delete_where(self, table: str, filters: dict[str, Any]) -> int:
        """Delete every record matching the equality filters; returns the count."""
        query = self._client.table(table).delete()
        for key, value in filters.items():
            query = query.eq(key, value)
        return len(query.execute().data or [])


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """Get cached Supabase client instance."""
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set")
    client = create_client(settings.supabase_url, settings.supabase_key)
    logger.info("supabase.connected", url=settings.supabase_url)
    return SupabaseClient(client)
