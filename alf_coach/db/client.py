"""Supabase access for project documents.

Projects are stored one row per document; chats and assignments live in JSON
columns, so most writes are partial updates of a few columns at a time.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import structlog
from supabase import Client, create_client

from alf_coach.config import get_settings

logger = structlog.get_logger()


class SupabaseClient:
    """Wrapper around the Supabase client with document-style helpers."""

    def __init__(self, client: Client) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        return self._client

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a document and return the stored row, with generated id and timestamps."""
        result = self._client.table(table).insert(data).execute()
        if not result.data:
            raise RuntimeError(f"Insert into {table} returned no row")
        return result.data[0]

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Select rows. ``columns`` narrows the projection, e.g. to skip chat columns in listings."""
        query = self._client.table(table).select(columns)
        for key, value in (filters or {}).items():
            query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=not ascending)
        if limit:
            query = query.limit(limit)
        return query.execute().data

    def get(self, table: str, id: str) -> dict[str, Any] | None:
        """Fetch one document by id, or None."""
        rows = self.select(table, filters={"id": id}, limit=1)
        return rows[0] if rows else None

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Partial update of the given columns. Raises ValueError when the id matches nothing."""
        result = self._client.table(table).update(data).eq("id", id).execute()
        if not result.data:
            raise ValueError(f"Row {id} not found in {table}")
        logger.debug("supabase.updated", table=table, id=id, columns=sorted(data))
        return result.data[0]


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """Get cached Supabase client instance."""
    settings = get_settings()
    client = create_client(settings.supabase_url, settings.supabase_key)
    logger.info("supabase.connected", url=settings.supabase_url, table=settings.projects_table)
    return SupabaseClient(client)
