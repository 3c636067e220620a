"""
Supabase-backed identity store.

The Supabase client is created explicitly at application startup
(connect_supabase_store) and closed at shutdown (SupabaseIdentityStore.close).
There is no module-level client cache: the owning ServiceContainer passes
the store to every service that needs it.
"""

import logging
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from pydantic_core import to_jsonable_python
from supabase import AsyncClient, acreate_client

from .config import Settings
from .store import IDENTITY_UNIQUE_CONSTRAINTS, StoreError, UniqueViolationError

logger = logging.getLogger(__name__)

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION_CODE = "23505"


class SupabaseIdentityStore:
    """
    IIdentityStore implementation on top of the Supabase (PostgREST) API.

    PostgREST errors are translated into typed store errors: SQLSTATE 23505
    becomes UniqueViolationError, everything else StoreError. Callers never
    see raw client exceptions or need to read error messages.
    """

    def __init__(self, client: AsyncClient) -> None:
        self._db = client

    @staticmethod
    def _encode(values: dict[str, Any]) -> dict[str, Any]:
        return to_jsonable_python(values)

    def _translate(self, table: str, error: Exception) -> StoreError:
        if isinstance(error, APIError) and error.code == UNIQUE_VIOLATION_CODE:
            return UniqueViolationError(table, IDENTITY_UNIQUE_CONSTRAINTS.get(table, ()))
        logger.error("Store operation on %s failed: %s", table, type(error).__name__)
        return StoreError(f"Store operation on {table} failed", table=table)

    async def create(self, table: str, fields: dict[str, Any]) -> dict[str, Any]:
        try:
            result = await self._db.table(table).insert(self._encode(fields)).execute()
        except (APIError, httpx.HTTPError) as e:
            raise self._translate(table, e) from e
        if not result.data:
            raise StoreError(f"Insert into {table} returned no record", table=table)
        return result.data[0]

    async def find_one(self, table: str, **filters: Any) -> Optional[dict[str, Any]]:
        query = self._db.table(table).select("*")
        for key, value in self._encode(filters).items():
            query = query.eq(key, value)
        try:
            result = await query.limit(1).execute()
        except (APIError, httpx.HTTPError) as e:
            raise self._translate(table, e) from e
        return result.data[0] if result.data else None

    async def find_many(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        query = self._db.table(table).select("*")
        for key, value in self._encode(filters).items():
            query = query.eq(key, value)
        try:
            result = await query.execute()
        except (APIError, httpx.HTTPError) as e:
            raise self._translate(table, e) from e
        return list(result.data or [])

    async def merge(
        self, table: str, record_id: str, patch: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        try:
            result = await (
                self._db.table(table)
                .update(self._encode(patch))
                .eq("id", record_id)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise self._translate(table, e) from e
        return result.data[0] if result.data else None

    async def delete(self, table: str, record_id: str) -> None:
        try:
            await self._db.table(table).delete().eq("id", record_id).execute()
        except (APIError, httpx.HTTPError) as e:
            raise self._translate(table, e) from e

    async def delete_where(
        self,
        table: str,
        eq: Optional[dict[str, Any]] = None,
        lt: Optional[dict[str, Any]] = None,
    ) -> int:
        if not eq and not lt:
            # PostgREST refuses unfiltered deletes
            raise ValueError("delete_where requires at least one filter")
        query = self._db.table(table).delete()
        for key, value in self._encode(eq or {}).items():
            query = query.eq(key, value)
        for key, value in self._encode(lt or {}).items():
            query = query.lt(key, value)
        try:
            result = await query.execute()
        except (APIError, httpx.HTTPError) as e:
            raise self._translate(table, e) from e
        return len(result.data or [])

    async def ping(self) -> bool:
        try:
            await self._db.table("users").select("id").limit(1).execute()
        except (APIError, httpx.HTTPError):
            return False
        return True

    async def close(self) -> None:
        await self._db.postgrest.aclose()


async def connect_supabase_store(settings: Settings) -> SupabaseIdentityStore:
    """
    Create a Supabase client with the service role key and wrap it in a store.

    Raises:
        RuntimeError: If the Supabase configuration is missing
    """
    service_key = settings.supabase_service_role_key.get_secret_value()
    if not settings.supabase_url or not service_key:
        raise RuntimeError(
            "Supabase configuration missing. "
            "Set SYR_SUPABASE_URL and SYR_SUPABASE_SERVICE_ROLE_KEY environment variables."
        )
    client = await acreate_client(settings.supabase_url, service_key)
    logger.info("Connected to Supabase at %s", settings.supabase_url)
    return SupabaseIdentityStore(client)
