"""
Generic typed access to one store table.

A Repository is composed from a store, a table name and a Pydantic model
type. It is not meant to be subclassed: entity-specific queries are plain
functions that take a Repository (see modules.auth.queries).

Example:
    users = Repository(store, "users", Identity)
    alice = await users.find_one(username="alice")
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from .store import IIdentityStore


T = TypeVar("T", bound=BaseModel)


class Repository(Generic[T]):
    """Maps raw store records of one table to model instances."""

    def __init__(self, store: IIdentityStore, table: str, model: type[T]) -> None:
        self._store = store
        self.table = table
        self.model = model

    def _map(self, record: Optional[dict[str, Any]]) -> Optional[T]:
        if record is None:
            return None
        return self.model.model_validate(record)

    async def create(self, fields: dict[str, Any]) -> T:
        record = await self._store.create(self.table, fields)
        return self.model.model_validate(record)

    async def find_by_id(self, record_id: str) -> Optional[T]:
        return self._map(await self._store.find_one(self.table, id=record_id))

    async def find_one(self, **filters: Any) -> Optional[T]:
        return self._map(await self._store.find_one(self.table, **filters))

    async def find_many(self, **filters: Any) -> list[T]:
        records = await self._store.find_many(self.table, **filters)
        return [self.model.model_validate(r) for r in records]

    async def merge(self, record_id: str, patch: dict[str, Any]) -> Optional[T]:
        return self._map(await self._store.merge(self.table, record_id, patch))

    async def delete(self, record_id: str) -> None:
        await self._store.delete(self.table, record_id)

    async def delete_where(
        self,
        eq: Optional[dict[str, Any]] = None,
        lt: Optional[dict[str, Any]] = None,
    ) -> int:
        return await self._store.delete_where(self.table, eq=eq, lt=lt)
