"""
Persistence boundary for identity records.

Services never talk to a database client directly. They go through the
IIdentityStore protocol, which offers a small set of table operations and
reports uniqueness violations as a typed UniqueViolationError. That error
is the only signal services use to detect create/create races.

InMemoryIdentityStore is the reference implementation used by tests and
local development. The Supabase-backed implementation lives in
shared.database.
"""

import copy
import uuid
from typing import Any, Optional, Protocol, runtime_checkable

from .exceptions import ErrorKind, SyrError


USERS_TABLE = "users"
PROFILES_TABLE = "profiles"
SESSIONS_TABLE = "sessions"

# Unique constraints the identity core relies on. Must match the migrations.
IDENTITY_UNIQUE_CONSTRAINTS: dict[str, tuple[str, ...]] = {
    USERS_TABLE: ("username",),
    PROFILES_TABLE: ("user_id",),
    SESSIONS_TABLE: ("token",),
}


class StoreError(SyrError):
    """The persistence layer failed (unreachable, rejected the query, ...)."""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str, table: Optional[str] = None):
        super().__init__(
            message,
            code="STORE_ERROR",
            details={"table": table} if table else None,
        )
        self.table = table


class UniqueViolationError(StoreError):
    """A write was rejected by a unique constraint."""

    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, table: str, fields: tuple[str, ...] = ()):
        super().__init__(f"Unique constraint violated on {table}", table=table)
        self.code = "UNIQUE_VIOLATION"
        self.fields = fields
        self.details["fields"] = list(fields)


@runtime_checkable
class IIdentityStore(Protocol):
    """
    Interface for the document/table store holding identity records.

    Records are plain dicts. Every record has a string "id" assigned by the
    store on create.
    """

    async def create(self, table: str, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a record and return it with its generated id.

        Raises:
            UniqueViolationError: If a declared unique constraint is violated
            StoreError: On any other persistence failure
        """
        ...

    async def find_one(self, table: str, **filters: Any) -> Optional[dict[str, Any]]:
        """Return the first record whose fields equal all filters, or None."""
        ...

    async def find_many(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        """Return every record whose fields equal all filters."""
        ...

    async def merge(
        self, table: str, record_id: str, patch: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        """Merge patch into a record. Returns the updated record, or None if missing."""
        ...

    async def delete(self, table: str, record_id: str) -> None:
        """Delete a record by id. Deleting a missing record is not an error."""
        ...

    async def delete_where(
        self,
        table: str,
        eq: Optional[dict[str, Any]] = None,
        lt: Optional[dict[str, Any]] = None,
    ) -> int:
        """Delete records matching equality and less-than filters. Returns the count."""
        ...

    async def ping(self) -> bool:
        """Return True if the store is reachable."""
        ...


class InMemoryIdentityStore:
    """
    Dict-backed identity store.

    Unique constraints are checked and the record inserted without yielding
    to the event loop, so concurrent coroutines see the same atomic
    check-and-insert a database unique index provides.
    """

    def __init__(
        self,
        unique_constraints: Optional[dict[str, tuple[str, ...]]] = None,
    ) -> None:
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}
        self._unique = (
            IDENTITY_UNIQUE_CONSTRAINTS if unique_constraints is None else unique_constraints
        )

    def _table(self, table: str) -> dict[str, dict[str, Any]]:
        return self._tables.setdefault(table, {})

    @staticmethod
    def _matches(record: dict[str, Any], filters: dict[str, Any]) -> bool:
        return all(record.get(key) == value for key, value in filters.items())

    def _check_unique(
        self, table: str, record: dict[str, Any], exclude_id: Optional[str] = None
    ) -> None:
        for field in self._unique.get(table, ()):
            value = record.get(field)
            if value is None:
                continue
            for existing_id, existing in self._table(table).items():
                if existing_id != exclude_id and existing.get(field) == value:
                    raise UniqueViolationError(table, (field,))

    async def create(self, table: str, fields: dict[str, Any]) -> dict[str, Any]:
        record = copy.deepcopy(fields)
        record_id = str(record.get("id") or uuid.uuid4())
        record["id"] = record_id
        if record_id in self._table(table):
            raise UniqueViolationError(table, ("id",))
        self._check_unique(table, record)
        self._table(table)[record_id] = record
        return copy.deepcopy(record)

    async def find_one(self, table: str, **filters: Any) -> Optional[dict[str, Any]]:
        for record in self._table(table).values():
            if self._matches(record, filters):
                return copy.deepcopy(record)
        return None

    async def find_many(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(record)
            for record in self._table(table).values()
            if self._matches(record, filters)
        ]

    async def merge(
        self, table: str, record_id: str, patch: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        existing = self._table(table).get(record_id)
        if existing is None:
            return None
        updated = {**existing, **copy.deepcopy(patch), "id": record_id}
        self._check_unique(table, updated, exclude_id=record_id)
        self._table(table)[record_id] = updated
        return copy.deepcopy(updated)

    async def delete(self, table: str, record_id: str) -> None:
        self._table(table).pop(record_id, None)

    async def delete_where(
        self,
        table: str,
        eq: Optional[dict[str, Any]] = None,
        lt: Optional[dict[str, Any]] = None,
    ) -> int:
        eq = eq or {}
        lt = lt or {}
        doomed = [
            record_id
            for record_id, record in self._table(table).items()
            if self._matches(record, eq)
            and all(
                record.get(key) is not None and record[key] < bound
                for key, bound in lt.items()
            )
        ]
        for record_id in doomed:
            del self._table(table)[record_id]
        return len(doomed)

    async def ping(self) -> bool:
        return True

    def count(self, table: str) -> int:
        """Number of records in a table (test helper)."""
        return len(self._table(table))
