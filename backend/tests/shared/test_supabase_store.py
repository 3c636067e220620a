"""Tests for shared/database.py (Supabase-backed store)."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from postgrest.exceptions import APIError
from pydantic import SecretStr

from shared.config import Settings
from shared.database import SupabaseIdentityStore, connect_supabase_store
from shared.store import IIdentityStore, StoreError, UniqueViolationError


def make_client(data=None, error=None):
    """Mock AsyncClient whose query builder chains back to itself."""
    builder = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "lt", "limit"):
        getattr(builder, method).return_value = builder
    builder.execute = AsyncMock(return_value=MagicMock(data=data), side_effect=error)

    client = MagicMock()
    client.table.return_value = builder
    client.postgrest.aclose = AsyncMock()
    return client, builder


def api_error(code: str) -> APIError:
    return APIError({"code": code, "message": "rejected", "details": "", "hint": ""})


class TestSupabaseIdentityStore:
    """Tests for SupabaseIdentityStore."""

    def test_satisfies_protocol(self):
        client, _ = make_client()
        assert isinstance(SupabaseIdentityStore(client), IIdentityStore)

    @pytest.mark.asyncio
    async def test_create_returns_inserted_row(self):
        client, builder = make_client(data=[{"id": "u1", "username": "alice"}])
        store = SupabaseIdentityStore(client)

        record = await store.create("users", {"username": "alice"})

        assert record == {"id": "u1", "username": "alice"}
        client.table.assert_called_with("users")
        builder.insert.assert_called_once_with({"username": "alice"})

    @pytest.mark.asyncio
    async def test_create_encodes_datetimes(self):
        client, builder = make_client(data=[{"id": "s1"}])
        store = SupabaseIdentityStore(client)

        await store.create(
            "sessions", {"expires_at": datetime(2026, 1, 1, tzinfo=timezone.utc)}
        )

        sent = builder.insert.call_args.args[0]
        assert isinstance(sent["expires_at"], str)
        assert sent["expires_at"].startswith("2026-01-01T00:00:00")

    @pytest.mark.asyncio
    async def test_create_without_returned_row(self):
        client, _ = make_client(data=[])
        with pytest.raises(StoreError):
            await SupabaseIdentityStore(client).create("users", {"username": "alice"})

    @pytest.mark.asyncio
    async def test_unique_violation_maps_from_sqlstate(self):
        client, _ = make_client(error=api_error("23505"))

        with pytest.raises(UniqueViolationError) as exc_info:
            await SupabaseIdentityStore(client).create("users", {"username": "alice"})

        assert exc_info.value.table == "users"
        assert exc_info.value.fields == ("username",)

    @pytest.mark.asyncio
    async def test_other_api_errors_are_store_errors(self):
        client, _ = make_client(error=api_error("42P01"))

        with pytest.raises(StoreError) as exc_info:
            await SupabaseIdentityStore(client).create("profiles", {"user_id": "u1"})

        assert not isinstance(exc_info.value, UniqueViolationError)
        assert exc_info.value.table == "profiles"

    @pytest.mark.asyncio
    async def test_transport_errors_are_store_errors(self):
        client, _ = make_client(error=httpx.ConnectError("connection refused"))
        with pytest.raises(StoreError):
            await SupabaseIdentityStore(client).find_one("users", id="u1")

    @pytest.mark.asyncio
    async def test_find_one(self):
        client, builder = make_client(data=[{"id": "u1"}])
        store = SupabaseIdentityStore(client)

        assert await store.find_one("users", username="alice") == {"id": "u1"}
        builder.select.assert_called_once_with("*")
        builder.eq.assert_called_once_with("username", "alice")
        builder.limit.assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_find_one_missing(self):
        client, _ = make_client(data=[])
        assert await SupabaseIdentityStore(client).find_one("users", id="x") is None

    @pytest.mark.asyncio
    async def test_find_many(self):
        client, _ = make_client(data=[{"id": "s1"}, {"id": "s2"}])
        found = await SupabaseIdentityStore(client).find_many("sessions", user_id="u1")
        assert [r["id"] for r in found] == ["s1", "s2"]

    @pytest.mark.asyncio
    async def test_merge(self):
        client, builder = make_client(data=[{"id": "p1", "bio": "Hi"}])
        store = SupabaseIdentityStore(client)

        assert await store.merge("profiles", "p1", {"bio": "Hi"}) == {"id": "p1", "bio": "Hi"}
        builder.update.assert_called_once_with({"bio": "Hi"})
        builder.eq.assert_called_once_with("id", "p1")

    @pytest.mark.asyncio
    async def test_merge_missing(self):
        client, _ = make_client(data=[])
        assert await SupabaseIdentityStore(client).merge("profiles", "p1", {"bio": "x"}) is None

    @pytest.mark.asyncio
    async def test_delete(self):
        client, builder = make_client(data=[])
        await SupabaseIdentityStore(client).delete("sessions", "s1")
        builder.delete.assert_called_once_with()
        builder.eq.assert_called_once_with("id", "s1")

    @pytest.mark.asyncio
    async def test_delete_where_counts_rows(self):
        client, builder = make_client(data=[{"id": "s1"}, {"id": "s2"}])
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)

        removed = await SupabaseIdentityStore(client).delete_where(
            "sessions", lt={"expires_at": now}
        )

        assert removed == 2
        column, bound = builder.lt.call_args.args
        assert column == "expires_at"
        assert isinstance(bound, str)

    @pytest.mark.asyncio
    async def test_delete_where_requires_filter(self):
        client, _ = make_client()
        with pytest.raises(ValueError):
            await SupabaseIdentityStore(client).delete_where("sessions")

    @pytest.mark.asyncio
    async def test_ping(self):
        client, _ = make_client(data=[])
        assert await SupabaseIdentityStore(client).ping() is True

        client, _ = make_client(error=httpx.ConnectError("down"))
        assert await SupabaseIdentityStore(client).ping() is False

    @pytest.mark.asyncio
    async def test_close(self):
        client, _ = make_client()
        await SupabaseIdentityStore(client).close()
        client.postgrest.aclose.assert_awaited_once()


class TestConnectSupabaseStore:
    @pytest.mark.asyncio
    async def test_missing_configuration(self):
        with pytest.raises(RuntimeError, match="Supabase configuration missing"):
            await connect_supabase_store(Settings(_env_file=None, supabase_url=""))

    @pytest.mark.asyncio
    async def test_creates_client_with_service_key(self):
        settings = Settings(
            _env_file=None,
            supabase_url="https://project.supabase.co",
            supabase_service_role_key=SecretStr("service-role-key"),
        )
        client = MagicMock()
        with patch(
            "shared.database.acreate_client", AsyncMock(return_value=client)
        ) as create:
            store = await connect_supabase_store(settings)

        create.assert_awaited_once_with("https://project.supabase.co", "service-role-key")
        assert isinstance(store, SupabaseIdentityStore)
