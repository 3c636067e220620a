"""Tests for the AuthService facade and its input validation."""

import pytest

from modules.auth.exceptions import ProfileNotFoundError
from modules.auth.interfaces import IAuthService
from modules.auth.models import RegistrationInput
from shared.exceptions import ErrorKind, ValidationError
from shared.store import SESSIONS_TABLE, USERS_TABLE


class TestAuthServiceInterface:
    def test_implements_protocol(self, auth_service):
        assert isinstance(auth_service, IAuthService)

    def test_protocol_covers_profile_creation_and_sweep(self):
        """An implementation missing either operation does not satisfy the protocol."""
        members = ("create_or_get_profile", "sweep_expired_sessions")
        for name in members:
            assert callable(getattr(IAuthService, name, None))

        class Partial:
            pass

        for name in ("register", "login", "logout", "logout_all",
                     "validate_session", "get_profile", "update_profile"):
            setattr(Partial, name, lambda self, *args: None)
        assert not isinstance(Partial(), IAuthService)

        for name in members:
            setattr(Partial, name, lambda self, *args: None)
        assert isinstance(Partial(), IAuthService)


class TestRegisterValidation:
    """Input is rejected with field errors before touching the store."""

    @pytest.mark.asyncio
    async def test_accepts_dict(self, auth_service, registration):
        result = await auth_service.register(registration)
        assert result.user.username == "alice"

    @pytest.mark.asyncio
    async def test_accepts_model(self, auth_service, registration):
        result = await auth_service.register(RegistrationInput(**registration))
        assert result.profile.display_name == "Alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "override,field",
        [
            ({"username": "al"}, "username"),
            ({"username": "alice smith"}, "username"),
            ({"password": "short1A"}, "password"),
            ({"password": "alllowercase1"}, "password"),
            ({"password": "ALLUPPERCASE1"}, "password"),
            ({"password": "NoDigitsHere"}, "password"),
            ({"display_name": ""}, "display_name"),
            ({"email": "not-an-email"}, "email"),
        ],
    )
    async def test_rejects_bad_field(self, auth_service, registration, store, override, field):
        with pytest.raises(ValidationError) as exc_info:
            await auth_service.register({**registration, **override})

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert field in exc_info.value.fields
        assert store.count(USERS_TABLE) == 0

    @pytest.mark.asyncio
    async def test_rejects_unknown_fields(self, auth_service, registration):
        with pytest.raises(ValidationError):
            await auth_service.register({**registration, "role": "ADMIN"})

    @pytest.mark.asyncio
    async def test_missing_fields(self, auth_service):
        with pytest.raises(ValidationError) as exc_info:
            await auth_service.register({})
        assert {"username", "password", "display_name"} <= set(exc_info.value.fields)


class TestSessionOperations:
    @pytest.mark.asyncio
    async def test_login_and_validate(self, auth_service, registration):
        await auth_service.register(registration)
        result = await auth_service.login(
            {"username": "alice", "password": registration["password"]}
        )

        user = await auth_service.validate_session(result.token)
        assert user.session_id == result.session.id

    @pytest.mark.asyncio
    async def test_login_requires_both_fields(self, auth_service):
        with pytest.raises(ValidationError):
            await auth_service.login({"username": "alice"})

    @pytest.mark.asyncio
    async def test_logout_without_session_is_noop(self, auth_service):
        await auth_service.logout(None)
        await auth_service.logout("")

    @pytest.mark.asyncio
    async def test_logout_all(self, auth_service, registration, store):
        registered = await auth_service.register(registration)
        await auth_service.login({"username": "alice", "password": registration["password"]})

        assert await auth_service.logout_all(registered.user.id) == 2
        assert store.count(SESSIONS_TABLE) == 0
        assert await auth_service.validate_session(registered.token) is None

    @pytest.mark.asyncio
    async def test_sweep_expired_sessions(self, auth_service, registration, clock):
        await auth_service.register(registration)
        clock.advance(days=8)
        assert await auth_service.sweep_expired_sessions() == 1


class TestProfileOperations:
    @pytest.mark.asyncio
    async def test_get_profile(self, auth_service, registration):
        registered = await auth_service.register(registration)
        profile = await auth_service.get_profile(registered.user.id)
        assert profile.id == registered.profile.id

    @pytest.mark.asyncio
    async def test_get_missing_profile(self, auth_service, add_user):
        user = await add_user("bob")
        with pytest.raises(ProfileNotFoundError):
            await auth_service.get_profile(user.id)

    @pytest.mark.asyncio
    async def test_create_or_get_profile(self, auth_service, add_user):
        user = await add_user("bob")
        first = await auth_service.create_or_get_profile(user.id)
        second = await auth_service.create_or_get_profile(user.id)
        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_update_profile_from_dict(self, auth_service, registration):
        registered = await auth_service.register(registration)
        updated = await auth_service.update_profile(
            registered.user.id, {"avatar_url": "https://cdn.example.com/alice.png"}
        )
        assert updated.avatar_url == "https://cdn.example.com/alice.png"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "patch",
        [
            {"display_name": None},
            {"display_name": ""},
            {"avatar_url": "not a url"},
            {"bio": "x" * 501},
            {"username": "mallory"},
        ],
    )
    async def test_update_profile_rejects(self, auth_service, registration, patch):
        registered = await auth_service.register(registration)
        with pytest.raises(ValidationError):
            await auth_service.update_profile(registered.user.id, patch)
