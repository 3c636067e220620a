"""
Entity-specific queries over the generic Repository.

Each function takes the repository it reads from, so the same
Repository type serves every table without subclassing.
"""

from datetime import datetime
from typing import Optional

from shared.repository import Repository
from shared.store import IIdentityStore, PROFILES_TABLE, SESSIONS_TABLE, USERS_TABLE

from .models import Identity, Profile, Session


def user_repository(store: IIdentityStore) -> Repository[Identity]:
    return Repository(store, USERS_TABLE, Identity)


def profile_repository(store: IIdentityStore) -> Repository[Profile]:
    return Repository(store, PROFILES_TABLE, Profile)


def session_repository(store: IIdentityStore) -> Repository[Session]:
    return Repository(store, SESSIONS_TABLE, Session)


async def find_user_by_username(users: Repository[Identity], username: str) -> Optional[Identity]:
    return await users.find_one(username=username)


async def username_exists(users: Repository[Identity], username: str) -> bool:
    return await find_user_by_username(users, username) is not None


async def find_profile_by_user_id(profiles: Repository[Profile], user_id: str) -> Optional[Profile]:
    return await profiles.find_one(user_id=user_id)


async def find_session_by_token(sessions: Repository[Session], token: str) -> Optional[Session]:
    return await sessions.find_one(token=token)


async def delete_sessions_for_user(sessions: Repository[Session], user_id: str) -> int:
    """Logout from all devices."""
    return await sessions.delete_where(eq={"user_id": user_id})


async def delete_expired_sessions(sessions: Repository[Session], now: datetime) -> int:
    return await sessions.delete_where(lt={"expires_at": now})
