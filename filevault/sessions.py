"""
Session tokens.

A session is a single cache entry auth_<token> -> user id with a fixed time to live.
Resolving a token never extends its lifetime; the entry simply disappears after the TTL
or on logout, and from then on the token is treated exactly like a missing token.
"""

import logging
import uuid

from redis.asyncio import Redis

from filevault.models import User
from filevault.users import UserStore

SESSION_TTL = 24 * 60 * 60


def session_key(token: str) -> str:
    return f"auth_{token}"


class SessionStore:
    def __init__(self, cache: Redis, users: UserStore, ttl: int = SESSION_TTL):
        self._cache = cache
        self._users = users
        self.ttl = ttl

    async def issue(self, user: User) -> str:
        token = str(uuid.uuid4())
        await self._cache.set(session_key(token), user.id, ex=self.ttl)
        return token

    async def resolve(self, token: str | None) -> User | None:
        if not token:
            return None
        user_id = await self._cache.get(session_key(token))
        if user_id is None:
            return None
        if isinstance(user_id, bytes):
            user_id = user_id.decode("utf-8")
        user = await self._users.get(user_id)
        if user is None:
            logging.warning(f"Session refers to unknown user {user_id}")
        return user

    async def revoke(self, token: str) -> None:
        await self._cache.delete(session_key(token))
