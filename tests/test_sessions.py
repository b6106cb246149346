import asyncio

import pytest

from filevault.sessions import SESSION_TTL, SessionStore, session_key


@pytest.mark.anyio
async def test_issue_and_resolve(services, cache, user):
    token = await services.sessions.issue(user)
    assert await cache.get(session_key(token)) == user.id
    assert 0 < await cache.ttl(session_key(token)) <= SESSION_TTL
    assert await services.sessions.resolve(token) == user


@pytest.mark.anyio
async def test_tokens_are_unique(services, user):
    tokens = {await services.sessions.issue(user) for _ in range(10)}
    assert len(tokens) == 10
    for token in tokens:
        assert await services.sessions.resolve(token) == user


@pytest.mark.anyio
async def test_resolve_missing_token(services, user):
    assert await services.sessions.resolve(None) is None
    assert await services.sessions.resolve("") is None
    assert await services.sessions.resolve("not-a-token") is None


@pytest.mark.anyio
async def test_revoke(services, user):
    token = await services.sessions.issue(user)
    other = await services.sessions.issue(user)
    await services.sessions.revoke(token)
    assert await services.sessions.resolve(token) is None
    assert await services.sessions.resolve(other) == user
    # revoking twice is fine
    await services.sessions.revoke(token)


@pytest.mark.anyio
async def test_resolve_does_not_extend_lifetime(services, cache, user):
    token = await services.sessions.issue(user)
    await cache.expire(session_key(token), 100)
    await services.sessions.resolve(token)
    assert await cache.ttl(session_key(token)) <= 100


@pytest.mark.anyio
async def test_session_expires(cache, services, user):
    sessions = SessionStore(cache, services.users, ttl=1)
    token = await sessions.issue(user)
    assert await sessions.resolve(token) == user
    await asyncio.sleep(1.5)
    assert await sessions.resolve(token) is None


@pytest.mark.anyio
async def test_session_of_unknown_user(services, cache):
    await cache.set(session_key("dangling"), "no-such-user", ex=60)
    assert await services.sessions.resolve("dangling") is None
