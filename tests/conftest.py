from unittest.mock import MagicMock

import pytest
from fakeredis import FakeServer, aioredis
from httpx import ASGITransport, AsyncClient

from filevault import api
from filevault.blobs import BlobStore
from filevault.models import User
from filevault.services import Services
from tests.memory_store import MemoryDocumentStore

PASSWORD = "toto1234!"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def cache():
    return aioredis.FakeRedis(server=FakeServer(), decode_responses=True)


@pytest.fixture
def blobs(tmp_path):
    return BlobStore(tmp_path / "files_manager")


@pytest.fixture
def thumbnails():
    """Stands in for the thumbnail producer, recording the scheduled jobs"""
    return MagicMock()


@pytest.fixture
def services(store, cache, blobs, thumbnails):
    return Services(store=store, cache=cache, blobs=blobs, thumbnails=thumbnails)


@pytest.fixture
async def client(services):
    api.app.state.services = services
    async with AsyncClient(transport=ASGITransport(app=api.app), base_url="http://test", follow_redirects=False) as client:
        yield client


@pytest.fixture
async def user(services) -> User:
    return await services.users.create("bob@dylan.com", PASSWORD)


@pytest.fixture
async def user2(services) -> User:
    return await services.users.create("joan@baez.com", PASSWORD)


@pytest.fixture
async def token(services, user) -> str:
    return await services.sessions.issue(user)


@pytest.fixture
async def token2(services, user2) -> str:
    return await services.sessions.issue(user2)
