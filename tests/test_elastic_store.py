"""Tests for the elasticsearch document store. These are skipped if no elasticsearch server is running."""

import pytest
from elasticsearch import AsyncElasticsearch

from filevault.config import get_settings
from filevault.documents import FILES, USERS, DuplicateKey, ElasticDocumentStore

UNITS_PREFIX = "filevault_unittest"


@pytest.fixture
async def elastic_store():
    settings = get_settings()
    elastic = AsyncElasticsearch(settings.elastic_host)
    try:
        alive = await elastic.ping()
    except Exception:
        alive = False
    if not alive:
        await elastic.close()
        pytest.skip(f"No elasticsearch server at {settings.elastic_host}")
    store = ElasticDocumentStore(elastic, UNITS_PREFIX)
    await store.delete_indices()
    await store.ensure_indices()
    try:
        yield store
    finally:
        await store.delete_indices()
        await elastic.close()


@pytest.mark.anyio
async def test_ensure_indices_is_idempotent(elastic_store):
    await elastic_store.ensure_indices()
    assert await elastic_store.count(USERS) == 0
    assert await elastic_store.ping()


@pytest.mark.anyio
async def test_insert_get_update(elastic_store):
    id = await elastic_store.insert(FILES, dict(userId="u1", name="a.txt", type="file", isPublic=False, parentId="0"))
    doc = await elastic_store.get(FILES, id)
    assert doc["name"] == "a.txt"
    updated = await elastic_store.update(FILES, id, dict(isPublic=True))
    assert updated["isPublic"] is True
    assert updated["name"] == "a.txt"
    assert await elastic_store.get(FILES, "missing") is None
    assert await elastic_store.update(FILES, "missing", dict(isPublic=True)) is None


@pytest.mark.anyio
async def test_insert_duplicate_id(elastic_store):
    await elastic_store.insert(USERS, dict(email="a@example.org", password="x"), id="user1")
    with pytest.raises(DuplicateKey):
        await elastic_store.insert(USERS, dict(email="a@example.org", password="y"), id="user1")
    assert (await elastic_store.get(USERS, "user1"))["password"] == "x"


@pytest.mark.anyio
async def test_find_filters_and_order(elastic_store):
    ids = []
    for i in range(5):
        ids.append(await elastic_store.insert(FILES, dict(userId="u1", name=f"{i}", type="file", parentId="0")))
    await elastic_store.insert(FILES, dict(userId="u2", name="other", type="file", parentId="0"))

    hits = await elastic_store.find(FILES, userId="u1", parentId="0")
    assert [id for id, _ in hits] == ids
    page = await elastic_store.find(FILES, offset=2, limit=2, userId="u1", parentId="0")
    assert [doc["name"] for _, doc in page] == ["2", "3"]
    assert await elastic_store.find_one(FILES, userId="u3") is None
    assert (await elastic_store.find_one(FILES, userId="u2"))[1]["name"] == "other"
    assert await elastic_store.count(FILES) == 6


@pytest.mark.anyio
async def test_get_id_too_long(elastic_store):
    assert await elastic_store.get(FILES, "x" * 600) is None
