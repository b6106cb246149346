"""
The document store holding the users and files collections.

The rest of the code talks to the DocumentStore protocol: a flat store of json documents
keyed by id, with exact-match filtering and insertion-ordered, paginated listing.
ElasticDocumentStore implements it with one elasticsearch index per collection.
"""

import logging
import time
from typing import Any, Protocol

from elasticsearch import AsyncElasticsearch, BadRequestError, ConflictError, NotFoundError

ElasticMapping = dict[str, Any]

USERS = "users"
FILES = "files"

COLLECTIONS: dict[str, ElasticMapping] = {
    USERS: dict(
        email={"type": "keyword"},
        password={"type": "keyword", "index": False},
        created={"type": "long"},
    ),
    FILES: dict(
        userId={"type": "keyword"},
        name={"type": "keyword"},
        type={"type": "keyword"},
        isPublic={"type": "boolean"},
        parentId={"type": "keyword"},
        localPath={"type": "keyword", "index": False},
        created={"type": "long"},
    ),
}


class DuplicateKey(Exception):
    """A document with the given id already exists"""


class DocumentStore(Protocol):
    async def ping(self) -> bool: ...

    async def get(self, collection: str, id: str) -> dict | None: ...

    async def find_one(self, collection: str, **filters) -> tuple[str, dict] | None: ...

    async def find(self, collection: str, offset: int = 0, limit: int = 20, **filters) -> list[tuple[str, dict]]: ...

    async def insert(self, collection: str, doc: dict, id: str | None = None) -> str: ...

    async def update(self, collection: str, id: str, fields: dict) -> dict | None: ...

    async def count(self, collection: str) -> int: ...


def _filter_query(filters: dict) -> dict:
    if not filters:
        return {"match_all": {}}
    return {"bool": {"filter": [{"term": {field: value}} for field, value in filters.items()]}}


class ElasticDocumentStore:
    def __init__(self, elastic: AsyncElasticsearch, prefix: str):
        self._es = elastic
        self._prefix = prefix

    def index_name(self, collection: str) -> str:
        return f"{self._prefix}_{collection}"

    async def ensure_indices(self) -> None:
        """Create the collection indices (with their mappings) if they do not exist yet"""
        for collection, mapping in COLLECTIONS.items():
            index = self.index_name(collection)
            if not await self._es.indices.exists(index=index):
                logging.info(f"Creating index {index}")
                await self._es.indices.create(index=index, mappings={"properties": mapping})

    async def delete_indices(self) -> None:
        for collection in COLLECTIONS:
            await self._es.indices.delete(index=self.index_name(collection), ignore_unavailable=True)

    async def ping(self) -> bool:
        return bool(await self._es.ping())

    async def get(self, collection: str, id: str) -> dict | None:
        try:
            res = await self._es.get(index=self.index_name(collection), id=id)
        except (NotFoundError, BadRequestError):
            # ids that cannot exist (e.g. longer than 512 bytes) are rejected as bad requests
            return None
        return res["_source"]

    async def find_one(self, collection: str, **filters) -> tuple[str, dict] | None:
        hits = await self.find(collection, offset=0, limit=1, **filters)
        return hits[0] if hits else None

    async def find(self, collection: str, offset: int = 0, limit: int = 20, **filters) -> list[tuple[str, dict]]:
        res = await self._es.search(
            index=self.index_name(collection),
            query=_filter_query(filters),
            sort=[{"created": "asc"}],
            from_=offset,
            size=limit,
        )
        return [(hit["_id"], hit["_source"]) for hit in res["hits"]["hits"]]

    async def insert(self, collection: str, doc: dict, id: str | None = None) -> str:
        """
        Insert a new document, returning its id. If an id is given and it is already taken,
        raise DuplicateKey (the create is atomic, so this is how unique keys are enforced)
        """
        document = {**doc, "created": time.time_ns()}
        try:
            res = await self._es.index(
                index=self.index_name(collection), id=id, document=document, op_type="create", refresh="wait_for"
            )
        except ConflictError as e:
            raise DuplicateKey(f"{collection}/{id} already exists") from e
        return res["_id"]

    async def update(self, collection: str, id: str, fields: dict) -> dict | None:
        """Set the given fields on an existing document, returning the updated document (or None if it is missing)"""
        try:
            await self._es.update(index=self.index_name(collection), id=id, doc=fields, refresh="wait_for")
        except NotFoundError:
            return None
        return await self.get(collection, id)

    async def count(self, collection: str) -> int:
        res = await self._es.count(index=self.index_name(collection))
        return res["count"]
