"""An in-memory DocumentStore, so the core can be tested without an elasticsearch server"""

import copy
import uuid
from collections import defaultdict

from filevault.documents import DuplicateKey


class MemoryDocumentStore:
    def __init__(self):
        # dicts keep insertion order, which is the listing order of the store
        self.collections: dict[str, dict[str, dict]] = defaultdict(dict)

    async def ping(self) -> bool:
        return True

    async def get(self, collection: str, id: str) -> dict | None:
        doc = self.collections[collection].get(id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find_one(self, collection: str, **filters) -> tuple[str, dict] | None:
        hits = await self.find(collection, offset=0, limit=1, **filters)
        return hits[0] if hits else None

    async def find(self, collection: str, offset: int = 0, limit: int = 20, **filters) -> list[tuple[str, dict]]:
        hits = [
            (id, copy.deepcopy(doc))
            for id, doc in self.collections[collection].items()
            if all(doc.get(field) == value for field, value in filters.items())
        ]
        return hits[offset : offset + limit]

    async def insert(self, collection: str, doc: dict, id: str | None = None) -> str:
        id = id or uuid.uuid4().hex
        if id in self.collections[collection]:
            raise DuplicateKey(f"{collection}/{id} already exists")
        self.collections[collection][id] = copy.deepcopy(doc)
        return id

    async def update(self, collection: str, id: str, fields: dict) -> dict | None:
        doc = self.collections[collection].get(id)
        if doc is None:
            return None
        doc.update(fields)
        return copy.deepcopy(doc)

    async def count(self, collection: str) -> int:
        return len(self.collections[collection])
