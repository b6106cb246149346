import logging

from redis.asyncio import Redis

from filevault.blobs import BlobStore
from filevault.config import Settings
from filevault.connections import FileVaultConnections
from filevault.documents import DocumentStore
from filevault.files import FileTree, ThumbnailScheduler
from filevault.sessions import SESSION_TTL, SessionStore
from filevault.users import CredentialVerifier, UserStore


class Services:
    """The core components of a running server, wired to one document store, cache and content volume."""

    def __init__(
        self,
        store: DocumentStore,
        cache: Redis,
        blobs: BlobStore,
        thumbnails: ThumbnailScheduler | None = None,
        session_ttl: int = SESSION_TTL,
    ):
        self.store = store
        self.cache = cache
        self.blobs = blobs
        self.users = UserStore(store)
        self.credentials = CredentialVerifier(self.users)
        self.sessions = SessionStore(cache, self.users, ttl=session_ttl)
        self.files = FileTree(store, blobs, thumbnails)

    @classmethod
    def from_connections(cls, connections: FileVaultConnections, settings: Settings) -> "Services":
        if connections.redis is None:
            raise ConnectionError("Redis connection not initialized")
        return cls(
            store=connections.document_store(settings),
            cache=connections.redis,
            blobs=BlobStore(settings.folder_path),
            thumbnails=connections.producer,
            session_ttl=settings.session_ttl,
        )

    async def status(self) -> dict[str, bool]:
        return dict(redis=await self._alive("redis", self.cache.ping), db=await self._alive("db", self.store.ping))

    async def stats(self) -> dict[str, int]:
        return dict(users=await self.users.count(), files=await self.files.count())

    @staticmethod
    async def _alive(name, ping) -> bool:
        try:
            return bool(await ping())
        except Exception as e:
            logging.warning(f"Status check for {name} failed: {e}")
            return False
