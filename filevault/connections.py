import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from elasticsearch import AsyncElasticsearch
from redis.asyncio import Redis

from filevault.config import Settings, get_settings
from filevault.documents import ElasticDocumentStore
from filevault.thumbnails.producer import ThumbnailProducer


class FileVaultConnections:
    """The clients for the external services. Create them with filevault_connections()."""

    elastic: AsyncElasticsearch | None
    redis: Redis | None
    producer: ThumbnailProducer | None

    def __init__(
        self,
        elastic: AsyncElasticsearch | None = None,
        redis: Redis | None = None,
        producer: ThumbnailProducer | None = None,
    ):
        self.elastic = elastic
        self.redis = redis
        self.producer = producer

    def document_store(self, settings: Settings) -> ElasticDocumentStore:
        if self.elastic is None:
            raise ConnectionError("Elasticsearch connection not initialized")
        return ElasticDocumentStore(self.elastic, settings.index_prefix)

    async def close(self) -> None:
        if self.producer is not None:
            # waits for the jobs that are still being published
            await asyncio.to_thread(self.producer.close)
            self.producer = None
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
        if self.elastic is not None:
            await self.elastic.close()
            self.elastic = None


@asynccontextmanager
async def filevault_connections(
    settings: Settings | None = None, worker: bool = False
) -> AsyncGenerator[FileVaultConnections, None]:
    """
    The main context manager to start and stop connections used by filevault.
    Always use this once (and only once) per process:
        - For running the server: in the FastAPI lifespan
        - For the thumbnail worker: around the consumer loop (with worker=True: only the document store)
        - For CLI commands: within the CLI command
    """
    settings = settings or get_settings()
    connections = FileVaultConnections()
    try:
        connections.elastic = await _start_elastic(settings)
        await connections.document_store(settings).ensure_indices()
        if not worker:
            connections.redis = await _start_redis(settings)
            # The producer connects on first publish, so a broker outage only affects thumbnails
            connections.producer = ThumbnailProducer(settings.rabbitmq_url, settings.thumbnail_queue)
        yield connections
    finally:
        await connections.close()


async def _start_elastic(settings: Settings) -> AsyncElasticsearch:
    logging.debug(
        f"Connecting with elasticsearch at {settings.elastic_host}, password? {'yes' if settings.elastic_password else 'no'} "
    )
    if settings.elastic_password:
        elastic = AsyncElasticsearch(
            settings.elastic_host,
            basic_auth=("elastic", settings.elastic_password),
            verify_certs=bool(settings.elastic_verify_ssl),
        )
    else:
        elastic = AsyncElasticsearch(settings.elastic_host)

    if not await elastic.ping():
        await elastic.close()
        raise ConnectionError(f"Cannot connect to elasticsearch server {settings.elastic_host}")
    return elastic


async def _start_redis(settings: Settings) -> Redis:
    logging.debug(f"Connecting with redis at {settings.redis_url}")
    redis = Redis.from_url(settings.redis_url, decode_responses=True)
    if not await redis.ping():
        await redis.aclose()
        raise ConnectionError(f"Cannot connect to redis server {settings.redis_url}")
    return redis
