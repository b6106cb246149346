import asyncio
import logging

from filevault.blobs import BlobNotFound, BlobStore
from filevault.config import Settings
from filevault.connections import filevault_connections
from filevault.errors import JobFailure
from filevault.files import FileTree
from filevault.models import THUMBNAIL_WIDTHS
from filevault.thumbnails.consumer import ThumbnailConsumer
from filevault.thumbnails.images import create_thumbnail

logger = logging.getLogger("filevault.thumbnails")


class ThumbnailWorker:
    """Handles a single thumbnail job: derive every thumbnail width of one uploaded image"""

    def __init__(self, files: FileTree, blobs: BlobStore, widths: tuple[int, ...] = THUMBNAIL_WIDTHS):
        self._files = files
        self._blobs = blobs
        self.widths = widths

    async def process(self, job: dict) -> dict[int, bool]:
        """
        Process a job {"userId": ..., "fileId": ...}.
        Raises JobFailure if the job can never succeed. Otherwise returns, per width, whether that
        thumbnail was written: a failing width is logged and does not stop the other widths.
        """
        file_id = job.get("fileId")
        user_id = job.get("userId")
        if not file_id:
            raise JobFailure("Missing fileId")
        if not user_id:
            raise JobFailure("Missing userId")

        node = await self._files.get_owned(str(file_id), str(user_id))
        if node is None:
            raise JobFailure("File not found")
        if node.local_path is None:
            raise JobFailure("File has no content")

        try:
            original = await asyncio.to_thread(self._blobs.read, node.local_path)
        except BlobNotFound:
            raise JobFailure("File content not found")
        results = await asyncio.gather(
            *(asyncio.to_thread(self._write_thumbnail, node.local_path, original, width) for width in self.widths),
            return_exceptions=True,
        )

        done: dict[int, bool] = {}
        for width, result in zip(self.widths, results):
            if isinstance(result, BaseException):
                logger.error(f"Thumbnail {width} for {node.id} failed: {result!r}")
                done[width] = False
            else:
                done[width] = True
        logger.info(f"Thumbnails for {node.id}: {sum(done.values())}/{len(done)} written")
        return done

    def _write_thumbnail(self, path: str, original: bytes, width: int) -> str:
        return self._blobs.write_variant(path, width, create_thumbnail(original, width))


async def run_thumbnail_worker(settings: Settings) -> None:
    """
    Main loop of the worker process.
    The (blocking) consumer runs in a thread and hands every job to this event loop, waiting for it
    to finish before it acknowledges the job and takes the next one.
    """
    async with filevault_connections(settings, worker=True) as connections:
        blobs = BlobStore(settings.folder_path)
        worker = ThumbnailWorker(FileTree(connections.document_store(settings), blobs), blobs)
        loop = asyncio.get_running_loop()

        def handle(job: dict) -> dict[int, bool]:
            return asyncio.run_coroutine_threadsafe(worker.process(job), loop).result()

        consumer = ThumbnailConsumer(settings.rabbitmq_url, settings.thumbnail_queue, handle)
        try:
            await asyncio.to_thread(consumer.consume)
        finally:
            consumer.stop()
