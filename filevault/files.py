"""
The file metadata tree.

Every node is a flat document in the files collection that points to its parent folder by id
(or to ROOT). Children are only ever inserted under folders that already exist, and a node
is never moved, so the parent links of a user's files always form a forest.
"""

import asyncio
import logging
from typing import Protocol

from filevault.blobs import BlobNotFound, BlobStore
from filevault.documents import FILES, DocumentStore
from filevault.errors import BadRequest, NotFound, ParentNotFolder, ParentNotFound
from filevault.models import CONTENT_TYPES, ROOT, THUMBNAIL_WIDTHS, FileNode, FileType

PAGE_SIZE = 20


class ThumbnailScheduler(Protocol):
    def schedule(self, user_id: str, file_id: str) -> None: ...


def _thumbnail_width(size: int | str | None) -> int | None:
    """Return the requested thumbnail width, or None if size does not name one of the generated widths"""
    if size is None:
        return None
    try:
        width = int(size)
    except ValueError:
        return None
    return width if width in THUMBNAIL_WIDTHS else None


class FileTree:
    def __init__(self, store: DocumentStore, blobs: BlobStore, thumbnails: ThumbnailScheduler | None = None):
        self._store = store
        self._blobs = blobs
        self._thumbnails = thumbnails

    async def _load(self, file_id: str) -> FileNode | None:
        doc = await self._store.get(FILES, file_id)
        return None if doc is None else FileNode.from_document(file_id, doc)

    async def _check_parent(self, owner: str, parent_id: str) -> None:
        """A parent must be an existing folder of the same user (another user's folder is reported as missing)"""
        if parent_id == ROOT:
            return
        parent = await self._load(parent_id)
        if parent is None or parent.user_id != owner:
            raise ParentNotFound()
        if not parent.is_folder:
            raise ParentNotFolder()

    async def _insert(
        self,
        owner: str,
        name: str,
        type: FileType,
        parent_id: str,
        is_public: bool,
        local_path: str | None = None,
    ) -> FileNode:
        doc = dict(userId=owner, name=name, type=type, isPublic=is_public, parentId=parent_id)
        if local_path is not None:
            doc["localPath"] = local_path
        id = await self._store.insert(FILES, doc)
        return FileNode.from_document(id, doc)

    async def create_folder(self, owner: str, name: str, parent_id: str = ROOT, is_public: bool = False) -> FileNode:
        parent_id = str(parent_id)
        await self._check_parent(owner, parent_id)
        return await self._insert(owner, name, "folder", parent_id, is_public)

    async def create_content(
        self,
        owner: str,
        name: str,
        type: FileType,
        data: bytes,
        parent_id: str = ROOT,
        is_public: bool = False,
    ) -> FileNode:
        """
        Store the content of a file or image and add it to the tree.
        The blob is written completely before the node refers to it. For images, a thumbnail job
        is scheduled after the node exists; scheduling never blocks or fails the upload.
        """
        if type not in CONTENT_TYPES:
            raise BadRequest("Missing type")
        parent_id = str(parent_id)
        await self._check_parent(owner, parent_id)
        local_path = await asyncio.to_thread(self._blobs.write, data)
        node = await self._insert(owner, name, type, parent_id, is_public, local_path=local_path)
        if node.type == "image" and self._thumbnails is not None:
            try:
                self._thumbnails.schedule(owner, node.id)
            except Exception:
                logging.exception(f"Could not schedule thumbnails for {node.id}")
        return node

    async def get(self, file_id: str, requester: str | None) -> FileNode:
        """Get a node that is public or owned by the requester. Anything else is indistinguishable from a missing node"""
        node = await self._load(file_id)
        if node is None or not (node.is_public or node.user_id == requester):
            raise NotFound()
        return node

    async def get_owned(self, file_id: str, owner: str) -> FileNode | None:
        node = await self._load(file_id)
        if node is None or node.user_id != owner:
            return None
        return node

    async def list(self, owner: str, parent_id: str = ROOT, page: int = 0) -> list[FileNode]:
        """
        List the owner's nodes directly under parent_id, in insertion order, PAGE_SIZE per page.
        If parent_id is not an existing folder, the result is simply empty.
        """
        parent_id = str(parent_id)
        if page < 0:
            raise BadRequest("Invalid page")
        if parent_id != ROOT:
            parent = await self._load(parent_id)
            if parent is None or not parent.is_folder:
                return []
        hits = await self._store.find(FILES, offset=page * PAGE_SIZE, limit=PAGE_SIZE, userId=owner, parentId=parent_id)
        return [FileNode.from_document(id, doc) for id, doc in hits]

    async def set_visibility(self, file_id: str, owner: str, is_public: bool) -> FileNode:
        if await self.get_owned(file_id, owner) is None:
            raise NotFound()
        doc = await self._store.update(FILES, file_id, dict(isPublic=is_public))
        if doc is None:
            raise NotFound()
        return FileNode.from_document(file_id, doc)

    async def read_content(
        self, file_id: str, requester: str | None, size: int | str | None = None
    ) -> tuple[FileNode, bytes]:
        """
        Read the content of a file or image. For images, size can select one of the thumbnail widths;
        a thumbnail that was not (yet) generated is not found, any other size gives the original.
        """
        node = await self.get(file_id, requester)
        if node.is_folder or node.local_path is None:
            raise BadRequest("folder has no content")
        path = node.local_path
        if node.type == "image" and (width := _thumbnail_width(size)) is not None:
            path = self._blobs.variant_path(path, width)
        try:
            data = await asyncio.to_thread(self._blobs.read, path)
        except BlobNotFound:
            raise NotFound()
        return node, data

    async def count(self) -> int:
        return await self._store.count(FILES)
