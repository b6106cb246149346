"""
Blob storage on the content volume.

Blobs are stored under a random name (never the display name, so files with the same
name can coexist), and thumbnails of an image are stored next to it as <path>_<width>.
Writes go to a temporary file in the same directory which is then renamed into place,
so a path is either absent or complete.
"""

import logging
import os
import tempfile
import uuid
from pathlib import Path


class BlobNotFound(FileNotFoundError):
    pass


class BlobStore:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def write(self, data: bytes) -> str:
        path = self.root / uuid.uuid4().hex
        self._atomic_write(path, data)
        return str(path)

    def write_variant(self, path: str, width: int, data: bytes) -> str:
        variant = self.variant_path(path, width)
        self._atomic_write(Path(variant), data)
        return variant

    def read(self, path: str) -> bytes:
        try:
            return Path(path).read_bytes()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise BlobNotFound(path) from e

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    @staticmethod
    def variant_path(path: str, width: int) -> str:
        return f"{path}_{width}"

    def _atomic_write(self, path: Path, data: bytes) -> None:
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            logging.info(f"Created content directory {path.parent}")
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
