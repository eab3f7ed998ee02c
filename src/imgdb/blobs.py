"""Blob storage for original image bytes."""

from abc import ABC, abstractmethod
from pathlib import Path

from .logging import get_logger

logger = get_logger(__name__)


class BlobStore(ABC):
    @abstractmethod
    def write(self, path: str, data: bytes) -> Path:
        """Store ``data`` under ``path``; raise OSError on failure."""


class FilesystemBlobStore(BlobStore):
    """Writes blobs as flat files under a root directory."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def write(self, path: str, data: bytes) -> Path:
        target = self._root / path
        target.write_bytes(data)
        logger.debug(f"Wrote {len(data)} bytes to {target}")
        return target
