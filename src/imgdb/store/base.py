"""Record store interface used by the ingestion coordinator."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import Bucket, ImageRecord, Source


class RecordStore(ABC):
    """
    Persistence for buckets, image records and sources.

    Implementations need not be thread-safe: ImgDB only calls them while
    holding its ingestion lock. Every method returns materialized
    snapshots, never live objects.
    """

    @abstractmethod
    def find_bucket_by_signature(self, signature: str) -> Optional[Bucket]:
        """Return the bucket keyed by ``signature``, if any."""

    @abstractmethod
    def create_bucket(self, signature: str) -> Bucket:
        """Create and return a new bucket for ``signature``."""

    @abstractmethod
    def list_records(self, bucket: Bucket) -> List[ImageRecord]:
        """Return every record filed under ``bucket``."""

    @abstractmethod
    def record_name_exists(self, name: str) -> bool:
        """Check whether any record already uses ``name``."""

    @abstractmethod
    def append_record(self, bucket: Bucket, record: ImageRecord) -> ImageRecord:
        """Persist ``record`` under ``bucket`` and return the stored copy."""

    @abstractmethod
    def add_source(self, record: ImageRecord, link: str) -> Source:
        """Attach ``link`` to an existing record."""

    @abstractmethod
    def source_exists(self, link: str) -> bool:
        """Check whether ``link`` is attached to any record."""

    def close(self) -> None:
        """Release any resources held by the store."""


def require_bucket(bucket: Optional[Bucket]) -> Bucket:
    """Reject a missing bucket; callers passing None have a logic error."""
    if bucket is None:
        raise TypeError("bucket must not be None")
    return bucket
