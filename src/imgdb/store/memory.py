from dataclasses import replace
from typing import Dict, List, Optional

from ..errors import SourceExistsError
from ..models import Bucket, ImageRecord, Source
from .base import RecordStore, require_bucket


class MemoryRecordStore(RecordStore):
    """Dict-backed record store for tests and embedding."""

    def __init__(self) -> None:
        self._buckets: Dict[str, Bucket] = {}
        self._records: Dict[str, ImageRecord] = {}
        self._sources: Dict[str, Source] = {}

    def find_bucket_by_signature(self, signature: str) -> Optional[Bucket]:
        return self._buckets.get(signature)

    def create_bucket(self, signature: str) -> Bucket:
        if signature in self._buckets:
            raise ValueError(f"bucket already exists: {signature}")
        bucket = Bucket(id=len(self._buckets) + 1, signature=signature)
        self._buckets[signature] = bucket
        return bucket

    def list_records(self, bucket: Bucket) -> List[ImageRecord]:
        bucket = require_bucket(bucket)
        return [r for r in self._records.values() if r.bucket_id == bucket.id]

    def record_name_exists(self, name: str) -> bool:
        return name in self._records

    def append_record(self, bucket: Bucket, record: ImageRecord) -> ImageRecord:
        bucket = require_bucket(bucket)
        if record.name in self._records:
            raise ValueError(f"record name already exists: {record.name}")
        stored = replace(record, bucket_id=bucket.id, id=len(self._records) + 1)
        self._records[stored.name] = stored
        return stored

    def add_source(self, record: ImageRecord, link: str) -> Source:
        if record.name not in self._records:
            raise KeyError(f"unknown record: {record.name}")
        if link in self._sources:
            raise SourceExistsError(link)
        source = Source(link=link, image_name=record.name, id=len(self._sources) + 1)
        self._sources[link] = source
        return source

    def source_exists(self, link: str) -> bool:
        return link in self._sources

    def __len__(self) -> int:
        return len(self._records)
