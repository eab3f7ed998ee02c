"""Record store collaborators."""

from .base import RecordStore
from .memory import MemoryRecordStore
from .sql import SqlRecordStore

__all__ = ["RecordStore", "MemoryRecordStore", "SqlRecordStore"]
