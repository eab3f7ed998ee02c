"""Near-duplicate image index backed by colour-histogram features."""

from .config import Settings
from .db import ImgDB, open_imgdb
from .errors import (
    BlobWriteError,
    ConfigError,
    DecodeError,
    DuplicateError,
    ImgDBError,
    SourceExistsError,
    ValidationError,
)
from .models import Bucket, ImageRecord, Source

__all__ = [
    "ImgDB",
    "open_imgdb",
    "Settings",
    "Bucket",
    "ImageRecord",
    "Source",
    "ImgDBError",
    "ConfigError",
    "DecodeError",
    "ValidationError",
    "DuplicateError",
    "BlobWriteError",
    "SourceExistsError",
]
