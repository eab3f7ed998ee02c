"""Error taxonomy for image ingestion."""

from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ImageRecord


class ImgDBError(Exception):
    """Base class for errors raised by imgdb."""


class ConfigError(ImgDBError, ValueError):
    """Raised when settings are invalid."""


class DecodeError(ImgDBError):
    """Raised when raw bytes cannot be decoded into an image."""


class ValidationError(ImgDBError):
    """Raised when an image is rejected before touching the record store."""

    DECODE_FAILED = "decode failed"
    TOO_SMALL = "too small"
    UNSUPPORTED_FORMAT = "unsupported format"
    INVALID_NAME = "invalid name"

    def __init__(self, name: str, reason: str, detail: Optional[str] = None) -> None:
        self.name = name
        self.reason = reason
        self.detail = detail
        message = f"{name}: {reason}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class DuplicateError(ImgDBError):
    """Raised when an image is a near-duplicate of an existing record."""

    def __init__(self, existing: "ImageRecord", rejected: str, distance: float) -> None:
        self.existing = existing
        self.rejected = rejected
        self.distance = distance
        super().__init__(f"existing {existing.filename}, duplicate {rejected}")

    @property
    def existing_name(self) -> str:
        return self.existing.filename


class BlobWriteError(ImgDBError):
    """
    Raised when image bytes could not be written after the record was committed.

    The record stays in the store without a backing blob; ``record`` lets the
    caller reconcile it.
    """

    def __init__(self, record: "ImageRecord", path: Path) -> None:
        self.record = record
        self.path = path
        super().__init__(f"failed to write {path} for committed record {record.name}")


class SourceExistsError(ImgDBError):
    """Raised when a source link is already attached to some image."""

    def __init__(self, link: str) -> None:
        self.link = link
        super().__init__(f"source already exists: {link}")
