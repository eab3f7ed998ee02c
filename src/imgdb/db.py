"""
Image ingestion with near-duplicate rejection.

ImgDB turns raw image bytes into a colour-histogram feature, files it in
the bucket named by the feature's signature and rejects it when any image
already in that bucket is within the duplicate threshold. Bucket lookup,
the duplicate scan, name-collision resolution and the insert run as one
critical section, so two concurrent callers can never both store
mutually-similar images.
"""

import os
import secrets
import threading
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional, Union

from .blobs import BlobStore, FilesystemBlobStore
from .config import Settings
from .dedup.distance import chi_distance
from .dedup.histogram import feature_to_bytes, generate_feature
from .dedup.signature import bucket_signature
from .errors import BlobWriteError, DecodeError, DuplicateError, ValidationError
from .imaging.decoder import DecodedImage, decode_image
from .logging import get_logger
from .models import ImageRecord, Source
from .store.base import RecordStore
from .store.sql import SqlRecordStore

logger = get_logger(__name__)

# 8 bytes ~ 1e-19 chance of two suffixes colliding
SUFFIX_BYTES = 8

_SEPARATORS = tuple(sep for sep in ("/", "\\", os.sep, os.altsep) if sep)


class ImgDB:
    """Coordinates decoding, duplicate detection and storage of images."""

    def __init__(
        self,
        store: RecordStore,
        blobs: BlobStore,
        settings: Optional[Settings] = None,
        decoder: Callable[[bytes], DecodedImage] = decode_image,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        self.store = store
        self.blobs = blobs
        self.settings = settings or Settings()
        self._decoder = decoder
        self._random_bytes = random_bytes
        self._lock = threading.Lock()

    def add_image(self, name: str, data: bytes) -> ImageRecord:
        """
        Validate, deduplicate and store an image.

        Args:
            name: Display name without extension
            data: Encoded image bytes

        Returns:
            The stored record; its name carries a random hex suffix if
            ``name`` was already taken

        Raises:
            ValidationError: Bad name, or undecodable, too small or unsupported image
            DuplicateError: A stored image is within the duplicate threshold
            BlobWriteError: The record was committed but the bytes were not written
        """
        # Names become flat file names under the blob root
        if not name or name in (".", "..") or any(sep in name for sep in _SEPARATORS):
            logger.warning(f"Rejected {name!r}: not a plain file name")
            raise ValidationError(name, ValidationError.INVALID_NAME, "must be a plain file name")

        try:
            image = self._decoder(data)
        except DecodeError as exc:
            logger.warning(f"Rejected {name}: {exc}")
            raise ValidationError(name, ValidationError.DECODE_FAILED, str(exc)) from exc

        if image.width < self.settings.min_width or image.height < self.settings.min_height:
            logger.warning(
                f"Rejected {name}: {image.width}x{image.height} is below "
                f"{self.settings.min_width}x{self.settings.min_height}"
            )
            raise ValidationError(
                name, ValidationError.TOO_SMALL, f"got <{image.width}, {image.height}> size"
            )

        features = generate_feature(image, self.settings.bins, self.settings.formats)
        if features is None:
            logger.warning(f"Rejected {name}: unsupported format {image.format!r}")
            raise ValidationError(name, ValidationError.UNSUPPORTED_FORMAT, image.format or None)

        record = ImageRecord(name=name, format=image.format, feature=feature_to_bytes(features))
        signature = bucket_signature(features)

        with self._lock:
            bucket = self.store.find_bucket_by_signature(signature)
            if bucket is None:
                bucket = self.store.create_bucket(signature)
                logger.debug(f"Created bucket {bucket.id} for signature {signature}")

            for existing in self.store.list_records(bucket):
                distance = chi_distance(features, existing.features())
                if distance < self.settings.duplicate_threshold:
                    logger.warning(
                        f"Rejected {record.filename}: duplicate of {existing.filename} "
                        f"(distance: {distance:.6f})"
                    )
                    raise DuplicateError(existing, record.filename, distance)

            if self.store.record_name_exists(record.name):
                suffix = self._random_bytes(SUFFIX_BYTES).hex()
                logger.debug(f"Name {record.name} is taken, appending suffix {suffix}")
                record = replace(record, name=record.name + suffix)

            record = self.store.append_record(bucket, record)

        try:
            self.blobs.write(record.filename, data)
        except OSError as exc:
            logger.error(f"Stored record {record.name} but failed to write {record.filename}: {exc}")
            raise BlobWriteError(record, Path(record.filename)) from exc

        logger.info(f"Stored {record.filename} in bucket {record.bucket_id}")
        return record

    def add_source(self, record: ImageRecord, link: str) -> Source:
        """Associate an origin link with a stored image."""
        with self._lock:
            source = self.store.add_source(record, link)
        logger.debug(f"Linked {link} to {record.name}")
        return source

    def source_exists(self, link: str) -> bool:
        """Check whether a link is already attached to some image."""
        with self._lock:
            return self.store.source_exists(link)

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "ImgDB":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def open_imgdb(
    database_url: Union[str, Path],
    blob_dir: Path,
    settings: Optional[Settings] = None,
) -> ImgDB:
    """Open an ImgDB over a SQL record store and a blob directory, creating both if needed."""
    store = SqlRecordStore(database_url)
    blobs = FilesystemBlobStore(Path(blob_dir))
    logger.info(f"Opened image database {database_url} with blobs in {blob_dir}")
    return ImgDB(store, blobs, settings)
