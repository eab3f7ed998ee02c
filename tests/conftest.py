"""Test configuration for pytest."""

import logging
import os

import pytest

from imgdb.blobs import FilesystemBlobStore
from imgdb.config import Settings
from imgdb.db import ImgDB
from imgdb.store.memory import MemoryRecordStore


@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests to be minimal."""
    os.environ['IMGDB_LOG_LEVEL'] = 'WARNING'

    logging.getLogger().setLevel(logging.WARNING)

    # Rejections are logged at WARNING; keep test output clean
    for logger_name in ['imgdb.db', 'imgdb.imaging.decoder']:
        logging.getLogger(logger_name).setLevel(logging.ERROR)


@pytest.fixture
def settings(tmp_path):
    """Settings small enough for generated test images."""
    return Settings(blob_dir=tmp_path / "blobs", min_width=10, min_height=10)


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def imgdb(store, settings):
    return ImgDB(store, FilesystemBlobStore(settings.blob_dir), settings)
