"""SQLAlchemy-backed record store, schema definitions and engine setup."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

from sqlalchemy import ForeignKey, Integer, LargeBinary, String, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from ..errors import SourceExistsError
from ..logging import get_logger
from ..models import Bucket, ImageRecord, Source
from .base import RecordStore, require_bucket

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class ClusterRow(Base):
    """A bucket of images sharing a signature."""

    __tablename__ = "clusters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    signature: Mapped[str] = mapped_column(String, nullable=False, unique=True)


class ImageFileRow(Base):
    """Name, format and histogram of a stored image."""

    __tablename__ = "image_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    format: Mapped[str] = mapped_column(String, nullable=False)
    feature: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    cluster_id: Mapped[int] = mapped_column(ForeignKey("clusters.id"), nullable=False, index=True)


class SourceRow(Base):
    """A link an image was obtained from."""

    __tablename__ = "sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    link: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    image_file_id: Mapped[int] = mapped_column(ForeignKey("image_files.id"), nullable=False)


def normalize_database_url(target: str | Path) -> str:
    """Normalize database URL or path inputs to absolute URLs."""

    if isinstance(target, Path):
        return f"sqlite:///{target.resolve()}"

    raw = str(target).strip()
    if not raw:
        raise ValueError("database target cannot be empty")

    if raw == ":memory:":
        return "sqlite://"

    if "://" not in raw:
        return f"sqlite:///{Path(raw).resolve()}"

    url = make_url(raw)
    if url.drivername.startswith("sqlite"):
        database = url.database or ""
        if database not in {":memory:", ""}:
            db_path = Path(database)
            if not db_path.is_absolute():
                db_path = (Path.cwd() / db_path).resolve()
            url = url.set(database=str(db_path))
        return url.render_as_string(hide_password=False)

    return raw


def create_store_engine(target: str | Path) -> Engine:
    """Create an engine for ``target`` and make sure the schema exists."""

    normalized = normalize_database_url(target)
    sa_url = make_url(normalized)
    is_sqlite = sa_url.drivername.startswith("sqlite")

    engine_kwargs: dict[str, Any] = {}
    if is_sqlite:
        # Sessions are opened from whichever thread holds the ingestion lock
        engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30.0}
        if sa_url.database in {None, "", ":memory:"}:
            engine_kwargs["poolclass"] = StaticPool
        else:
            Path(sa_url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        engine_kwargs["pool_pre_ping"] = True

    engine = create_engine(normalized, **engine_kwargs)

    if is_sqlite:

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys = ON")
            finally:
                cursor.close()

    Base.metadata.create_all(engine)
    logger.debug(f"Opened record store at {sa_url.render_as_string(hide_password=True)}")
    return engine


def _to_bucket(row: ClusterRow) -> Bucket:
    return Bucket(id=row.id, signature=row.signature)


def _to_record(row: ImageFileRow) -> ImageRecord:
    return ImageRecord(
        name=row.name,
        format=row.format,
        feature=bytes(row.feature),
        bucket_id=row.cluster_id,
        id=row.id,
    )


class SqlRecordStore(RecordStore):
    """Record store over any SQLAlchemy-supported database."""

    def __init__(self, target: str | Path | Engine) -> None:
        self._engine = target if isinstance(target, Engine) else create_store_engine(target)
        self._sessions = sessionmaker(self._engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        return self._engine

    def find_bucket_by_signature(self, signature: str) -> Optional[Bucket]:
        with self._sessions() as session:
            row = session.scalars(
                select(ClusterRow).where(ClusterRow.signature == signature)
            ).first()
            return _to_bucket(row) if row is not None else None

    def create_bucket(self, signature: str) -> Bucket:
        with self._sessions() as session:
            row = ClusterRow(signature=signature)
            session.add(row)
            session.commit()
            return _to_bucket(row)

    def list_records(self, bucket: Bucket) -> List[ImageRecord]:
        bucket = require_bucket(bucket)
        with self._sessions() as session:
            rows = session.scalars(
                select(ImageFileRow).where(ImageFileRow.cluster_id == bucket.id)
            ).all()
            return [_to_record(row) for row in rows]

    def record_name_exists(self, name: str) -> bool:
        with self._sessions() as session:
            found = session.scalar(select(ImageFileRow.id).where(ImageFileRow.name == name))
            return found is not None

    def append_record(self, bucket: Bucket, record: ImageRecord) -> ImageRecord:
        bucket = require_bucket(bucket)
        with self._sessions() as session:
            row = ImageFileRow(
                name=record.name,
                format=record.format,
                feature=record.feature,
                cluster_id=bucket.id,
            )
            session.add(row)
            session.commit()
            return _to_record(row)

    def add_source(self, record: ImageRecord, link: str) -> Source:
        with self._sessions() as session:
            if session.scalar(select(SourceRow.id).where(SourceRow.link == link)) is not None:
                raise SourceExistsError(link)
            image_id = session.scalar(select(ImageFileRow.id).where(ImageFileRow.name == record.name))
            if image_id is None:
                raise KeyError(f"unknown record: {record.name}")
            row = SourceRow(link=link, image_file_id=image_id)
            session.add(row)
            session.commit()
            return Source(link=row.link, image_name=record.name, id=row.id)

    def source_exists(self, link: str) -> bool:
        with self._sessions() as session:
            return session.scalar(select(SourceRow.id).where(SourceRow.link == link)) is not None

    def close(self) -> None:
        self._engine.dispose()
