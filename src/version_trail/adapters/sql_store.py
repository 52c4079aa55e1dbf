"""SQLAlchemy-backed version store.

The store writes through the caller's Session and only flushes, never
commits. An UPDATE version appended from ``before_update`` therefore lands
in the same transaction as the mutation it describes: both commit together
or both roll back together.

Key exports:
- VersionRecord        - ORM mapping of the versions table
- init_engine(...)     - create the engine and session factory at startup
- get_session()        - context manager yielding a committed-or-rolled-back Session
- SqlVersionStore      - VersionStore over a Session
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Engine,
    Index,
    Integer,
    LargeBinary,
    String,
    UniqueConstraint,
    create_engine,
    func,
    select,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from version_trail.core.models import EntityRef, Version, VersionEvent, ensure_utc
from version_trail.observability import get_logger

logger = get_logger(__name__)

# Module-level engine and session factory, initialized by init_engine()
_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


class Base(DeclarativeBase):
    """Declarative base for version-trail tables."""


class VersionRecord(Base):
    """One row per recorded version.

    Rows are inserted once and never updated. (item_type, item_id,
    sequence_index) is unique, so two writers racing on the same entity fail
    with an IntegrityError instead of producing an ambiguous order.
    """

    __tablename__ = "versions"
    __table_args__ = (
        UniqueConstraint("item_type", "item_id", "sequence_index", name="uq_versions_item_sequence"),
        Index("ix_versions_item_created", "item_type", "item_id", "created_at", "sequence_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_type: Mapped[str] = mapped_column(String(255), nullable=False)
    item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    event: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="create | update | destroy",
    )
    snapshot: Mapped[bytes | None] = mapped_column(
        LargeBinary,
        nullable=True,
        comment="Encoded pre-event attribute map. NULL for create events.",
    )
    whodunnit: Mapped[str | None] = mapped_column(String(255), nullable=True)
    version_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    sequence_index: Mapped[int] = mapped_column(Integer, nullable=False)

    def to_version(self) -> Version:
        return Version(
            id=self.id,
            item_type=self.item_type,
            item_id=self.item_id,
            event=VersionEvent(self.event),
            snapshot=self.snapshot,
            whodunnit=self.whodunnit,
            metadata=dict(self.version_metadata or {}),
            created_at=self.created_at,
            sequence_index=self.sequence_index,
        )


def init_engine(database_url: str, echo: bool = False, create_tables: bool = True) -> Engine:
    """Initialize the module engine and session factory.

    Args:
        database_url: SQLAlchemy database URL.
        echo: Echo SQL statements.
        create_tables: Create the versions table if it does not exist.

    Returns:
        The created Engine.
    """
    global _engine, _session_factory  # noqa: PLW0603

    logger.info("Initializing version store engine", dialect=database_url.split(":", 1)[0])
    _engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False, autoflush=False)
    if create_tables:
        Base.metadata.create_all(_engine)
    return _engine


def close_engine() -> None:
    """Dispose the module engine."""
    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None:
        logger.info("Disposing version store engine")
        _engine.dispose()
        _engine = None
        _session_factory = None


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a Session that commits on success and rolls back on error.

    Raises:
        RuntimeError: If init_engine() has not been called yet.
    """
    if _session_factory is None:
        raise RuntimeError("Version store engine has not been initialized. Call init_engine() first.")

    with _session_factory() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


class SqlVersionStore:
    """VersionStore over a SQLAlchemy Session.

    Args:
        session: The caller's Session. The store flushes but never commits.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def append(self, ref: EntityRef, version: Version) -> Version:
        """Insert a version row and flush it into the current transaction.

        Args:
            ref: The owning entity.
            version: The unsaved version.

        Returns:
            The stored Version with id and sequence_index assigned.
        """
        stmt = select(func.max(VersionRecord.sequence_index)).where(
            VersionRecord.item_type == ref.item_type,
            VersionRecord.item_id == ref.item_id,
        )
        current_max = self._session.execute(stmt).scalar()
        next_index = 0 if current_max is None else current_max + 1

        record = VersionRecord(
            item_type=ref.item_type,
            item_id=ref.item_id,
            event=version.event.value,
            snapshot=version.snapshot,
            whodunnit=version.whodunnit,
            version_metadata=dict(version.metadata),
            created_at=ensure_utc(version.created_at),
            sequence_index=next_index,
        )
        self._session.add(record)
        self._session.flush()

        logger.debug(
            "Version row flushed",
            item_type=ref.item_type,
            item_id=ref.item_id,
            version_id=record.id,
            sequence_index=next_index,
        )
        return record.to_version()

    def list(self, ref: EntityRef) -> list[Version]:
        """Return the entity's versions ordered by created_at, then sequence_index."""
        stmt = (
            select(VersionRecord)
            .where(
                VersionRecord.item_type == ref.item_type,
                VersionRecord.item_id == ref.item_id,
            )
            .order_by(VersionRecord.created_at.asc(), VersionRecord.sequence_index.asc())
        )
        return [record.to_version() for record in self._session.execute(stmt).scalars()]

    def first_after(self, ref: EntityRef, timestamp: datetime) -> Version | None:
        stmt = (
            select(VersionRecord)
            .where(
                VersionRecord.item_type == ref.item_type,
                VersionRecord.item_id == ref.item_id,
                VersionRecord.created_at > ensure_utc(timestamp),
            )
            .order_by(VersionRecord.created_at.asc(), VersionRecord.sequence_index.asc())
            .limit(1)
        )
        record = self._session.execute(stmt).scalar_one_or_none()
        return record.to_version() if record is not None else None

    def last(self, ref: EntityRef) -> Version | None:
        stmt = (
            select(VersionRecord)
            .where(
                VersionRecord.item_type == ref.item_type,
                VersionRecord.item_id == ref.item_id,
            )
            .order_by(VersionRecord.created_at.desc(), VersionRecord.sequence_index.desc())
            .limit(1)
        )
        record = self._session.execute(stmt).scalar_one_or_none()
        return record.to_version() if record is not None else None

    def count(self, ref: EntityRef) -> int:
        stmt = select(func.count(VersionRecord.id)).where(
            VersionRecord.item_type == ref.item_type,
            VersionRecord.item_id == ref.item_id,
        )
        return int(self._session.execute(stmt).scalar_one())
