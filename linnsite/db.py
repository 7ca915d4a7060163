"""
Durable store for the visit counter and contact submissions.

Two implementations share the ``DbClient`` protocol: a SQLAlchemy-backed
client (SQLite file by default) and an in-memory one for development and
tests.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Protocol

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    create_engine,
    event,
    func,
    select,
    update,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from linnsite.exceptions import StoreError

logger = logging.getLogger(__name__)

COUNTER_ID = 1
SQLITE_BUSY_TIMEOUT = 30  # seconds


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite stores timestamps without an offset; they are always written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DbClient(Protocol):
    """Interface for database access."""

    def increment_visits(self) -> int:
        ...

    def get_visits(self) -> int:
        ...

    def append_contact(self, fields: "ContactFields") -> int:
        ...

    def get_contact(self, contact_id: int) -> Optional["ContactRecord"]:
        ...


@dataclass(frozen=True)
class ContactFields:
    """A validated, trimmed contact submission that has not been stored yet."""

    name: str
    email: str
    project_type: str
    message: str
    company: Optional[str] = None
    timeline: Optional[str] = None


@dataclass(frozen=True)
class ContactRecord:
    id: int
    name: str
    email: str
    project_type: str
    message: str
    company: Optional[str]
    timeline: Optional[str]
    created_at: datetime

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "company": self.company,
            "email": self.email,
            "project_type": self.project_type,
            "message": self.message,
            "timeline": self.timeline,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    visits: int = 0
    contacts: Dict[int, ContactRecord] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()
        self._last_contact_id = max(self.contacts, default=0)

    def increment_visits(self) -> int:
        with self._lock:
            self.visits += 1
            return self.visits

    def get_visits(self) -> int:
        with self._lock:
            return self.visits

    def append_contact(self, fields: ContactFields) -> int:
        with self._lock:
            self._last_contact_id += 1
            record = ContactRecord(
                id=self._last_contact_id,
                name=fields.name,
                email=fields.email,
                project_type=fields.project_type,
                message=fields.message,
                company=fields.company,
                timeline=fields.timeline,
                created_at=_utcnow(),
            )
            self.contacts[record.id] = record
            return record.id

    def get_contact(self, contact_id: int) -> Optional[ContactRecord]:
        with self._lock:
            return self.contacts.get(contact_id)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.visits = 0
            self.contacts.clear()
            self._last_contact_id = 0


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL; SQLite files
    get WAL journaling and a busy timeout so concurrent requests queue on the
    write lock instead of failing.

    Construction creates the schema and the counter row when missing and
    raises ``StoreError`` if the database cannot be opened.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("A database URL is required for SqlDbClient")
        self.database_url = database_url
        try:
            self.engine = _create_engine(database_url)
            self.Session = sessionmaker(
                bind=self.engine, class_=Session, expire_on_commit=False
            )
            Base.metadata.create_all(self.engine)
            self._ensure_counter()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError(f"Failed to open database {database_url}") from exc
        logger.info("Database opened at %s", self.engine.url)

    def _ensure_counter(self) -> None:
        with self.Session() as session:
            if session.get(ViewsRow, COUNTER_ID) is None:
                session.add(ViewsRow(id=COUNTER_ID, visits=0))
            session.commit()

    def increment_visits(self) -> int:
        try:
            with self.Session() as session:
                # The UPDATE takes the write lock, so the read-back below sees
                # exactly this increment and nothing interleaves before commit.
                result = session.execute(
                    update(ViewsRow)
                    .where(ViewsRow.id == COUNTER_ID)
                    .values(visits=ViewsRow.visits + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise StoreError("Visit counter row is missing")
                visits = session.execute(
                    select(ViewsRow.visits).where(ViewsRow.id == COUNTER_ID)
                ).scalar_one()
                session.commit()
                return visits
        except SQLAlchemyError as exc:
            raise StoreError("Failed to increment visit counter") from exc

    def get_visits(self) -> int:
        try:
            with self.Session() as session:
                visits = session.execute(
                    select(ViewsRow.visits).where(ViewsRow.id == COUNTER_ID)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to read visit counter") from exc
        if visits is None:
            raise StoreError("Visit counter row is missing")
        return visits

    def append_contact(self, fields: ContactFields) -> int:
        try:
            with self.Session() as session:
                row = ContactRow(
                    name=fields.name,
                    company=fields.company,
                    email=fields.email,
                    project_type=fields.project_type,
                    message=fields.message,
                    timeline=fields.timeline,
                )
                session.add(row)
                session.commit()
                return row.id
        except SQLAlchemyError as exc:
            raise StoreError("Failed to store contact submission") from exc

    def get_contact(self, contact_id: int) -> Optional[ContactRecord]:
        try:
            with self.Session() as session:
                row = session.get(ContactRow, contact_id)
                if not row:
                    return None
                return ContactRecord(
                    id=row.id,
                    name=row.name,
                    email=row.email,
                    project_type=row.project_type,
                    message=row.message,
                    company=row.company,
                    timeline=row.timeline,
                    created_at=_as_utc(row.created_at),
                )
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read contact {contact_id}") from exc

    def close(self) -> None:
        self.engine.dispose()


def _create_engine(database_url: str):
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True, pool_recycle=1800)

    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        url,
        connect_args={"timeout": SQLITE_BUSY_TIMEOUT, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=FULL")
        cursor.close()

    return engine


Base = declarative_base()


class ViewsRow(Base):
    __tablename__ = "views"
    __table_args__ = (CheckConstraint("id = 1", name="views_singleton"),)

    id = Column(Integer, primary_key=True, autoincrement=False)
    visits = Column(Integer, nullable=False, default=0)


class ContactRow(Base):
    __tablename__ = "contacts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    company = Column(String, nullable=True)
    email = Column(String, nullable=False)
    project_type = Column(String, nullable=False)
    message = Column(String, nullable=False)
    timeline = Column(String, nullable=True)
    created_at = Column(
        DateTime,
        nullable=False,
        default=_utcnow,
        server_default=func.current_timestamp(),
    )
