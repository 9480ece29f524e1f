"""Key-value stores backing the usage counter.

``UsageStore`` is the capability the router depends on; the in-memory store
serves development and tests, the SQL store any SQLAlchemy URL (sqlite,
PostgreSQL).
"""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional, Protocol

from sqlalchemy import DateTime, String, Text, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)


class UsageStore(Protocol):
    """Protocol for usage storage. Implementations: InMemoryUsageStore, SqlUsageStore."""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str) -> None:
        ...


class InMemoryUsageStore:
    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value


class Base(DeclarativeBase):
    pass


class UsageEntry(Base):
    __tablename__ = "usage_kv"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


def _create_engine(url: str):
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        kwargs["poolclass"] = NullPool
    return create_engine(url, **kwargs)


class SqlUsageStore:
    """SQLAlchemy-backed key-value table ``usage_kv``."""

    def __init__(self, database_url: str) -> None:
        if not database_url:
            raise ValueError("database_url is required for SqlUsageStore")
        self.engine = _create_engine(database_url)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False)
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, key: str) -> Optional[str]:
        with self._session() as session:
            return session.scalar(select(UsageEntry.value).where(UsageEntry.key == key))

    def put(self, key: str, value: str) -> None:
        with self._session() as session:
            row = session.get(UsageEntry, key)
            if row is None:
                session.add(UsageEntry(key=key, value=value, updated_at=datetime.utcnow()))
            else:
                row.value = value
                row.updated_at = datetime.utcnow()


def usage_database_url() -> str:
    return (os.getenv("USAGE_DATABASE_URL") or os.getenv("DATABASE_URL") or "").strip()


def build_usage_store() -> UsageStore:
    url = usage_database_url()
    if url:
        try:
            return SqlUsageStore(url)
        except Exception:
            logger.warning(
                "usage_store_unavailable scheme=%s falling back to memory",
                url.split(":", 1)[0],
                exc_info=True,
            )
    return InMemoryUsageStore()
