"""Durable key -> JSON document stores.

Each store is a flat mapping scoped by a namespace and carries a single
top-level version key. Writers save whole documents; the last write wins.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol

from sqlalchemy import JSON, DateTime, String, delete, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.db.base import Base

logger = get_logger(__name__)

VERSION_KEY = "__version__"
SNAPSHOT_VERSION = 1


class KeyValueDocument(Base):
    """One JSON document per (namespace, key)."""

    __tablename__ = "kv_documents"

    namespace: Mapped[str] = mapped_column(String(64), primary_key=True)
    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    document: Mapped[Any] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<KeyValueDocument {self.namespace}:{self.key}>"


class KeyValueStore(Protocol):
    namespace: str

    async def load(self, key: str) -> Optional[Any]: ...

    async def save(self, key: str, document: Any) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self) -> list[str]: ...


async def ensure_version(store: KeyValueStore) -> bool:
    """Stamp an empty store with the current version.

    Returns False when the store holds a different version than this code
    understands; callers then start from empty collections.
    """
    version = await store.load(VERSION_KEY)
    if version is None:
        await store.save(VERSION_KEY, SNAPSHOT_VERSION)
        return True
    if version != SNAPSHOT_VERSION:
        logger.warning(
            "Snapshot store %s has version %s, expected %s",
            store.namespace,
            version,
            SNAPSHOT_VERSION,
        )
        return False
    return True


class MemoryKeyValueStore:
    """Dict-backed store for tests and ephemeral engines."""

    def __init__(self, namespace: str = "merch"):
        self.namespace = namespace
        self._documents: dict[str, Any] = {}
        self.write_count = 0

    async def load(self, key: str) -> Optional[Any]:
        return self._documents.get(key)

    async def save(self, key: str, document: Any) -> None:
        self._documents[key] = document
        self.write_count += 1

    async def delete(self, key: str) -> None:
        self._documents.pop(key, None)

    async def keys(self) -> list[str]:
        return sorted(self._documents)


class SqlKeyValueStore:
    """Store backed by the ``kv_documents`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        namespace: str = "merch",
    ):
        self.namespace = namespace
        self._session_factory = session_factory

    async def load(self, key: str) -> Optional[Any]:
        async with self._session_factory() as db:
            row = await db.get(KeyValueDocument, (self.namespace, key))
            return row.document if row else None

    async def save(self, key: str, document: Any) -> None:
        async with self._session_factory() as db:
            row = await db.get(KeyValueDocument, (self.namespace, key))
            if row is None:
                db.add(
                    KeyValueDocument(
                        namespace=self.namespace, key=key, document=document
                    )
                )
            else:
                row.document = document
                row.updated_at = utc_now()
            await db.commit()

    async def delete(self, key: str) -> None:
        async with self._session_factory() as db:
            await db.execute(
                delete(KeyValueDocument).where(
                    KeyValueDocument.namespace == self.namespace,
                    KeyValueDocument.key == key,
                )
            )
            await db.commit()

    async def keys(self) -> list[str]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(KeyValueDocument.key)
                .where(KeyValueDocument.namespace == self.namespace)
                .order_by(KeyValueDocument.key)
            )
            return list(result.scalars().all())


async def create_kv_schema(engine: AsyncEngine) -> None:
    """Create the kv_documents table directly (SQLite dev databases and tests).

    Server databases get the table from the Alembic migration instead.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
