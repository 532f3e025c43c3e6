"""
On-device key-value store.

Named partitions ("drivers", "vehicles", "inspections") hold JSON documents keyed
by opaque string ids, persisted in a single SQLite table through SQLAlchemy's
async engine (aiosqlite driver).
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, JSON, MetaData, String, Table, delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from services.exceptions import StorageError

logger = logging.getLogger(__name__)

PARTITIONS = ("drivers", "vehicles", "inspections")

kv_metadata = MetaData()

kv_table = Table(
    "kv_store",
    kv_metadata,
    Column("partition", String, primary_key=True),
    Column("key", String, primary_key=True),
    Column("value", JSON, nullable=False),
)


class Partition:
    """get/set/iterate/remove over one named partition."""

    def __init__(self, engine: AsyncEngine, name: str):
        self.engine = engine
        self.name = name

    async def get_item(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(
                    select(kv_table.c.value).where(
                        kv_table.c.partition == self.name,
                        kv_table.c.key == key,
                    )
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {self.name}/{key}: {e}") from e

    async def set_item(self, key: str, value: Dict[str, Any]) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.execute(
                    delete(kv_table).where(
                        kv_table.c.partition == self.name,
                        kv_table.c.key == key,
                    )
                )
                await conn.execute(
                    insert(kv_table).values(partition=self.name, key=key, value=value)
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {self.name}/{key}: {e}") from e

    async def iterate(self) -> List[Dict[str, Any]]:
        """All values of the partition, in key order."""
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(
                    select(kv_table.c.value)
                    .where(kv_table.c.partition == self.name)
                    .order_by(kv_table.c.key)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read partition {self.name}: {e}") from e

    async def remove_item(self, key: str) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.execute(
                    delete(kv_table).where(
                        kv_table.c.partition == self.name,
                        kv_table.c.key == key,
                    )
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete {self.name}/{key}: {e}") from e


class KeyValueStore:

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @classmethod
    def from_url(cls, url: str) -> "KeyValueStore":
        return cls(create_async_engine(url, echo=False))

    async def init(self) -> None:
        """Create the backing table if needed."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(kv_metadata.create_all)
        except SQLAlchemyError as e:
            raise StorageError(f"Local store unavailable: {e}") from e
        logger.info("Local key-value store ready", extra={"url": str(self.engine.url)})

    def partition(self, name: str) -> Partition:
        if name not in PARTITIONS:
            raise ValueError(f"Unknown partition: {name!r}")
        return Partition(self.engine, name)

    async def dispose(self) -> None:
        await self.engine.dispose()
