from typing import AsyncGenerator, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.auth_handler import UserContext, get_user_context
from core.db import AsyncSessionLocal
from core.environment import (
    STORAGE_MODE_CLOUD,
    STORAGE_MODE_LOCAL,
    get_local_store_url,
    get_storage_mode,
)
from storage.base import Registries
from storage.cloud import CloudDriverRegistry, CloudInspectionStore, CloudVehicleRegistry
from storage.kv import KeyValueStore
from storage.local import LocalDriverRegistry, LocalInspectionStore, LocalVehicleRegistry

_local_store: Optional[KeyValueStore] = None


def local_registries(store: KeyValueStore) -> Registries:
    return Registries(
        mode=STORAGE_MODE_LOCAL,
        vehicles=LocalVehicleRegistry(store),
        drivers=LocalDriverRegistry(store),
        inspections=LocalInspectionStore(store),
    )


def cloud_registries(db: AsyncSession, user: UserContext) -> Registries:
    return Registries(
        mode=STORAGE_MODE_CLOUD,
        vehicles=CloudVehicleRegistry(db, user),
        drivers=CloudDriverRegistry(db, user),
        inspections=CloudInspectionStore(db, user),
    )


async def get_local_store() -> KeyValueStore:
    """Process wide local store, created and initialized on first use."""
    global _local_store
    if _local_store is None:
        store = KeyValueStore.from_url(get_local_store_url())
        await store.init()
        _local_store = store
    return _local_store


async def close_local_store() -> None:
    global _local_store
    if _local_store is not None:
        await _local_store.dispose()
        _local_store = None


async def get_registries(
    user: UserContext = Depends(get_user_context),
) -> AsyncGenerator[Registries, None]:
    """FastAPI dependency yielding the registries of the configured STORAGE_MODE."""
    if get_storage_mode() == STORAGE_MODE_CLOUD:
        async with AsyncSessionLocal() as session:
            yield cloud_registries(session, user)
    else:
        yield local_registries(await get_local_store())
