import os
import sys
import asyncio

# Needed to import core/storage when run as a script
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from auth.auth_handler import UserContext
from core.db import AsyncSessionLocal, create_tables
from core.environment import STORAGE_MODE_CLOUD, get_storage_mode
from storage.base import Registries
from storage.factory import close_local_store, cloud_registries, get_local_store, local_registries

VEHICLES = [
    ("AB12 CDE", "Ford", "Transit", 48210),
    ("KX19 LMN", "Mercedes-Benz", "Sprinter", 91544),
    ("YR70 PQS", "Toyota", "Hilux", 23890),
]

DRIVERS = [
    ("Sam Patel", "PATEL801234SP9AB", "07700 900123"),
    ("Alex Morgan", None, "07700 900456"),
]


async def seed_registries(registries: Registries):
    for registration, make, model, mileage in VEHICLES:
        await registries.vehicles.upsert(registration, make, model, mileage)

    existing = {d.name for d in await registries.drivers.list()}
    for name, license, phone in DRIVERS:
        if name not in existing:
            await registries.drivers.add(name, license=license, phone=phone)


async def seed():
    if get_storage_mode() == STORAGE_MODE_CLOUD:
        user = UserContext(user_id=os.getenv("SEED_USER_ID", "seed-user"))
        await create_tables()
        async with AsyncSessionLocal() as db:
            await seed_registries(cloud_registries(db, user))
    else:
        store = await get_local_store()
        try:
            await seed_registries(local_registries(store))
        finally:
            await close_local_store()

    print(f"Seed data inserted ({get_storage_mode()} mode)")

if __name__ == "__main__":
    asyncio.run(seed())
