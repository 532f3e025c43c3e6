import logging
import uuid
from typing import List, Optional

from schemas.common import normalize_registration, utc_now
from schemas.driver import Driver, DriverPatch
from schemas.inspection import InspectionRecord
from schemas.vehicle import Vehicle
from services.exceptions import NotFoundError
from services.validators import BusinessRules
from storage.base import DriverRegistry, InspectionStore, VehicleRegistry, sort_drivers
from storage.kv import KeyValueStore

logger = logging.getLogger(__name__)


class LocalVehicleRegistry(VehicleRegistry):
    def __init__(self, store: KeyValueStore):
        self.partition = store.partition("vehicles")

    async def upsert(self, registration: str, make: str, model: str, mileage: int) -> Vehicle:
        BusinessRules.validate_mileage(mileage)
        key = normalize_registration(registration)
        existing = await self.get(key)
        now = utc_now()
        vehicle = Vehicle(
            registration=key,
            make=make,
            model=model,
            mileage=mileage,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        await self.partition.set_item(key, vehicle.model_dump(mode="json"))
        return vehicle

    async def get(self, registration: str) -> Optional[Vehicle]:
        value = await self.partition.get_item(normalize_registration(registration))
        return Vehicle.model_validate(value) if value else None

    async def list(self) -> List[Vehicle]:
        vehicles = [Vehicle.model_validate(v) for v in await self.partition.iterate()]
        return sorted(vehicles, key=lambda v: v.registration)

    async def set_mileage(self, registration: str, mileage: int) -> Optional[Vehicle]:
        BusinessRules.validate_mileage(mileage)
        vehicle = await self.get(registration)
        if not vehicle:
            return None
        updated = vehicle.model_copy(update={"mileage": mileage, "updated_at": utc_now()})
        await self.partition.set_item(updated.registration, updated.model_dump(mode="json"))
        return updated

    async def remove(self, registration: str) -> None:
        await self.partition.remove_item(normalize_registration(registration))


class LocalDriverRegistry(DriverRegistry):
    def __init__(self, store: KeyValueStore):
        self.partition = store.partition("drivers")

    async def add(self, name: str, license: Optional[str] = None, phone: Optional[str] = None) -> Driver:
        name = BusinessRules.validate_driver_name(name)
        now = utc_now()
        driver = Driver(
            id=str(uuid.uuid4()),
            name=name,
            license=license,
            phone=phone,
            created_at=now,
            updated_at=now,
        )
        await self.partition.set_item(driver.id, driver.model_dump(mode="json"))
        return driver

    async def list(self) -> List[Driver]:
        return sort_drivers([Driver.model_validate(v) for v in await self.partition.iterate()])

    async def get(self, driver_id: str) -> Optional[Driver]:
        value = await self.partition.get_item(driver_id)
        return Driver.model_validate(value) if value else None

    async def update(self, driver_id: str, patch: DriverPatch) -> Driver:
        driver = await self.get(driver_id)
        if not driver:
            raise NotFoundError(f"Driver {driver_id} not found.", "id")

        changes = patch.model_dump(exclude_unset=True)
        if "name" in changes:
            changes["name"] = BusinessRules.validate_driver_name(changes["name"])
        changes["updated_at"] = utc_now()

        updated = driver.model_copy(update=changes)
        await self.partition.set_item(driver_id, updated.model_dump(mode="json"))
        return updated

    async def remove(self, driver_id: str) -> None:
        await self.partition.remove_item(driver_id)


class LocalInspectionStore(InspectionStore):
    """Records saved on the device stay unsynced until a backend confirms them."""

    def __init__(self, store: KeyValueStore):
        self.partition = store.partition("inspections")

    async def save(self, record: InspectionRecord) -> InspectionRecord:
        await self.partition.set_item(record.id, record.model_dump(mode="json"))
        logger.info("Inspection stored locally", extra={"inspection_id": record.id})
        return record

    async def get(self, inspection_id: str) -> Optional[InspectionRecord]:
        value = await self.partition.get_item(inspection_id)
        return InspectionRecord.model_validate(value) if value else None

    async def list(self) -> List[InspectionRecord]:
        records = [InspectionRecord.model_validate(v) for v in await self.partition.iterate()]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def remove(self, inspection_id: str) -> None:
        await self.partition.remove_item(inspection_id)

    async def mark_synced(self, inspection_id: str) -> Optional[InspectionRecord]:
        record = await self.get(inspection_id)
        if not record:
            return None
        if record.synced:
            return record
        synced = record.model_copy(update={"synced": True})
        await self.partition.set_item(inspection_id, synced.model_dump(mode="json"))
        return synced
