"""
Registry interfaces shared by the cloud (relational, per-user) and local
(on-device key-value) persistence backends.

Every operation is a coroutine and an independent request against the backend:
there is no client side locking, retry or conflict detection, so the last write
wins. Backend failures surface as ``StorageError``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from schemas.common import normalize_registration
from schemas.driver import Driver, DriverPatch
from schemas.inspection import InspectionRecord
from schemas.vehicle import Vehicle


class VehicleRegistry(ABC):
    """Vehicles keyed by normalized registration plate."""

    @abstractmethod
    async def upsert(self, registration: str, make: str, model: str, mileage: int) -> Vehicle:
        """Create the vehicle or overwrite make/model/mileage, keeping created_at."""

    @abstractmethod
    async def get(self, registration: str) -> Optional[Vehicle]:
        ...

    @abstractmethod
    async def list(self) -> List[Vehicle]:
        """All vehicles ordered by registration ascending."""

    async def search(self, query: str) -> List[Vehicle]:
        """Vehicles whose registration contains the normalized query."""
        needle = normalize_registration(query)
        vehicles = await self.list()
        if not needle:
            return vehicles
        return [v for v in vehicles if needle in v.registration]

    @abstractmethod
    async def set_mileage(self, registration: str, mileage: int) -> Optional[Vehicle]:
        """Update the last known mileage; None when the vehicle is unknown."""

    @abstractmethod
    async def remove(self, registration: str) -> None:
        """Delete the vehicle; unknown registrations are ignored."""


class DriverRegistry(ABC):

    @abstractmethod
    async def add(self, name: str, license: Optional[str] = None, phone: Optional[str] = None) -> Driver:
        ...

    @abstractmethod
    async def list(self) -> List[Driver]:
        """All drivers ordered by name."""

    @abstractmethod
    async def get(self, driver_id: str) -> Optional[Driver]:
        ...

    @abstractmethod
    async def update(self, driver_id: str, patch: DriverPatch) -> Driver:
        ...

    @abstractmethod
    async def remove(self, driver_id: str) -> None:
        ...


class InspectionStore(ABC):

    @abstractmethod
    async def save(self, record: InspectionRecord) -> InspectionRecord:
        ...

    @abstractmethod
    async def get(self, inspection_id: str) -> Optional[InspectionRecord]:
        ...

    @abstractmethod
    async def list(self) -> List[InspectionRecord]:
        """All records, newest first."""

    @abstractmethod
    async def remove(self, inspection_id: str) -> None:
        ...

    @abstractmethod
    async def mark_synced(self, inspection_id: str) -> Optional[InspectionRecord]:
        """Flip synced to true (never back); None when the record is unknown."""


@dataclass
class Registries:
    """The capability set selected by STORAGE_MODE."""
    mode: str
    vehicles: VehicleRegistry
    drivers: DriverRegistry
    inspections: InspectionStore


def sort_drivers(drivers: List[Driver]) -> List[Driver]:
    return sorted(drivers, key=lambda d: (d.name.casefold(), d.name, d.id))
