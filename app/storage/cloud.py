import logging
import uuid
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.auth_handler import UserContext
from models.driver import Driver as DriverModel
from models.inspection import Inspection as InspectionModel
from models.vehicle import Vehicle as VehicleModel
from schemas.common import normalize_registration, utc_now
from schemas.driver import Driver, DriverPatch
from schemas.inspection import InspectionRecord
from schemas.vehicle import Vehicle
from services.exceptions import NotFoundError, StorageError
from services.validators import BusinessRules
from storage.base import DriverRegistry, InspectionStore, VehicleRegistry, sort_drivers

logger = logging.getLogger(__name__)


class _CloudRepository:
    """Shared session handling: every mutating call is its own transaction."""

    def __init__(self, db: AsyncSession, user: UserContext):
        self.db = db
        self.user = user

    async def _commit(self, action: str):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageError(f"Failed to {action}: {e}") from e

    async def _fail(self, action: str, e: SQLAlchemyError):
        await self.db.rollback()
        raise StorageError(f"Failed to {action}: {e}") from e


class CloudVehicleRegistry(_CloudRepository, VehicleRegistry):

    async def _fetch(self, registration: str) -> Optional[VehicleModel]:
        stmt = select(VehicleModel).where(
            VehicleModel.user_id == self.user.user_id,
            VehicleModel.registration == normalize_registration(registration),
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def upsert(self, registration: str, make: str, model: str, mileage: int) -> Vehicle:
        BusinessRules.validate_mileage(mileage)
        key = normalize_registration(registration)
        now = utc_now()
        try:
            row = await self._fetch(key)
            if row:
                row.make = make
                row.model = model
                row.mileage = mileage
                row.updated_at = now
            else:
                row = VehicleModel(
                    user_id=self.user.user_id,
                    registration=key,
                    make=make,
                    model=model,
                    mileage=mileage,
                    created_at=now,
                    updated_at=now,
                )
                self.db.add(row)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail(f"upsert vehicle {key}", e)

        await self._commit(f"upsert vehicle {key}")
        return Vehicle.model_validate(row)

    async def get(self, registration: str) -> Optional[Vehicle]:
        try:
            row = await self._fetch(registration)
        except SQLAlchemyError as e:
            await self._fail("read vehicle", e)
        return Vehicle.model_validate(row) if row else None

    async def list(self) -> List[Vehicle]:
        stmt = (
            select(VehicleModel)
            .where(VehicleModel.user_id == self.user.user_id)
            .order_by(VehicleModel.registration)
        )
        try:
            rows = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            await self._fail("list vehicles", e)
        return [Vehicle.model_validate(r) for r in rows]

    async def set_mileage(self, registration: str, mileage: int) -> Optional[Vehicle]:
        BusinessRules.validate_mileage(mileage)
        try:
            row = await self._fetch(registration)
            if not row:
                return None
            row.mileage = mileage
            row.updated_at = utc_now()
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail("update mileage", e)

        await self._commit("update mileage")
        return Vehicle.model_validate(row)

    async def remove(self, registration: str) -> None:
        stmt = delete(VehicleModel).where(
            VehicleModel.user_id == self.user.user_id,
            VehicleModel.registration == normalize_registration(registration),
        )
        try:
            await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self._fail("delete vehicle", e)
        await self._commit("delete vehicle")


class CloudDriverRegistry(_CloudRepository, DriverRegistry):

    async def _fetch(self, driver_id: str) -> Optional[DriverModel]:
        stmt = select(DriverModel).where(
            DriverModel.user_id == self.user.user_id,
            DriverModel.id == driver_id,
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def add(self, name: str, license: Optional[str] = None, phone: Optional[str] = None) -> Driver:
        name = BusinessRules.validate_driver_name(name)
        now = utc_now()
        row = DriverModel(
            id=str(uuid.uuid4()),
            user_id=self.user.user_id,
            name=name,
            license=license,
            phone=phone,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail("add driver", e)

        await self._commit("add driver")
        return Driver.model_validate(row)

    async def list(self) -> List[Driver]:
        stmt = select(DriverModel).where(DriverModel.user_id == self.user.user_id)
        try:
            rows = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            await self._fail("list drivers", e)
        # Collation is applied in Python so both backends order names the same way
        return sort_drivers([Driver.model_validate(r) for r in rows])

    async def get(self, driver_id: str) -> Optional[Driver]:
        try:
            row = await self._fetch(driver_id)
        except SQLAlchemyError as e:
            await self._fail("read driver", e)
        return Driver.model_validate(row) if row else None

    async def update(self, driver_id: str, patch: DriverPatch) -> Driver:
        changes = patch.model_dump(exclude_unset=True)
        if "name" in changes:
            changes["name"] = BusinessRules.validate_driver_name(changes["name"])

        try:
            row = await self._fetch(driver_id)
            if not row:
                raise NotFoundError(f"Driver {driver_id} not found.", "id")
            for field, value in changes.items():
                setattr(row, field, value)
            row.updated_at = utc_now()
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail("update driver", e)

        await self._commit("update driver")
        return Driver.model_validate(row)

    async def remove(self, driver_id: str) -> None:
        stmt = delete(DriverModel).where(
            DriverModel.user_id == self.user.user_id,
            DriverModel.id == driver_id,
        )
        try:
            await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self._fail("delete driver", e)
        await self._commit("delete driver")


class CloudInspectionStore(_CloudRepository, InspectionStore):
    """Rows are written with synced=true: a successful commit is the durability confirmation."""

    async def _fetch(self, inspection_id: str) -> Optional[InspectionModel]:
        stmt = select(InspectionModel).where(
            InspectionModel.user_id == self.user.user_id,
            InspectionModel.id == inspection_id,
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    def _model_to_record(self, row: InspectionModel) -> InspectionRecord:
        return InspectionRecord(
            id=row.id,
            created_at=row.created_at,
            inspection_type=row.inspection_type,
            vehicle={
                "registration": row.vehicle_registration,
                "make": row.vehicle_make,
                "model": row.vehicle_model,
                "mileage": row.vehicle_mileage,
            },
            checklist=row.checklist or {},
            general_comments=row.general_comments,
            inspector_name=row.inspector_name,
            driver_id=row.driver_id,
            driver_name=row.driver_name,
            signature_data_url=row.signature_data_url,
            synced=row.synced,
        )

    async def save(self, record: InspectionRecord) -> InspectionRecord:
        payload = record.model_dump(mode="json")
        row = InspectionModel(
            id=record.id,
            user_id=self.user.user_id,
            checklist=payload["checklist"],
            inspection_type=record.inspection_type.value,
            vehicle_registration=record.vehicle.registration,
            vehicle_make=record.vehicle.make,
            vehicle_model=record.vehicle.model,
            vehicle_mileage=record.vehicle.mileage,
            driver_id=record.driver_id,
            driver_name=record.driver_name,
            general_comments=record.general_comments,
            inspector_name=record.inspector_name,
            signature_data_url=record.signature_data_url,
            synced=True,
            created_at=record.created_at,
            updated_at=utc_now(),
        )
        self.db.add(row)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail(f"save inspection {record.id}", e)

        await self._commit(f"save inspection {record.id}")
        logger.info("Inspection persisted to cloud backend", extra={"inspection_id": record.id})
        return record.model_copy(update={"synced": True})

    async def get(self, inspection_id: str) -> Optional[InspectionRecord]:
        try:
            row = await self._fetch(inspection_id)
        except SQLAlchemyError as e:
            await self._fail("read inspection", e)
        return self._model_to_record(row) if row else None

    async def list(self) -> List[InspectionRecord]:
        stmt = (
            select(InspectionModel)
            .where(InspectionModel.user_id == self.user.user_id)
            .order_by(InspectionModel.created_at.desc())
        )
        try:
            rows = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            await self._fail("list inspections", e)
        return [self._model_to_record(r) for r in rows]

    async def remove(self, inspection_id: str) -> None:
        stmt = delete(InspectionModel).where(
            InspectionModel.user_id == self.user.user_id,
            InspectionModel.id == inspection_id,
        )
        try:
            await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self._fail("delete inspection", e)
        await self._commit("delete inspection")

    async def mark_synced(self, inspection_id: str) -> Optional[InspectionRecord]:
        try:
            row = await self._fetch(inspection_id)
            if not row:
                return None
            if not row.synced:
                row.synced = True
                row.updated_at = utc_now()
                await self.db.flush()
        except SQLAlchemyError as e:
            await self._fail("mark inspection synced", e)

        await self._commit("mark inspection synced")
        return self._model_to_record(row)
