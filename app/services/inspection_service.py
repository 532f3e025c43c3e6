import logging
import uuid
from typing import List, Optional

from auth.auth_handler import UserContext
from core.metrics import track_performance
from core.prometheus_metrics import prometheus_collector
from schemas.checklist import ChecklistDefinition, ChecklistTree
from schemas.common import utc_now
from schemas.inspection import (
    InspectionForm,
    InspectionRecord,
    InspectionType,
    SavedInspection,
    VehicleSnapshot,
)
from services.checklist import align_to_definition, build_initial
from services.exceptions import ExportError, NotFoundError, ValidationError
from services.pdf_export import ExportedDocument, export_inspection
from services.validators import BusinessRules
from storage.base import Registries

logger = logging.getLogger(__name__)


class InspectionService:
    """
    Workflow behind the inspection form and report list.

    Turns a submitted form into an immutable InspectionRecord, keeps the vehicle
    registry's last known mileage current, and hands records to the document
    exporter. Persistence goes through whichever registries the active storage
    mode provides; the caller identity is passed in explicitly.
    """

    def __init__(self, registries: Registries, definition: ChecklistDefinition, user: UserContext):
        self.registries = registries
        self.definition = definition
        self.user = user

    def new_checklist(self) -> ChecklistTree:
        return build_initial(self.definition)

    def _resolve_type(self, value: str) -> InspectionType:
        if value not in self.definition.inspection_types:
            raise ValidationError(f"Unknown inspection type: {value!r}.", "inspection_type")
        try:
            return InspectionType(value)
        except ValueError as e:
            raise ValidationError(f"Unsupported inspection type: {value!r}.", "inspection_type") from e

    async def _resolve_driver(self, form: InspectionForm) -> tuple[Optional[str], Optional[str]]:
        """Snapshot the selected driver's name so later edits don't rewrite history."""
        if not form.driver_id:
            return None, (form.driver_name or "").strip() or None

        driver = await self.registries.drivers.get(form.driver_id)
        if not driver:
            raise NotFoundError(f"Driver {form.driver_id} not found.", "driver_id")
        return driver.id, driver.name

    async def build_record(self, form: InspectionForm) -> InspectionRecord:
        """Validate a submitted form and turn it into an unsynced record (nothing is persisted)."""
        vehicle = form.vehicle
        BusinessRules.validate_vehicle_fields(vehicle.make, vehicle.model, vehicle.registration)
        inspection_type = self._resolve_type(form.inspection_type)

        if form.checklist is None:
            checklist = self.new_checklist()
        else:
            checklist = align_to_definition(form.checklist, self.definition)

        driver_id, driver_name = await self._resolve_driver(form)

        return InspectionRecord(
            id=str(uuid.uuid4()),
            created_at=utc_now(),
            inspection_type=inspection_type,
            vehicle=VehicleSnapshot(
                registration=vehicle.registration,
                make=vehicle.make.strip(),
                model=vehicle.model.strip(),
                mileage=vehicle.mileage,
            ),
            checklist=checklist,
            general_comments=(form.general_comments or "").strip() or None,
            inspector_name=self.user.display_name or None,
            driver_id=driver_id,
            driver_name=driver_name,
            signature_data_url=form.signature_data_url or None,
            synced=False,
        )

    @track_performance(service_name="InspectionService")
    async def save(self, form: InspectionForm) -> SavedInspection:
        """
        Persist a submitted inspection.

        The record is stored first and the vehicle registry entry is upserted
        with the entered mileage only once that succeeded. The returned
        ``service_due`` flag reports whether a full service interval was
        covered since the previously recorded mileage.
        """
        record = await self.build_record(form)
        registration = record.vehicle.registration

        previous = await self.registries.vehicles.get(registration)
        service_due = BusinessRules.is_service_due(
            previous.mileage if previous else 0, record.vehicle.mileage
        )

        saved = await self.registries.inspections.save(record)
        await self.registries.vehicles.upsert(
            registration,
            record.vehicle.make,
            record.vehicle.model,
            record.vehicle.mileage,
        )
        prometheus_collector.record_inspection_saved(self.registries.mode)

        logger.info(
            "Inspection saved",
            extra={
                "inspection_id": saved.id,
                "registration": registration,
                "storage_mode": self.registries.mode,
                "service_due": service_due,
            },
        )
        return SavedInspection(record=saved, service_due=service_due)

    async def list(self) -> List[InspectionRecord]:
        return await self.registries.inspections.list()

    async def get(self, inspection_id: str) -> InspectionRecord:
        record = await self.registries.inspections.get(inspection_id)
        if not record:
            raise NotFoundError(f"Inspection {inspection_id} not found.", "id")
        return record

    async def delete(self, inspection_id: str) -> None:
        await self.registries.inspections.remove(inspection_id)
        logger.info("Inspection deleted", extra={"inspection_id": inspection_id})

    async def mark_synced(self, inspection_id: str) -> InspectionRecord:
        record = await self.registries.inspections.mark_synced(inspection_id)
        if not record:
            raise NotFoundError(f"Inspection {inspection_id} not found.", "id")
        return record

    def _export(self, record: InspectionRecord) -> ExportedDocument:
        try:
            document = export_inspection(record)
        except ExportError:
            prometheus_collector.record_export("error")
            raise
        prometheus_collector.record_export("success")
        return document

    @track_performance(service_name="InspectionService")
    async def export(self, inspection_id: str) -> ExportedDocument:
        return self._export(await self.get(inspection_id))

    @track_performance(service_name="InspectionService")
    async def export_form(self, form: InspectionForm) -> ExportedDocument:
        """Export straight from the form without saving the inspection."""
        return self._export(await self.build_record(form))

