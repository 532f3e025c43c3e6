from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.checklist import ChecklistTree
from schemas.common import UTCDateTime, normalize_registration


class InspectionType(str, Enum):
    INITIAL = "Initial"
    SECOND = "Second"
    FINAL = "Final"


class VehicleSnapshot(BaseModel):
    """Vehicle fields as entered on the form at save time."""
    model_config = ConfigDict(frozen=True)

    registration: str
    make: str
    model: str
    mileage: int = Field(0, ge=0)

    @field_validator('registration')
    def normalize(cls, v):
        return normalize_registration(v)


class VehicleForm(BaseModel):
    registration: str = ""
    make: str = ""
    model: str = ""
    mileage: int = Field(0, ge=0)

    @field_validator('mileage', mode='before')
    def blank_mileage(cls, v):
        # An untouched numeric input arrives as ""
        return 0 if v in (None, "") else v


class InspectionForm(BaseModel):
    """Payload submitted by the inspection form screen."""
    inspection_type: str = InspectionType.INITIAL.value
    vehicle: VehicleForm
    checklist: Optional[ChecklistTree] = None
    general_comments: Optional[str] = None
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    signature_data_url: Optional[str] = None


class InspectionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: UTCDateTime
    inspection_type: InspectionType
    vehicle: VehicleSnapshot
    checklist: ChecklistTree
    general_comments: Optional[str] = None
    inspector_name: Optional[str] = None
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    signature_data_url: Optional[str] = None
    synced: bool = False


class SavedInspection(BaseModel):
    record: InspectionRecord
    service_due: bool = False
