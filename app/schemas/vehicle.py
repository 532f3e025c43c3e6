from pydantic import BaseModel, ConfigDict, Field

from schemas.common import UTCDateTime


class Vehicle(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    registration: str
    make: str
    model: str
    mileage: int = Field(0, ge=0)
    created_at: UTCDateTime
    updated_at: UTCDateTime


class VehicleUpsert(BaseModel):
    registration: str = Field(..., description="Registration plate, normalized to uppercase")
    make: str
    model: str
    mileage: int = Field(0, ge=0, description="Last known odometer reading")


class VehicleDetails(BaseModel):
    make: str
    model: str
    mileage: int = Field(0, ge=0)


class MileageUpdate(BaseModel):
    mileage: int = Field(..., ge=0)
