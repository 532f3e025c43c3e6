from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.common import UTCDateTime


class Driver(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    license: Optional[str] = None
    phone: Optional[str] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


class DriverCreate(BaseModel):
    name: str
    license: Optional[str] = None
    phone: Optional[str] = None


class DriverPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    license: Optional[str] = None
    phone: Optional[str] = None
