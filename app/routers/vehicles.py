from typing import List

from fastapi import APIRouter, Depends, HTTPException

from schemas.vehicle import MileageUpdate, Vehicle, VehicleDetails, VehicleUpsert
from services.validators import BusinessRules
from storage.base import Registries
from storage.factory import get_registries

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get("", response_model=List[Vehicle])
async def list_vehicles(registries: Registries = Depends(get_registries)):
    return await registries.vehicles.list()


@router.get("/search", response_model=List[Vehicle])
async def search_vehicles(q: str = "", registries: Registries = Depends(get_registries)):
    return await registries.vehicles.search(q)


@router.post("", response_model=Vehicle)
async def upsert_vehicle(req: VehicleUpsert, registries: Registries = Depends(get_registries)):
    BusinessRules.validate_vehicle_fields(req.make, req.model, req.registration)
    return await registries.vehicles.upsert(req.registration, req.make, req.model, req.mileage)


@router.get("/{registration}", response_model=Vehicle)
async def get_vehicle(registration: str, registries: Registries = Depends(get_registries)):
    vehicle = await registries.vehicles.get(registration)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found.")
    return vehicle


@router.put("/{registration}", response_model=Vehicle)
async def update_vehicle(
    registration: str,
    req: VehicleDetails,
    registries: Registries = Depends(get_registries),
):
    BusinessRules.validate_vehicle_fields(req.make, req.model, registration)
    return await registries.vehicles.upsert(registration, req.make, req.model, req.mileage)


@router.patch("/{registration}/mileage", response_model=Vehicle)
async def set_vehicle_mileage(
    registration: str,
    req: MileageUpdate,
    registries: Registries = Depends(get_registries),
):
    vehicle = await registries.vehicles.set_mileage(registration, req.mileage)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found.")
    return vehicle


@router.delete("/{registration}", status_code=204)
async def delete_vehicle(registration: str, registries: Registries = Depends(get_registries)):
    await registries.vehicles.remove(registration)
