from typing import List

from fastapi import APIRouter, Depends, HTTPException

from schemas.driver import Driver, DriverCreate, DriverPatch
from storage.base import Registries
from storage.factory import get_registries

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.get("", response_model=List[Driver])
async def list_drivers(registries: Registries = Depends(get_registries)):
    return await registries.drivers.list()


@router.post("", response_model=Driver, status_code=201)
async def add_driver(req: DriverCreate, registries: Registries = Depends(get_registries)):
    return await registries.drivers.add(req.name, license=req.license, phone=req.phone)


@router.get("/{driver_id}", response_model=Driver)
async def get_driver(driver_id: str, registries: Registries = Depends(get_registries)):
    driver = await registries.drivers.get(driver_id)
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found.")
    return driver


@router.patch("/{driver_id}", response_model=Driver)
async def update_driver(
    driver_id: str,
    patch: DriverPatch,
    registries: Registries = Depends(get_registries),
):
    return await registries.drivers.update(driver_id, patch)


@router.delete("/{driver_id}", status_code=204)
async def delete_driver(driver_id: str, registries: Registries = Depends(get_registries)):
    await registries.drivers.remove(driver_id)
