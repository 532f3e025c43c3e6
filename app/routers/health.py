from fastapi import APIRouter

from core.environment import get_storage_mode

router = APIRouter(tags=["health"])

@router.get("/health")
async def health():
    return {"status": "ok", "storage_mode": get_storage_mode()}
