from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.db import create_tables, engine
from core.environment import STORAGE_MODE_CLOUD, get_storage_mode
from core.logging import setup_logging
from exceptions import domain_exception_handler
from routers import checklist, drivers, health, inspections, metrics, vehicles
from services.checklist import get_active_definition
from services.exceptions import InspectionDomainError
from storage.factory import close_local_store, get_local_store

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    mode = get_storage_mode()
    # Fail fast on a broken checklist definition
    get_active_definition()

    if mode == STORAGE_MODE_CLOUD:
        await create_tables()
        logger.info("Cloud storage ready")
        try:
            yield
        finally:
            await engine.dispose()
    else:
        await get_local_store()
        try:
            yield
        finally:
            # teardown on shutdown
            await close_local_store()


app = FastAPI(title="Vehicle Inspection API", lifespan=lifespan)

# Register exception handler
app.add_exception_handler(InspectionDomainError, domain_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],   # Allows POST, GET, OPTIONS, etc
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(checklist.router)
app.include_router(vehicles.router)
app.include_router(drivers.router)
app.include_router(inspections.router)
app.include_router(metrics.router)


@app.get("/", tags=["root"])
def hello():
    return {"message": "Vehicle Inspection API"}
