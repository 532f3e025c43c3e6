from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response

from auth.auth_handler import UserContext, get_user_context
from schemas.checklist import ChecklistDefinition
from schemas.inspection import InspectionForm, InspectionRecord, SavedInspection
from services.checklist import get_active_definition
from services.inspection_service import InspectionService
from services.pdf_export import ExportedDocument
from storage.base import Registries
from storage.factory import get_registries

router = APIRouter(prefix="/inspections", tags=["inspections"])


def get_inspection_service(
    registries: Registries = Depends(get_registries),
    definition: ChecklistDefinition = Depends(get_active_definition),
    user: UserContext = Depends(get_user_context),
) -> InspectionService:
    return InspectionService(registries, definition, user)


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the RFC 5987 UTF-8 name."""
    fallback = filename.encode("ascii", "replace").decode("ascii")
    for ch in '?"\\':
        fallback = fallback.replace(ch, "_")
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def _download(document: ExportedDocument) -> Response:
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": content_disposition(document.filename)},
    )


@router.get("", response_model=List[InspectionRecord])
async def list_inspections(service: InspectionService = Depends(get_inspection_service)):
    return await service.list()


@router.post("", response_model=SavedInspection, status_code=201)
async def save_inspection(
    form: InspectionForm,
    service: InspectionService = Depends(get_inspection_service),
):
    return await service.save(form)


@router.post("/export")
async def export_unsaved_inspection(
    form: InspectionForm,
    service: InspectionService = Depends(get_inspection_service),
):
    """Download the PDF of a filled-in form without saving it."""
    return _download(await service.export_form(form))


@router.get("/{inspection_id}", response_model=InspectionRecord)
async def get_inspection(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    return await service.get(inspection_id)


@router.delete("/{inspection_id}", status_code=204)
async def delete_inspection(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    await service.delete(inspection_id)


@router.post("/{inspection_id}/synced", response_model=InspectionRecord)
async def mark_inspection_synced(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    return await service.mark_synced(inspection_id)


@router.get("/{inspection_id}/export")
async def export_inspection(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    return _download(await service.export(inspection_id))
