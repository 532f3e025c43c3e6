from fastapi import APIRouter, Depends

from schemas.checklist import ChecklistDefinition, ChecklistTree
from services.checklist import build_initial, get_active_definition

router = APIRouter(prefix="/checklist", tags=["checklist"])


@router.get("/definition", response_model=ChecklistDefinition)
async def checklist_definition(definition: ChecklistDefinition = Depends(get_active_definition)):
    return definition


@router.get("/initial", response_model=ChecklistTree)
async def initial_checklist(definition: ChecklistDefinition = Depends(get_active_definition)):
    """A fresh tree for a new inspection form: every item unset."""
    return build_initial(definition)
