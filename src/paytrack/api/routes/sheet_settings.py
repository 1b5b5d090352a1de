from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from paytrack.api.dependencies import get_workflow
from paytrack.api.schemas import SettingsUpdate
from paytrack.core.configuration import validate_settings_form
from paytrack.services.workflow import ReceiptWorkflow

router = APIRouter(prefix="/api")


@router.get("/settings")
async def get_settings(
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
) -> dict[str, str]:
    return workflow.state.settings.model_dump(by_alias=True)


@router.put("/settings")
async def update_settings(
    req: SettingsUpdate,
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
) -> dict[str, str]:
    errors, new_settings = validate_settings_form(req.model_dump())
    if errors or new_settings is None:
        raise HTTPException(status_code=422, detail={"message": "Invalid settings.", "fields": errors})
    workflow.update_settings(new_settings)
    return new_settings.model_dump(by_alias=True)
