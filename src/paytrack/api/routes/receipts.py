from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile

from paytrack.api.dependencies import get_workflow, read_upload
from paytrack.api.schemas import to_http_error
from paytrack.domain.review import confidence_level
from paytrack.errors import PayTrackError
from paytrack.logger import get_logger
from paytrack.services.workflow import ReceiptWorkflow

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


@router.get("/state")
async def get_state(
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
) -> dict[str, Any]:
    return workflow.state.snapshot()


@router.post("/receipts")
async def upload_receipt(
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
    file: Annotated[UploadFile, File()],
) -> dict[str, Any]:
    data = await read_upload(file)
    logger.info("[UPLOAD] Received '%s' (%s, %d bytes).", file.filename, file.content_type, len(data))
    try:
        record = await workflow.upload(data, file.content_type or "")
    except PayTrackError as exc:
        raise to_http_error(exc) from exc

    if record is None:
        raise HTTPException(status_code=502, detail=workflow.state.error or "Extraction failed.")
    return {
        "status": workflow.state.status.value,
        "record": record.to_wire(),
        "confidence": confidence_level(record.confidence_score),
    }


@router.patch("/receipts/current")
async def edit_receipt(
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
    changes: Annotated[dict[str, Any], Body()],
) -> dict[str, Any]:
    try:
        record = workflow.edit(changes)
    except PayTrackError as exc:
        raise to_http_error(exc) from exc
    return {"status": workflow.state.status.value, "record": record.to_wire()}


@router.post("/receipts/current/save")
async def save_receipt(
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
) -> dict[str, Any]:
    try:
        result = await workflow.save()
    except PayTrackError as exc:
        raise to_http_error(exc) from exc
    return result.model_dump(by_alias=True, exclude_none=True)


@router.delete("/receipts/current")
async def discard_receipt(
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
) -> dict[str, str]:
    try:
        workflow.discard()
    except PayTrackError as exc:
        raise to_http_error(exc) from exc
    return {"status": workflow.state.status.value}


@router.get("/history")
async def get_history(
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
) -> list[dict[str, Any]]:
    return [record.to_wire() for record in workflow.state.history]


@router.get("/activity")
async def get_activity(
    workflow: Annotated[ReceiptWorkflow, Depends(get_workflow)],
) -> list[dict[str, Any]]:
    return [entry.model_dump(by_alias=True, mode="json") for entry in workflow.state.activity.entries()]
