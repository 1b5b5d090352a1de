from fastapi import HTTPException, Request, UploadFile

from paytrack.core import settings
from paytrack.integration.assistant import ChatSession
from paytrack.services.workflow import ReceiptWorkflow


async def read_upload(file: UploadFile) -> bytes:
    # One byte past the limit is enough for validation to reject the file.
    return await file.read(settings.get_max_upload_bytes() + 1)


def get_workflow(request: Request) -> ReceiptWorkflow:
    workflow = getattr(request.app.state, "workflow", None)
    if not workflow:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return workflow


def get_chat_session(request: Request) -> ChatSession:
    session = getattr(request.app.state, "chat", None)
    if not session:
        raise HTTPException(status_code=500, detail="Assistant not initialized")
    return session
