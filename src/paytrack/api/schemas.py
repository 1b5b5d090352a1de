from fastapi import HTTPException
from pydantic import BaseModel

from paytrack.errors import (
    AssistantUnavailable,
    ExtractionFailed,
    InvalidInput,
    InvalidTransition,
    PayTrackError,
    StorageFailed,
    SyncFailed,
)
from paytrack.integration.assistant import ChatMessage


class SettingsUpdate(BaseModel):
    sheetUrl: str = ""
    webhookUrl: str = ""


class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    reply: str
    messages: list[ChatMessage]


_STATUS_CODES: tuple[tuple[type[PayTrackError], int], ...] = (
    (InvalidTransition, 409),
    (ExtractionFailed, 502),
    (SyncFailed, 502),
    (StorageFailed, 500),
    (AssistantUnavailable, 503),
)


def to_http_error(exc: PayTrackError) -> HTTPException:
    if isinstance(exc, InvalidInput):
        if exc.field_errors:
            return HTTPException(status_code=422, detail={"message": str(exc), "fields": exc.field_errors})
        return HTTPException(status_code=400, detail=str(exc))
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
