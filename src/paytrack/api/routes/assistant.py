from typing import Annotated

from fastapi import APIRouter, Depends

from paytrack.api.dependencies import get_chat_session
from paytrack.api.schemas import ChatRequest, ChatResponse, to_http_error
from paytrack.errors import PayTrackError
from paytrack.integration.assistant import ChatMessage, ChatSession

router = APIRouter(prefix="/api")


@router.get("/chat")
async def get_conversation(
    session: Annotated[ChatSession, Depends(get_chat_session)],
) -> list[ChatMessage]:
    return session.messages


@router.post("/chat", response_model=ChatResponse)
async def send_message(
    req: ChatRequest,
    session: Annotated[ChatSession, Depends(get_chat_session)],
) -> ChatResponse:
    try:
        reply = await session.send(req.message)
    except PayTrackError as exc:
        raise to_http_error(exc) from exc
    return ChatResponse(reply=reply, messages=session.messages)
