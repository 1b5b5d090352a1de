import asyncio
from typing import Literal

from openai import OpenAI, OpenAIError
from pydantic import BaseModel

from paytrack.errors import AssistantUnavailable, InvalidInput
from paytrack.integration.llm import build_openai_client, extract_output_text, resolve_model
from paytrack.integration.prompts import ASSISTANT_INSTRUCTIONS
from paytrack.logger import get_logger

logger = get_logger(__name__)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AssistantClient:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        client: OpenAI | None = None,
    ) -> None:
        self.client = client or build_openai_client(api_key=api_key, base_url=base_url)
        self.model = resolve_model(model)

    def reply(self, history: list[ChatMessage], message: str) -> str:
        if self.client is None:
            raise AssistantUnavailable("The assistant is not configured: set OPENAI_API_KEY.")

        conversation = [item.model_dump() for item in history]
        conversation.append({"role": "user", "content": message})
        try:
            response = self.client.responses.create(
                model=self.model,
                instructions=ASSISTANT_INSTRUCTIONS,
                input=conversation,
            )
        except OpenAIError as exc:
            logger.error("[CHAT] Model call failed: %s", exc)
            raise AssistantUnavailable("The assistant could not be reached.") from exc

        text = extract_output_text(response)
        if not text:
            raise AssistantUnavailable("The assistant returned an empty reply.")
        return text.strip()


class ChatSession:
    """In-memory conversation with the assistant."""

    def __init__(self, assistant: AssistantClient, max_messages: int = 40) -> None:
        self.assistant = assistant
        self.max_messages = max_messages
        self.messages: list[ChatMessage] = []

    async def send(self, message: str) -> str:
        text = message.strip()
        if not text:
            raise InvalidInput("Message is empty.")
        history = list(self.messages)
        reply = await asyncio.to_thread(self.assistant.reply, history, text)
        self.messages.append(ChatMessage(role="user", content=text))
        self.messages.append(ChatMessage(role="assistant", content=reply))
        if len(self.messages) > self.max_messages:
            self.messages = self.messages[-self.max_messages:]
        return reply
