import os

from openai import OpenAI

from paytrack.core import settings
from paytrack.logger import get_logger

logger = get_logger(__name__)


def build_openai_client(api_key: str | None = None, base_url: str | None = None) -> OpenAI | None:
    """Return a client, or None when no API key is configured."""
    key = api_key or os.getenv("OPENAI_API_KEY")
    if not key:
        return None
    return OpenAI(
        api_key=key,
        base_url=base_url or os.getenv("OPENAI_BASE_URL") or None,
    )


def resolve_model(model: str | None = None) -> str:
    return model or settings.get_openai_model()


def extract_output_text(response: object) -> str | None:
    output_text = getattr(response, "output_text", None)
    if output_text:
        return output_text

    output = getattr(response, "output", None)
    if not output:
        return None

    parts: list[str] = []
    for item in output:
        content = getattr(item, "content", None)
        if not content:
            continue
        for block in content:
            if getattr(block, "type", None) in {"output_text", "text"}:
                text = getattr(block, "text", None)
                if text:
                    parts.append(text)

    if parts:
        return "".join(parts)
    return None
