import base64
import json
from time import perf_counter

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from paytrack.core import settings
from paytrack.domain.timefmt import format_duration
from paytrack.errors import ExtractionFailed, InvalidInput
from paytrack.integration.llm import build_openai_client, extract_output_text, resolve_model
from paytrack.integration.prompts import (
    EXTRACTION_INSTRUCTIONS,
    EXTRACTION_PROMPT,
    REQUIRED_FIELDS,
    TRANSACTION_SCHEMA,
)
from paytrack.logger import get_logger
from paytrack.models import NOT_FOUND, TRANSACTION_STATUSES, TransactionRecord, describe_validation_error

logger = get_logger(__name__)


def validate_image(data: bytes, mime_type: str | None, max_bytes: int | None = None) -> None:
    if not data:
        raise InvalidInput("The selected file is empty.")
    if not mime_type or not mime_type.lower().startswith("image/"):
        raise InvalidInput("Please upload an image file.")
    limit = max_bytes if max_bytes is not None else settings.get_max_upload_bytes()
    if len(data) > limit:
        raise InvalidInput(f"Image is too large (limit {limit} bytes).")


def to_data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def parse_extraction(text: str | None) -> TransactionRecord:
    """Decode the model's reply and validate it into a record."""
    if not text or not text.strip():
        raise ExtractionFailed("Empty response from the model.")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractionFailed("The model did not return valid JSON.") from exc
    if not isinstance(payload, dict):
        raise ExtractionFailed(f"Expected a JSON object, got {type(payload).__name__}.")

    missing = [name for name in REQUIRED_FIELDS if payload.get(name) is None]
    if missing:
        raise ExtractionFailed(f"Response is missing required field(s): {', '.join(missing)}.")

    # Upload time is ours to set, never the model's.
    payload.pop("uploadTimestamp", None)
    status = payload.get("status")
    if isinstance(status, str) and status.strip().lower() not in {value.lower() for value in TRANSACTION_STATUSES}:
        logger.debug("[EXTRACT] Unrecognised status %r recorded as %s.", status, NOT_FOUND)
        payload["status"] = NOT_FOUND
    try:
        return TransactionRecord.model_validate(payload)
    except ValidationError as exc:
        details = "; ".join(f"{key}: {msg}" for key, msg in describe_validation_error(exc).items())
        raise ExtractionFailed(f"Response does not match the transaction schema ({details}).") from exc


class ExtractionClient:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        client: OpenAI | None = None,
    ) -> None:
        self.client = client or build_openai_client(api_key=api_key, base_url=base_url)
        self.model = resolve_model(model)
        if self.client is None:
            logger.warning("[EXTRACT] OPENAI_API_KEY not set. Receipt extraction will fail until configured.")

    def extract(self, data: bytes, mime_type: str) -> TransactionRecord:
        validate_image(data, mime_type)
        if self.client is None:
            raise ExtractionFailed("Extraction is not configured: set OPENAI_API_KEY.")

        started = perf_counter()
        try:
            response = self.client.responses.create(
                model=self.model,
                instructions=EXTRACTION_INSTRUCTIONS,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_text", "text": EXTRACTION_PROMPT},
                            {"type": "input_image", "image_url": to_data_url(data, mime_type)},
                        ],
                    }
                ],
                text={
                    "format": {
                        "type": "json_schema",
                        "name": "transaction_record",
                        "schema": TRANSACTION_SCHEMA,
                        "strict": False,
                    }
                },
                temperature=0.0,
            )
        except OpenAIError as exc:
            logger.error("[EXTRACT] Model call failed: %s", exc)
            raise ExtractionFailed("The extraction service could not be reached. Please try again.") from exc

        logger.debug("[EXTRACT] Model %s replied in %s.", self.model, format_duration(perf_counter() - started))
        record = parse_extraction(extract_output_text(response))
        logger.info(
            "[EXTRACT] %s %s%s for '%s' (confidence %.2f).",
            record.date,
            record.currency,
            record.amount,
            record.merchant,
            record.confidence_score,
        )
        return record
