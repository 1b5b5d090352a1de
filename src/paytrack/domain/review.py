from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ValidationError

from paytrack.errors import InvalidInput
from paytrack.models import TransactionRecord, describe_validation_error

ConfidenceLevel = Literal["high", "medium", "low"]


@dataclass(frozen=True)
class ReviewField:
    key: str
    label: str
    input_type: str = "text"


REVIEW_FIELDS: tuple[ReviewField, ...] = (
    ReviewField(key="merchant", label="Merchant / Recipient"),
    ReviewField(key="amount", label="Amount"),
    ReviewField(key="currency", label="Currency"),
    ReviewField(key="date", label="Date"),
    ReviewField(key="time", label="Time"),
    ReviewField(key="sender", label="Sender"),
    ReviewField(key="paymentMethod", label="Method"),
    ReviewField(key="transactionId", label="Transaction ID"),
    ReviewField(key="platform", label="Platform"),
    ReviewField(key="category", label="Category"),
    ReviewField(key="status", label="Status"),
    ReviewField(key="notes", label="Notes"),
)

EDITABLE_KEYS = frozenset(field.key for field in REVIEW_FIELDS)


def confidence_level(score: float) -> ConfidenceLevel:
    if score > 0.8:
        return "high"
    if score > 0.5:
        return "medium"
    return "low"


def apply_edits(record: TransactionRecord, changes: dict[str, Any]) -> TransactionRecord:
    """
    Return a new record with the editable fields in ``changes`` applied.

    Keys are wire names (``paymentMethod``). Unknown keys and the read-only
    confidence score and upload timestamp are ignored.
    """
    current = record.to_wire()
    updates = {key: value for key, value in changes.items() if key in EDITABLE_KEYS}
    if not updates:
        return record
    try:
        return TransactionRecord.model_validate({**current, **updates})
    except ValidationError as exc:
        raise InvalidInput("Some fields are invalid.", describe_validation_error(exc)) from exc


def build_review_context(
    record: TransactionRecord,
    *,
    saving: bool = False,
    field_errors: dict[str, str] | None = None,
) -> dict[str, Any]:
    values = record.to_wire()
    return {
        "fields": [
            {
                "key": field.key,
                "label": field.label,
                "input_type": field.input_type,
                "value": values.get(field.key, ""),
                "error": (field_errors or {}).get(field.key),
            }
            for field in REVIEW_FIELDS
        ],
        "confidence_level": confidence_level(record.confidence_score),
        "confidence_percent": f"{record.confidence_score * 100:.0f}",
        "disabled": saving,
    }
