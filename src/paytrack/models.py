from datetime import datetime
from enum import Enum
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from paytrack.core import settings

NOT_FOUND = "Not found"

TransactionStatus = Literal["completed", "pending", "failed", "Not found"]

TRANSACTION_STATUSES: tuple[str, ...] = get_args(TransactionStatus)

CATEGORIES = (
    "Food",
    "Transport",
    "Shopping",
    "Utilities",
    "Rent",
    "Insurance",
    "Entertainment",
    "Health",
    "Travel",
    "Other",
)


class _CamelModel(BaseModel):
    # Wire and storage format uses camelCase keys.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionRecord(_CamelModel):
    amount: str
    currency: str
    date: str
    merchant: str
    confidence_score: float = Field(ge=0.0, le=1.0)
    time: str = NOT_FOUND
    sender: str = NOT_FOUND
    payment_method: str = NOT_FOUND
    transaction_id: str = NOT_FOUND
    status: TransactionStatus = NOT_FOUND
    platform: str = NOT_FOUND
    category: str = NOT_FOUND
    notes: str = NOT_FOUND
    upload_timestamp: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.lower() == NOT_FOUND.lower():
                return NOT_FOUND
            return stripped.lower()
        return value

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_stored(cls, data: dict[str, Any]) -> "TransactionRecord":
        """
        Build a record from persisted JSON written by any earlier version.
        Missing text fields load as "Not found", a missing score as 0.0.
        """
        filled = dict(data)
        for name in ("amount", "currency", "date", "merchant"):
            alias = to_camel(name)
            if filled.get(alias) is None and filled.get(name) is None:
                filled[alias] = NOT_FOUND
        if filled.get("confidenceScore") is None and filled.get("confidence_score") is None:
            filled["confidenceScore"] = 0.0
        return cls.model_validate(filled)


class AppSettings(_CamelModel):
    sheet_url: str = Field(default_factory=settings.get_default_sheet_url)
    webhook_url: str = ""


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ActivityLogEntry(_CamelModel):
    message: str
    severity: Severity = Severity.INFO
    created_at: datetime = Field(default_factory=datetime.now)


class ExtractionStatus(str, Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    EXTRACTING = "EXTRACTING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    SAVING = "SAVING"


class SyncOutcome(str, Enum):
    DISPATCHED = "dispatched"
    SIMULATED = "simulated"


class SaveResult(_CamelModel):
    outcome: SyncOutcome
    record: TransactionRecord
    sheet_url: str


def describe_validation_error(exc: ValidationError) -> dict[str, str]:
    """Map a pydantic error to ``{wireFieldName: message}``."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        key = str(loc[0]) if loc else "__root__"
        errors.setdefault(to_camel(key) if "_" in key else key, error.get("msg", "Invalid value"))
    return errors
