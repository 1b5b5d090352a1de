from dataclasses import dataclass
from urllib.parse import urlparse

from paytrack.core import settings
from paytrack.integration.sheets import APPS_SCRIPT_TEMPLATE
from paytrack.models import AppSettings


@dataclass(frozen=True)
class ConfigField:
    key: str
    label: str
    description: str
    placeholder: str
    input_type: str = "url"
    required: bool = False


SETTINGS_FIELDS: tuple[ConfigField, ...] = (
    ConfigField(
        key="sheetUrl",
        label="Your Google Sheet URL",
        description="Opened after a successful sync so you can check the new row.",
        placeholder="https://docs.google.com/spreadsheets/d/...",
    ),
    ConfigField(
        key="webhookUrl",
        label="Apps Script Webhook URL",
        description="Web App URL of the deployed Apps Script. Leave empty to simulate syncs.",
        placeholder="https://script.google.com/macros/s/...",
    ),
)


def _validate_url(field: ConfigField, raw_value: str) -> tuple[str, str | None]:
    value = raw_value.strip()
    if not value:
        if field.required:
            return value, "This field is required."
        return "", None

    if "\n" in value or "\r" in value:
        return value, "Value must be a single line."

    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return value, "Must be an http(s) URL."
    return value, None


def validate_settings_form(form_values: dict[str, str]) -> tuple[dict[str, str], AppSettings | None]:
    """
    Validate the settings dialog.

    Returns ``(errors, None)`` when any field is invalid, else ``({}, settings)``.
    An empty sheet URL falls back to the default.
    """
    errors: dict[str, str] = {}
    cleaned: dict[str, str] = {}
    for field in SETTINGS_FIELDS:
        cleaned_value, error = _validate_url(field, form_values.get(field.key) or "")
        if error:
            errors[field.key] = error
        else:
            cleaned[field.key] = cleaned_value

    if errors:
        return errors, None

    if not cleaned.get("sheetUrl"):
        cleaned["sheetUrl"] = settings.get_default_sheet_url()
    return {}, AppSettings.model_validate(cleaned)


def build_settings_context(
    current: AppSettings,
    *,
    form_values: dict[str, str] | None = None,
    field_errors: dict[str, str] | None = None,
) -> dict[str, object]:
    values = form_values if form_values is not None else current.model_dump(by_alias=True)
    return {
        "fields": [
            {
                "key": field.key,
                "label": field.label,
                "description": field.description,
                "placeholder": field.placeholder,
                "input_type": field.input_type,
                "value": values.get(field.key, ""),
                "error": (field_errors or {}).get(field.key),
            }
            for field in SETTINGS_FIELDS
        ],
        "apps_script": APPS_SCRIPT_TEMPLATE,
    }
