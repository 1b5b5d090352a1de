from pydantic import ValidationError

from paytrack.core import settings
from paytrack.logger import get_logger
from paytrack.models import AppSettings
from paytrack.storage.local_store import LocalStore

logger = get_logger(__name__)


class SettingsStore:
    def __init__(self, store: LocalStore, key: str = settings.SETTINGS_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> AppSettings:
        raw = self.store.get(self.key)
        if not isinstance(raw, dict):
            if raw is not None:
                logger.warning("[STORE] Ignoring settings blob of type %s.", type(raw).__name__)
            return AppSettings()
        try:
            loaded = AppSettings.model_validate(raw)
        except ValidationError as exc:
            logger.warning("[STORE] Stored settings are invalid (%s); using defaults.", exc.error_count())
            return AppSettings()
        if not loaded.sheet_url:
            loaded = loaded.model_copy(update={"sheet_url": settings.get_default_sheet_url()})
        return loaded

    def save(self, app_settings: AppSettings) -> None:
        self.store.set(self.key, app_settings.model_dump(by_alias=True))
