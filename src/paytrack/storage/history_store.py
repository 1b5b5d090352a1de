from pydantic import ValidationError

from paytrack.core import settings
from paytrack.logger import get_logger
from paytrack.models import TransactionRecord
from paytrack.storage.local_store import LocalStore

logger = get_logger(__name__)


class HistoryStore:
    """Newest-first list of confirmed records."""

    def __init__(self, store: LocalStore, key: str = settings.HISTORY_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> list[TransactionRecord]:
        raw = self.store.get(self.key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("[STORE] Ignoring history blob of type %s.", type(raw).__name__)
            return []

        records: list[TransactionRecord] = []
        for index, item in enumerate(raw):
            if not isinstance(item, dict):
                logger.warning("[STORE] Skipping history entry %d: not an object.", index)
                continue
            try:
                records.append(TransactionRecord.from_stored(item))
            except ValidationError as exc:
                logger.warning("[STORE] Skipping history entry %d: %s", index, exc.errors()[0].get("msg"))
        return records

    def save(self, records: list[TransactionRecord]) -> None:
        self.store.set(self.key, [record.to_wire() for record in records])
