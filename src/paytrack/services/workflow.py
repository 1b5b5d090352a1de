import asyncio
from dataclasses import dataclass, field
from typing import Any

from paytrack.domain.activity import ActivityLog
from paytrack.domain.duplicates import is_duplicate
from paytrack.domain.review import apply_edits
from paytrack.domain.timefmt import format_upload_timestamp
from paytrack.errors import ExtractionFailed, InvalidInput, InvalidTransition, StorageFailed
from paytrack.integration.extraction import ExtractionClient, to_data_url, validate_image
from paytrack.integration.sheets import SheetSyncClient
from paytrack.logger import get_logger
from paytrack.models import (
    AppSettings,
    ExtractionStatus,
    SaveResult,
    Severity,
    SyncOutcome,
    TransactionRecord,
)
from paytrack.storage.history_store import HistoryStore
from paytrack.storage.settings_store import SettingsStore

logger = get_logger(__name__)


@dataclass
class AppState:
    settings: AppSettings
    history: list[TransactionRecord]
    activity: ActivityLog = field(default_factory=ActivityLog)
    status: ExtractionStatus = ExtractionStatus.IDLE
    record: TransactionRecord | None = None
    preview: str | None = None
    error: str | None = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "error": self.error,
            "record": self.record.to_wire() if self.record else None,
            "preview": self.preview,
            "settings": self.settings.model_dump(by_alias=True),
            "history": [item.to_wire() for item in self.history],
            "activity": [entry.model_dump(by_alias=True, mode="json") for entry in self.activity.entries()],
        }


class ReceiptWorkflow:
    """
    Owns the application state and every transition of the in-flight record:
    upload, extract, review, then save or discard.

    Busy states are entered before each await, so a second request for the same
    record arriving mid-flight fails with InvalidTransition.
    """

    def __init__(
        self,
        extractor: ExtractionClient,
        sync_client: SheetSyncClient,
        settings_store: SettingsStore,
        history_store: HistoryStore,
        state: AppState | None = None,
    ) -> None:
        self.extractor = extractor
        self.sync_client = sync_client
        self.settings_store = settings_store
        self.history_store = history_store
        self.state = state or AppState(
            settings=settings_store.load(),
            history=history_store.load(),
        )
        logger.info(
            "[WORKFLOW] Loaded settings (webhook %s) and %d history record(s).",
            "configured" if self.state.settings.webhook_url else "not configured",
            len(self.state.history),
        )

    def _log(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.state.activity.add(message, severity)

    def _require(self, *allowed: ExtractionStatus) -> None:
        if self.state.status not in allowed:
            raise InvalidTransition(
                f"Cannot do that while status is {self.state.status.value}."
            )

    def _reset_to_idle(self) -> None:
        self.state.record = None
        self.state.preview = None
        self.state.error = None
        self.state.status = ExtractionStatus.IDLE

    async def upload(self, data: bytes, mime_type: str) -> TransactionRecord | None:
        """
        Extract a record from an uploaded image.

        Returns the record on success and None when extraction failed; the failure
        is kept in ``state.error`` and the status moves to ERROR.
        """
        self._require(ExtractionStatus.IDLE, ExtractionStatus.ERROR)
        try:
            validate_image(data, mime_type)
        except InvalidInput as exc:
            self.state.error = str(exc)
            raise

        state = self.state
        state.status = ExtractionStatus.UPLOADING
        state.error = None
        state.record = None
        state.preview = to_data_url(data, mime_type)

        state.status = ExtractionStatus.EXTRACTING
        self._log(f"Analyzing with {self.extractor.model}...")
        try:
            record = await asyncio.to_thread(self.extractor.extract, data, mime_type)
        except ExtractionFailed as exc:
            state.status = ExtractionStatus.ERROR
            state.error = str(exc) or "Extraction failed."
            self._log(f"Error: {state.error}", Severity.ERROR)
            return None
        except Exception:
            logger.exception("[WORKFLOW] Extraction raised unexpectedly.")
            state.status = ExtractionStatus.ERROR
            state.error = "Extraction failed unexpectedly. Please try again."
            self._log(f"Error: {state.error}", Severity.ERROR)
            return None

        if is_duplicate(record.transaction_id, state.history):
            self._log("Possible duplicate detected!", Severity.WARNING)

        state.record = record
        state.status = ExtractionStatus.SUCCESS
        self._log("Analysis complete.", Severity.SUCCESS)
        return record

    def edit(self, changes: dict[str, Any]) -> TransactionRecord:
        self._require(ExtractionStatus.SUCCESS)
        record = self._current_record()
        self.state.record = apply_edits(record, changes)
        return self.state.record

    def _current_record(self) -> TransactionRecord:
        if self.state.record is None:
            raise InvalidTransition("There is no record under review.")
        return self.state.record

    async def save(self) -> SaveResult:
        self._require(ExtractionStatus.SUCCESS)
        state = self.state
        record = self._current_record()

        state.status = ExtractionStatus.SAVING
        self._log("Initiating sync with Google Sheets...")

        to_save = record.model_copy(update={"upload_timestamp": format_upload_timestamp()})
        try:
            outcome = await self.sync_client.dispatch(to_save, state.settings.webhook_url)
        except Exception:
            # SyncFailed or anything unexpected: the record stays under review.
            state.status = ExtractionStatus.SUCCESS
            self._log("Failed to sync with Google Sheets", Severity.ERROR)
            raise

        if outcome is SyncOutcome.DISPATCHED:
            self._log("Sync command dispatched to Webhook.", Severity.SUCCESS)
        else:
            self._log("Simulating sync... Setup Webhook for real automation.")

        history = [to_save, *state.history]
        try:
            self.history_store.save(history)
        except OSError as exc:
            logger.error("[WORKFLOW] Could not persist history: %s", exc)
            state.status = ExtractionStatus.SUCCESS
            self._log("Failed to record transaction in history", Severity.ERROR)
            raise StorageFailed("Could not write the sync history. Please try again.") from exc
        state.history = history
        self._log(f"Recorded {to_save.currency}{to_save.amount} for {to_save.merchant}", Severity.SUCCESS)

        self._reset_to_idle()
        return SaveResult(outcome=outcome, record=to_save, sheet_url=state.settings.sheet_url)

    def discard(self) -> None:
        self._require(ExtractionStatus.SUCCESS)
        self._reset_to_idle()
        self._log("Extraction discarded.")

    def update_settings(self, new_settings: AppSettings) -> AppSettings:
        self.state.settings = new_settings
        self.settings_store.save(new_settings)
        self._log("Settings saved.", Severity.SUCCESS)
        return new_settings
