from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from paytrack.integration.extraction import ExtractionClient
from paytrack.integration.sheets import SheetSyncClient
from paytrack.models import AppSettings, TransactionRecord
from paytrack.services.workflow import ReceiptWorkflow
from paytrack.storage.history_store import HistoryStore
from paytrack.storage.local_store import LocalStore
from paytrack.storage.settings_store import SettingsStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def sample_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "amount": "450.00",
        "currency": "₹",
        "date": "2024-11-18",
        "time": "14:32",
        "merchant": "Cafe Coffee Day",
        "sender": "Asha Rao",
        "paymentMethod": "UPI",
        "transactionId": "TXN1",
        "status": "completed",
        "platform": "GPay",
        "category": "Food",
        "notes": "2x Cappuccino, 1x Sandwich",
        "confidenceScore": 0.93,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def sample_record() -> TransactionRecord:
    return TransactionRecord.model_validate(sample_payload())


@pytest.fixture
def local_store(tmp_path) -> LocalStore:
    return LocalStore(data_dir=str(tmp_path))


@pytest.fixture
def mock_extractor(sample_record: TransactionRecord) -> MagicMock:
    extractor = MagicMock(spec=ExtractionClient)
    extractor.model = "test-model"
    extractor.extract.return_value = sample_record
    return extractor


def build_workflow(
    local_store: LocalStore,
    extractor: Any,
    *,
    webhook_url: str = "",
    transport: httpx.MockTransport | None = None,
) -> ReceiptWorkflow:
    settings_store = SettingsStore(local_store)
    if webhook_url:
        settings_store.save(AppSettings(sheet_url="https://sheets.example/doc", webhook_url=webhook_url))
    client = httpx.AsyncClient(transport=transport) if transport else None
    return ReceiptWorkflow(
        extractor=extractor,
        sync_client=SheetSyncClient(client=client),
        settings_store=settings_store,
        history_store=HistoryStore(local_store),
    )


@pytest.fixture
def workflow(local_store: LocalStore, mock_extractor: MagicMock) -> ReceiptWorkflow:
    return build_workflow(local_store, mock_extractor)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
