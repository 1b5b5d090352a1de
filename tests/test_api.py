from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import PNG_BYTES, build_workflow
from paytrack.errors import ExtractionFailed
from paytrack.integration.assistant import AssistantClient, ChatSession
from paytrack.main import app
from paytrack.services.workflow import ReceiptWorkflow
from paytrack.storage.local_store import LocalStore

client = TestClient(app)


@pytest.fixture
def api_workflow(local_store: LocalStore, mock_extractor: MagicMock) -> Generator[ReceiptWorkflow, None, None]:
    had_workflow = hasattr(app.state, "workflow")
    original = getattr(app.state, "workflow", None)
    workflow = build_workflow(local_store, mock_extractor)
    app.state.workflow = workflow
    yield workflow
    if had_workflow:
        app.state.workflow = original
    else:
        delattr(app.state, "workflow")


@pytest.fixture
def mock_assistant() -> Generator[MagicMock, None, None]:
    had_chat = hasattr(app.state, "chat")
    original = getattr(app.state, "chat", None)
    assistant = MagicMock(spec=AssistantClient)
    app.state.chat = ChatSession(assistant)
    yield assistant
    if had_chat:
        app.state.chat = original
    else:
        delattr(app.state, "chat")


def _upload(path: str = "/api/receipts", content: bytes = PNG_BYTES, mime: str = "image/png"):
    return client.post(path, files={"file": ("receipt.png", content, mime)}, follow_redirects=False)


def test_index_shows_upload_control(api_workflow: ReceiptWorkflow) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert "Upload Receipt" in response.text
    assert "No activity yet." in response.text
    assert "Nothing synced yet." in response.text


def test_api_upload_returns_record(api_workflow: ReceiptWorkflow) -> None:
    response = _upload()

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "SUCCESS"
    assert data["record"]["merchant"] == "Cafe Coffee Day"
    assert data["confidence"] == "high"


def test_api_upload_rejects_non_image(api_workflow: ReceiptWorkflow, mock_extractor: MagicMock) -> None:
    response = _upload(content=b"plain text", mime="text/plain")

    assert response.status_code == 400
    mock_extractor.extract.assert_not_called()


def test_api_upload_extraction_failure(api_workflow: ReceiptWorkflow, mock_extractor: MagicMock) -> None:
    mock_extractor.extract.side_effect = ExtractionFailed("Empty response from the model.")

    response = _upload()

    assert response.status_code == 502
    assert response.json()["detail"] == "Empty response from the model."
    assert client.get("/api/state").json()["status"] == "ERROR"


def test_api_review_and_save_flow(api_workflow: ReceiptWorkflow) -> None:
    assert _upload().status_code == 200

    edit = client.patch("/api/receipts/current", json={"merchant": "CCD", "notes": "1x Latte"})
    assert edit.status_code == 200
    assert edit.json()["record"]["merchant"] == "CCD"

    saved = client.post("/api/receipts/current/save")
    assert saved.status_code == 200
    body = saved.json()
    assert body["outcome"] == "simulated"
    assert body["record"]["uploadTimestamp"]

    history = client.get("/api/history").json()
    assert len(history) == 1
    assert history[0]["merchant"] == "CCD"
    assert client.get("/api/state").json()["record"] is None


def test_api_invalid_edit_returns_field_errors(api_workflow: ReceiptWorkflow) -> None:
    _upload()

    response = client.patch("/api/receipts/current", json={"status": "refunded"})

    assert response.status_code == 422
    assert "status" in response.json()["detail"]["fields"]


def test_api_save_when_idle_conflicts(api_workflow: ReceiptWorkflow) -> None:
    response = client.post("/api/receipts/current/save")
    assert response.status_code == 409


def test_api_discard(api_workflow: ReceiptWorkflow) -> None:
    _upload()

    response = client.delete("/api/receipts/current")

    assert response.status_code == 200
    assert response.json() == {"status": "IDLE"}
    assert client.get("/api/history").json() == []


def test_api_activity_newest_first(api_workflow: ReceiptWorkflow) -> None:
    _upload()

    activity = client.get("/api/activity").json()

    assert activity[0]["message"] == "Analysis complete."
    assert activity[0]["severity"] == "success"


def test_api_settings_update(api_workflow: ReceiptWorkflow) -> None:
    response = client.put(
        "/api/settings",
        json={"sheetUrl": "https://sheets.example/doc", "webhookUrl": "https://hooks.example/run"},
    )

    assert response.status_code == 200
    assert client.get("/api/settings").json() == {
        "sheetUrl": "https://sheets.example/doc",
        "webhookUrl": "https://hooks.example/run",
    }
    assert api_workflow.settings_store.load().webhook_url == "https://hooks.example/run"


def test_api_settings_rejects_bad_url(api_workflow: ReceiptWorkflow) -> None:
    response = client.put("/api/settings", json={"sheetUrl": "", "webhookUrl": "ftp://nope"})

    assert response.status_code == 422
    assert "webhookUrl" in response.json()["detail"]["fields"]


def test_page_upload_non_image_reports_inline(api_workflow: ReceiptWorkflow) -> None:
    response = _upload(path="/upload", content=b"plain text", mime="text/plain")

    assert response.status_code == 400
    assert "Please upload an image file." in response.text


def test_page_review_save_redirects_with_confirmation(api_workflow: ReceiptWorkflow) -> None:
    assert _upload(path="/upload").status_code == 303
    page = client.get("/")
    assert "Verify Extraction" in page.text
    assert "Confidence: 93%" in page.text

    response = client.post(
        "/review",
        data={"action": "save", "merchant": "Cafe Coffee Day", "category": "Food"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/?saved=simulated"
    landing = client.get("/?saved=simulated")
    assert "View the sheet now?" in landing.text
    assert "SYNCED" in landing.text


def test_page_review_discard(api_workflow: ReceiptWorkflow) -> None:
    _upload(path="/upload")

    response = client.post("/review", data={"action": "discard"}, follow_redirects=False)

    assert response.status_code == 303
    assert api_workflow.state.record is None


def test_settings_page_round_trip(api_workflow: ReceiptWorkflow) -> None:
    page = client.get("/settings")
    assert page.status_code == 200
    assert "doPost" in page.text

    response = client.post(
        "/settings",
        data={"sheetUrl": "https://sheets.example/doc", "webhookUrl": ""},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert api_workflow.state.settings.sheet_url == "https://sheets.example/doc"

    invalid = client.post("/settings", data={"sheetUrl": "not a url", "webhookUrl": ""})
    assert invalid.status_code == 422
    assert "Must be an http(s) URL." in invalid.text


def test_chat_round_trip(mock_assistant: MagicMock) -> None:
    mock_assistant.reply.return_value = "You spent ₹450 on food."

    response = client.post("/api/chat", json={"message": "How much did I spend on food?"})

    assert response.status_code == 200
    body = response.json()
    assert body["reply"] == "You spent ₹450 on food."
    assert [message["role"] for message in body["messages"]] == ["user", "assistant"]
    mock_assistant.reply.assert_called_once_with([], "How much did I spend on food?")


def test_chat_rejects_empty_message(mock_assistant: MagicMock) -> None:
    response = client.post("/api/chat", json={"message": "  "})

    assert response.status_code == 400
    mock_assistant.reply.assert_not_called()


def test_api_upload_over_size_limit_rejected(
    api_workflow: ReceiptWorkflow, mock_extractor: MagicMock, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "16")

    response = _upload()

    assert response.status_code == 400
    assert response.json()["detail"] == "Image is too large (limit 16 bytes)."
    mock_extractor.extract.assert_not_called()
