import json

import httpx
import pytest

from paytrack.errors import SyncFailed
from paytrack.integration.sheets import SheetSyncClient
from paytrack.models import SyncOutcome, TransactionRecord


def _client_with(handler) -> SheetSyncClient:
    return SheetSyncClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.anyio
async def test_dispatch_without_webhook_is_simulated(sample_record: TransactionRecord) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    client = _client_with(handler)

    assert await client.dispatch(sample_record, "") is SyncOutcome.SIMULATED
    assert await client.dispatch(sample_record, None) is SyncOutcome.SIMULATED
    assert await client.dispatch(sample_record, "   ") is SyncOutcome.SIMULATED
    assert calls == []


@pytest.mark.anyio
async def test_dispatch_posts_camel_case_json(sample_record: TransactionRecord) -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["url"] = str(request.url)
        captured["content_type"] = request.headers["content-type"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(302, headers={"Location": "https://script.googleusercontent.com/echo"})

    record = sample_record.model_copy(update={"upload_timestamp": "10/18/2026, 09:15:02 AM"})
    outcome = await _client_with(handler).dispatch(record, "https://script.google.com/macros/s/abc/exec")

    assert outcome is SyncOutcome.DISPATCHED
    assert captured["method"] == "POST"
    assert captured["url"] == "https://script.google.com/macros/s/abc/exec"
    assert captured["content_type"] == "application/json"
    assert captured["body"]["paymentMethod"] == "UPI"
    assert captured["body"]["transactionId"] == "TXN1"
    assert captured["body"]["uploadTimestamp"] == "10/18/2026, 09:15:02 AM"


@pytest.mark.anyio
async def test_dispatch_ignores_http_error_status(sample_record: TransactionRecord) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="Script error")

    outcome = await _client_with(handler).dispatch(sample_record, "https://hooks.example/sheet")

    assert outcome is SyncOutcome.DISPATCHED


@pytest.mark.anyio
async def test_dispatch_network_error_raises_sync_failed(sample_record: TransactionRecord) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    with pytest.raises(SyncFailed):
        await _client_with(handler).dispatch(sample_record, "https://unreachable.invalid/hook")


@pytest.mark.anyio
async def test_aclose_closes_owned_client() -> None:
    client = _client_with(lambda request: httpx.Response(200))
    inner = await client._get_client()

    await client.aclose()

    assert inner.is_closed
