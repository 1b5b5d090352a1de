import asyncio

import httpx

from paytrack.core import settings
from paytrack.errors import SyncFailed
from paytrack.logger import get_logger
from paytrack.models import SyncOutcome, TransactionRecord

logger = get_logger(__name__)

# Receiver the user deploys as a Google Apps Script web app.
APPS_SCRIPT_TEMPLATE = """function doPost(e) {
  var sheet = SpreadsheetApp.getActiveSpreadsheet().getActiveSheet();
  var data = JSON.parse(e.postData.contents);

  sheet.appendRow([
    data.date,
    data.time,
    data.amount,
    data.currency,
    data.merchant,
    data.sender,
    data.paymentMethod,
    data.transactionId,
    data.status,
    data.platform,
    data.category,
    data.notes,
    data.uploadTimestamp
  ]);

  return ContentService.createTextOutput("Success").setMimeType(ContentService.MimeType.TEXT);
}"""


class SheetSyncClient:
    """
    Fire-and-forget delivery of confirmed records to a spreadsheet webhook.

    Script endpoints redirect and answer with bodies the caller cannot rely on, so
    the only success signal is that the request went out without a transport error.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float | None = None) -> None:
        self._client = client
        self._client_lock = asyncio.Lock()
        self.timeout = timeout if timeout is not None else settings.get_sync_timeout()

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    async def dispatch(self, record: TransactionRecord, webhook_url: str | None) -> SyncOutcome:
        url = (webhook_url or "").strip()
        if not url:
            logger.info("[SYNC] No webhook configured; simulating sync.")
            return SyncOutcome.SIMULATED

        client = await self._get_client()
        try:
            response = await client.post(
                url,
                json=record.to_wire(),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except httpx.TransportError as exc:
            logger.error("[SYNC] Could not reach webhook %s: %s", url, exc)
            raise SyncFailed(f"Could not reach the webhook: {exc}") from exc

        if response.is_success or response.is_redirect:
            logger.debug("[SYNC] Webhook answered %s.", response.status_code)
        else:
            logger.warning(
                "[SYNC] Webhook answered %s; delivery is not confirmed.",
                response.status_code,
            )
        return SyncOutcome.DISPATCHED
