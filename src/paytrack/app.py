import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from paytrack.api.routes import assistant, pages, receipts, sheet_settings
from paytrack.core import settings
from paytrack.integration.assistant import AssistantClient, ChatSession
from paytrack.integration.extraction import ExtractionClient
from paytrack.integration.sheets import SheetSyncClient
from paytrack.logger import get_logger, setup_logging
from paytrack.services.workflow import ReceiptWorkflow
from paytrack.storage.history_store import HistoryStore
from paytrack.storage.local_store import LocalStore
from paytrack.storage.settings_store import SettingsStore

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        if not os.getenv("OPENAI_API_KEY"):
            logger.warning("OPENAI_API_KEY not set. Extraction and the assistant are disabled.")

        store = LocalStore(data_dir=settings.DATA_DIR)
        sync_client = SheetSyncClient()
        workflow = ReceiptWorkflow(
            extractor=ExtractionClient(),
            sync_client=sync_client,
            settings_store=SettingsStore(store),
            history_store=HistoryStore(store),
        )

        app.state.workflow = workflow
        app.state.chat = ChatSession(AssistantClient())

        logger.info("Services initialized.")
        yield
        await sync_client.aclose()
        logger.info("Service shutting down.")

    app = FastAPI(title="PayTrack", lifespan=lifespan)

    static_dir = os.path.join(os.path.dirname(__file__), "web/static")
    if not os.path.exists(static_dir):
        os.makedirs(static_dir)
    app.mount("/static", StaticFiles(directory=static_dir), name="static")

    app.include_router(receipts.router)
    app.include_router(sheet_settings.router)
    app.include_router(assistant.router)
    app.include_router(pages.router)

    return app


app = create_app()
