"""Main module for the Fear & Greed signal bot service."""
import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from fear_greed_bot.config import Settings
from fear_greed_bot.container import (Container, close_container,
                                      init_container)
from fear_greed_bot.db import init_db
from fear_greed_bot.routers import (deploy_router, scheduled_router,
                                    webhook_router)

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def run_startup_migration(container: Container) -> None:
    """Run the legacy migration when an export is configured.

    Failures are logged and the service keeps starting; the status row stays
    incomplete so the next startup retries.
    """
    if not container.settings().legacy_kv_export:
        return
    try:
        await container.data_migrator().migrate()
    except Exception:  # pylint: disable=broad-except
        logger.exception("Legacy migration failed; continuing startup")


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create storage, providers and services at startup; close them on shutdown."""
    container = init_container()
    settings = container.settings()

    await asyncio.to_thread(init_db, container.engine())
    await run_startup_migration(container)

    fastapi_app.state.container = container
    fastapi_app.state.settings = settings
    fastapi_app.state.command_handler = container.command_handler()
    fastapi_app.state.notification_service = container.notification_service()
    fastapi_app.state.subscription_service = container.subscription_service()
    fastapi_app.state.telegram_client = container.telegram_client()

    if not settings.telegram_bot_token:
        logger.warning("TELEGRAM_BOT_TOKEN is not set; outbound messages will fail")
    if not settings.telegram_webhook_secret:
        logger.warning("TELEGRAM_WEBHOOK_SECRET is not set; webhook requests will be rejected")

    yield

    await close_container(container)


app = FastAPI(
    title="Fear & Greed Signal Bot",
    description="Telegram bot broadcasting trading signals during market fear",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(webhook_router)
app.include_router(deploy_router)
app.include_router(scheduled_router)


@app.get("/")
def health():
    """Return health check status."""
    return {"status": "ok"}


def run():
    """Run the server (uvicorn). Use for `poetry run start`."""
    configure_logging(Settings.from_env())
    uvicorn.run("fear_greed_bot.main:app", host="0.0.0.0", port=8000)
