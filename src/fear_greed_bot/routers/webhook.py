"""Telegram webhook route: authenticates the update and dispatches commands."""
import logging
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import ValidationError

from fear_greed_bot.deps import CommandHandlerDep, SettingsDep, token_matches
from fear_greed_bot.schemas import TelegramUpdate

logger = logging.getLogger(__name__)
router = APIRouter(tags=["telegram"])


@router.post("/")
async def telegram_webhook(
    request: Request,
    settings: SettingsDep,
    handler: CommandHandlerDep,
    x_telegram_bot_api_secret_token: Annotated[str | None, Header()] = None,
) -> dict:
    """Handle one Telegram update.

    Updates that are not text messages are acknowledged and ignored so
    Telegram does not keep redelivering them.
    """
    if not token_matches(x_telegram_bot_api_secret_token, settings.telegram_webhook_secret):
        logger.warning("Rejected webhook request with missing or invalid secret token")
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON") from exc

    try:
        update = TelegramUpdate.model_validate(body)
    except ValidationError:
        logger.debug("Ignoring malformed update")
        return {"ok": True}

    message = update.effective_message
    if message is None or not message.text:
        return {"ok": True}

    try:
        await handler.handle(message.chat.id, message.text)
    except Exception as exc:
        logger.exception("Error processing update %s", update.update_id)
        raise HTTPException(status_code=500, detail="Internal server error") from exc
    return {"ok": True}
