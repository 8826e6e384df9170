"""Scheduled broadcast trigger, called by an external cron."""
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException

from fear_greed_bot.deps import (NotificationServiceDep, SettingsDep,
                                 bearer_token, token_matches)
from fear_greed_bot.schemas import NotificationRun

router = APIRouter(tags=["scheduled"])


@router.post("/scheduled", response_model=NotificationRun)
async def run_scheduled(
    settings: SettingsDep,
    notifications: NotificationServiceDep,
    authorization: Annotated[str | None, Header()] = None,
) -> NotificationRun:
    if not token_matches(bearer_token(authorization), settings.telegram_bot_token):
        raise HTTPException(status_code=401, detail="Invalid token")
    return await notifications.run_scheduled()
