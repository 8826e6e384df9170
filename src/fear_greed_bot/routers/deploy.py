"""Deploy notification route: announces a new release to every subscriber."""
import logging
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import ValidationError

from fear_greed_bot.deps import (SettingsDep, SubscriptionServiceDep,
                                 TelegramClientDep, bearer_token,
                                 token_matches)
from fear_greed_bot.schemas import DeployNotification

logger = logging.getLogger(__name__)
router = APIRouter(tags=["deploy"])


def format_deploy_message(notification: DeployNotification) -> str:
    first_line = (notification.commit_message or "").split("\n", 1)[0]
    return (
        "🚀 New version deployed!\n\n"
        f"Commit: `{notification.commit_hash}`\n"
        f"Message: {first_line}\n\n"
        f"🔗 [View on GitHub]({notification.commit_url})"
    )


@router.post("/deploy-notify")
async def deploy_notify(
    request: Request,
    settings: SettingsDep,
    subscriptions: SubscriptionServiceDep,
    telegram: TelegramClientDep,
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    """Broadcast a deployment notice.

    The caller authenticates with the bot token, either as a bearer token
    or in the ``token`` field of the body.
    """
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON") from exc

    try:
        notification = DeployNotification.model_validate(body)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid payload") from exc

    token = bearer_token(authorization) or notification.token
    if not token_matches(token, settings.telegram_bot_token):
        raise HTTPException(status_code=401, detail="Invalid token")

    if not (notification.commit_hash and notification.commit_message and notification.commit_url):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: commitHash, commitMessage, commitUrl",
        )

    try:
        chat_ids = await subscriptions.active_chat_ids()
        result = await telegram.broadcast(chat_ids, format_deploy_message(notification))
    except Exception as exc:
        logger.exception("Deploy notification failed")
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    logger.info(
        "Deploy notification for %s sent to %d/%d subscribers",
        notification.commit_hash,
        result.successful,
        result.total_subscribers,
    )
    return {"success": True, "broadcast": result.model_dump(by_alias=True)}
