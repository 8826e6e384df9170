"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

Lifespan (main.py) builds the container once and attaches the services the
routers need to app.state; these getters are used by Depends().
"""
import secrets
from typing import Annotated

from fastapi import Depends, Request

from fear_greed_bot.config import Settings
from fear_greed_bot.providers import TelegramClient
from fear_greed_bot.services import (CommandHandler, NotificationService,
                                     SubscriptionService)


def get_settings(request: Request) -> Settings:
    """Resolve runtime Settings from app.state."""
    return request.app.state.settings


def get_command_handler(request: Request) -> CommandHandler:
    """Resolve the Telegram CommandHandler from app.state."""
    return request.app.state.command_handler


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_subscription_service(request: Request) -> SubscriptionService:
    return request.app.state.subscription_service


def get_telegram_client(request: Request) -> TelegramClient:
    return request.app.state.telegram_client


# Type aliases for route injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
CommandHandlerDep = Annotated[CommandHandler, Depends(get_command_handler)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]
TelegramClientDep = Annotated[TelegramClient, Depends(get_telegram_client)]


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


def token_matches(candidate: str | None, expected: str | None) -> bool:
    if not candidate or not expected:
        return False
    return secrets.compare_digest(candidate.encode(), expected.encode())
