"""Telegram webhook payloads and outbound send results."""
from pydantic import BaseModel, ConfigDict, Field


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message_id: int | None = None
    chat: TelegramChat
    text: str | None = None


class TelegramUpdate(BaseModel):
    """Incoming webhook update; only (edited) text messages are handled."""

    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: TelegramMessage | None = None
    edited_message: TelegramMessage | None = None

    @property
    def effective_message(self) -> TelegramMessage | None:
        return self.message or self.edited_message


class SendResult(BaseModel):
    ok: bool
    chat_id: str
    status_code: int | None = None
    error: str | None = None


class BroadcastResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_subscribers: int = Field(0, alias="totalSubscribers")
    successful: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


class DeployNotification(BaseModel):
    """Body of the deploy notification endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: str | None = None
    commit_hash: str | None = Field(None, alias="commitHash")
    commit_message: str | None = Field(None, alias="commitMessage")
    commit_url: str | None = Field(None, alias="commitUrl")
    timestamp: str | None = None


class NotificationRun(BaseModel):
    """What a scheduled or on-demand notification pass did."""

    skipped: bool = False
    reason: str | None = None
    users_processed: int = 0
    messages_sent: int = 0
    messages_failed: int = 0
    errors: list[str] = Field(default_factory=list)


class SubscriptionResult(BaseModel):
    """Outcome of a subscribe/unsubscribe command."""

    success: bool
    changed: bool = False
    error: str | None = None
