"""Runtime settings read from the environment."""
import os

from pydantic import BaseModel

from fear_greed_bot.constants import REQUEST_TIMEOUT_SECONDS
from fear_greed_bot.db.sessions import DEFAULT_DATABASE_URL


class Settings(BaseModel):
    telegram_bot_token: str | None = None
    telegram_webhook_secret: str | None = None
    admin_chat_id: str | None = None
    database_url: str = DEFAULT_DATABASE_URL
    sql_echo: bool = False
    legacy_kv_export: str | None = None
    log_level: str = "INFO"
    http_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            telegram_webhook_secret=os.getenv("TELEGRAM_WEBHOOK_SECRET") or None,
            admin_chat_id=os.getenv("ADMIN_CHAT_ID") or None,
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            sql_echo=os.getenv("SQL_ECHO", "0") == "1",
            legacy_kv_export=os.getenv("LEGACY_KV_EXPORT") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", REQUEST_TIMEOUT_SECONDS)),
        )
