"""Telegram Bot API client for outbound messages."""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

import httpx

from fear_greed_bot.constants import (REQUEST_TIMEOUT_SECONDS,
                                      TELEGRAM_BASE_URL, TELEGRAM_BATCH_PAUSE_SECONDS,
                                      TELEGRAM_BATCH_SIZE)
from fear_greed_bot.errors import AppError
from fear_greed_bot.providers.core import (DEFAULT_RETRY_POLICY, ProviderABC,
                                           RetryPolicy, fetch_with_retry)
from fear_greed_bot.schemas import BroadcastResult, SendResult

logger = logging.getLogger(__name__)


class TelegramClient(ProviderABC):
    """Sends Markdown messages through sendMessage.

    Sending never raises: failures are logged and reported in the returned
    SendResult so that one bad chat cannot break a broadcast.
    """

    def __init__(
        self,
        token: str | None,
        client: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        batch_size: int = TELEGRAM_BATCH_SIZE,
        batch_pause: float = TELEGRAM_BATCH_PAUSE_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._token = token
        self._retry_policy = retry_policy
        self._batch_size = batch_size
        self._batch_pause = batch_pause
        self._sleep = sleep
        self._client = client or httpx.AsyncClient(
            base_url=TELEGRAM_BASE_URL,
            timeout=REQUEST_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
        )

    async def send_message(
        self, chat_id: int | str, text: str, parse_mode: str = "Markdown"
    ) -> SendResult:
        target = str(chat_id)
        if not self._token:
            logger.error("Cannot send to %s: Telegram bot token is not configured", target)
            return SendResult(ok=False, chat_id=target, error="Telegram bot token is not configured")

        payload = {"chat_id": target, "text": text, "parse_mode": parse_mode}
        try:
            response = await fetch_with_retry(
                self._client,
                "POST",
                f"/bot{self._token}/sendMessage",
                policy=self._retry_policy,
                json=payload,
            )
        except AppError as exc:
            logger.error("Telegram send to %s failed: %s", target, exc.message)
            return SendResult(ok=False, chat_id=target, error=exc.message)

        if response.is_success:
            return SendResult(ok=True, chat_id=target, status_code=response.status_code)

        try:
            description = response.json().get("description") or response.text
        except ValueError:
            description = response.text
        logger.error("Telegram API error for %s (HTTP %s): %s", target, response.status_code, description)
        return SendResult(
            ok=False, chat_id=target, status_code=response.status_code, error=description
        )

    async def broadcast(self, chat_ids: Iterable[int | str], text: str) -> BroadcastResult:
        """Send the same text to every chat, pausing between batches for rate limits."""
        ids = list(chat_ids)
        result = BroadcastResult(total_subscribers=len(ids))
        for index, chat_id in enumerate(ids):
            if index and index % self._batch_size == 0:
                await self._sleep(self._batch_pause)
            sent = await self.send_message(chat_id, text)
            if sent.ok:
                result.successful += 1
            else:
                result.failed += 1
                result.errors.append(f"{sent.chat_id}: {sent.error}")
        return result

    async def close(self) -> None:
        await self._client.aclose()
