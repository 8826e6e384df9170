"""Notification orchestrator: scheduled broadcasts and on-demand /now replies."""
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Protocol

from fear_greed_bot.errors import to_app_error
from fear_greed_bot.providers import TelegramClient, gauge_chart_url
from fear_greed_bot.schemas import NotificationRun, SentimentReading
from fear_greed_bot.services.sentiment import SentimentService
from fear_greed_bot.services.watchlist import WatchlistService
from fear_greed_bot.trading.holidays import HolidayCalendar
from fear_greed_bot.trading.signals import (SignalService,
                                            data_unavailable_signal,
                                            format_signal_message)

logger = logging.getLogger(__name__)


class SubscriberSource(Protocol):
    async def get_active_chat_ids(self) -> list[str]: ...


def sentiment_header(sentiment: SentimentReading, chart_url: str) -> str:
    score = f"{round(sentiment.score, 2):.2f}"
    return (
        f"⚠️ The current [Fear and Greed Index]({chart_url}) rating is "
        f"{score}% (*{sentiment.normalized_rating.upper()}*)."
    )


class NotificationService:
    """Drives one notification pass.

    Broadcasts run only on trading days and only send while the rating is
    fear or extreme fear. A failure on one ticker degrades that message to a
    data-unavailable HOLD; a failure on one user is logged and skipped.
    """

    def __init__(
        self,
        sentiment: SentimentService,
        signals: SignalService,
        subscribers: SubscriberSource,
        watchlists: WatchlistService,
        telegram: TelegramClient,
        calendar: HolidayCalendar,
        admin_chat_id: str | None = None,
        chart_url: Callable[[float], str] = gauge_chart_url,
    ) -> None:
        self._sentiment = sentiment
        self._signals = signals
        self._subscribers = subscribers
        self._watchlists = watchlists
        self._telegram = telegram
        self._calendar = calendar
        self._admin_chat_id = admin_chat_id
        self._chart_url = chart_url

    async def run_scheduled(self, now: datetime | None = None) -> NotificationRun:
        """Broadcast signals for every subscriber's watchlist."""
        now = now or datetime.now(timezone.utc)
        run = NotificationRun()
        try:
            if not self._calendar.is_trading_day(now):
                holiday = self._calendar.is_bank_holiday(now)
                if holiday is not None:
                    run.reason = holiday.name
                    logger.info(
                        "Scheduled execution skipped: %s (%s)", holiday.name, holiday.date.isoformat()
                    )
                else:
                    run.reason = "weekend"
                    logger.info("Scheduled execution skipped: weekend (%s)", now.date().isoformat())
                run.skipped = True
                return run

            sentiment = await self._sentiment.get_index()
            header = sentiment_header(sentiment, self._chart_url(sentiment.score))
            chat_ids = await self._subscribers.get_active_chat_ids()

            for chat_id in chat_ids:
                try:
                    await self._watchlists.initialize_if_missing(chat_id)
                except Exception:  # pylint: disable=broad-except
                    logger.exception("Error initializing watchlist for user %s", chat_id)

            if not sentiment.is_fear:
                logger.info("Rating is %s; no broadcast sent", sentiment.normalized_rating)
                run.reason = f"rating {sentiment.normalized_rating}"
                return run

            for chat_id in chat_ids:
                try:
                    for ticker in await self._watchlists.get(chat_id):
                        text = await self._signal_text(sentiment, ticker, chat_id)
                        await self._send(run, chat_id, f"{header}\n\n{text}")
                    run.users_processed += 1
                except Exception as exc:  # pylint: disable=broad-except
                    logger.exception("Error processing watchlist for user %s", chat_id)
                    run.errors.append(f"{chat_id}: {exc}")
        except Exception as exc:  # pylint: disable=broad-except
            app_error = to_app_error(exc)
            logger.exception("Scheduled run failed: %s", app_error.message)
            run.errors.append(app_error.message)
            await self._notify_admin(f"An error occurred: {app_error.message}")
        return run

    async def send_now(
        self,
        chat_id: int | str,
        ticker: str | None = None,
        now: datetime | None = None,
    ) -> NotificationRun:
        """Send signals to one chat regardless of the rating.

        The Fear & Greed header is included for an explicit ticker, or for
        the whole watchlist when the rating is fear.

        On a non-trading day the reply carries a market-closed notice
        instead of being skipped. If the sentiment fetch fails each ticker
        still gets a data-unavailable HOLD.
        """
        now = now or datetime.now(timezone.utc)
        run = NotificationRun(users_processed=1)
        tickers = [ticker] if ticker else await self._watchlists.get(chat_id)
        notice = self._market_closed_notice(now)

        try:
            sentiment = await self._sentiment.get_index()
        except Exception as exc:  # pylint: disable=broad-except
            app_error = to_app_error(exc)
            logger.error("Sentiment unavailable for /now (%s): %s", chat_id, app_error.message)
            run.errors.append(app_error.message)
            for symbol in tickers:
                text = format_signal_message(data_unavailable_signal(None, symbol), None, symbol)
                await self._send(run, chat_id, self._compose(notice, text))
            await self._notify_admin(f"An error occurred: {app_error.message}")
            return run

        header = None
        if sentiment.is_fear or ticker:
            header = sentiment_header(sentiment, self._chart_url(sentiment.score))
        for symbol in tickers:
            text = await self._signal_text(sentiment, symbol, chat_id)
            await self._send(run, chat_id, self._compose(notice, header, text))
        return run

    async def _signal_text(self, sentiment: SentimentReading, ticker: str, chat_id: int | str) -> str:
        try:
            signal = await self._signals.evaluate_for_user(sentiment, ticker, chat_id)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Error evaluating trading signal for %s (user %s)", ticker, chat_id)
            signal = data_unavailable_signal(sentiment, ticker)
        return format_signal_message(signal, sentiment, ticker)

    def _market_closed_notice(self, now: datetime) -> str | None:
        if self._calendar.is_trading_day(now):
            return None
        holiday = self._calendar.is_bank_holiday(now)
        reason = holiday.name if holiday else "weekend"
        return f"ℹ️ Market is closed today ({reason}). Signals are based on the last close."

    @staticmethod
    def _compose(*parts: str | None) -> str:
        return "\n\n".join(p for p in parts if p)

    async def _send(self, run: NotificationRun, chat_id: int | str, text: str) -> None:
        result = await self._telegram.send_message(chat_id, text)
        if result.ok:
            run.messages_sent += 1
        else:
            run.messages_failed += 1
            run.errors.append(f"{result.chat_id}: {result.error}")

    async def _notify_admin(self, text: str) -> None:
        if not self._admin_chat_id:
            return
        result = await self._telegram.send_message(self._admin_chat_id, text)
        if not result.ok:
            logger.error("Failed to notify admin: %s", result.error)
