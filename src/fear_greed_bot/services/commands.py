"""Telegram command handling.

Validation problems are answered with a rejection message; storage failures
with a generic apology. Anything else propagates so the webhook can answer
with a 500.
"""
import logging
import math
import re
from datetime import datetime, timezone

from fear_greed_bot.constants import (COMMAND_EXECUTE, COMMAND_EXECUTIONS,
                                      COMMAND_HELP, COMMAND_NOW, COMMAND_START,
                                      COMMAND_STOP, COMMAND_WATCH,
                                      COMMAND_WATCHLIST, MESSAGE_GENERIC_ERROR,
                                      MESSAGE_HELP, MESSAGE_SUBSCRIBED,
                                      MESSAGE_UNSUBSCRIBED)
from fear_greed_bot.db.errors import StorageError
from fear_greed_bot.errors import AppError, ErrorType, validation_error
from fear_greed_bot.providers import TelegramClient
from fear_greed_bot.services.notifications import NotificationService
from fear_greed_bot.services.subscriptions import SubscriptionService
from fear_greed_bot.services.watchlist import WatchlistService, validate_ticker
from fear_greed_bot.trading.executions import (ExecutionService,
                                               format_execution_history)

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

EXECUTE_USAGE = (
    "❌ Usage: /execute TICKER PRICE [YYYY-MM-DD] "
    "(e.g., /execute SPY 400.50 or /execute SPY 400.50 2024-01-15)"
)
WATCHLIST_USAGE = "❌ Usage: /watchlist add TICKER or /watchlist remove TICKER"


def parse_price(raw: str) -> float:
    try:
        price = float(raw)
    except ValueError:
        price = math.nan
    if not math.isfinite(price) or price <= 0:
        raise validation_error(f'❌ Invalid price: "{raw}". Please provide a positive number.')
    return price


def parse_execution_date(raw: str) -> datetime:
    """YYYY-MM-DD as midnight UTC; impossible dates such as 2024-02-30 are rejected."""
    try:
        if not _DATE_RE.match(raw):
            raise ValueError(raw)
        day = datetime.strptime(raw, "%Y-%m-%d")
    except ValueError:
        raise validation_error(
            f'❌ Invalid date: "{raw}". Please use YYYY-MM-DD format (e.g., 2024-01-15).'
        ) from None
    return day.replace(tzinfo=timezone.utc)


def split_command(text: str) -> tuple[str, list[str]]:
    """('/cmd', args) with any @botname suffix stripped from the command."""
    parts = text.strip().split()
    if not parts:
        return "", []
    command = parts[0].split("@", 1)[0].lower()
    return command, parts[1:]


class CommandHandler:
    """Dispatches one incoming text message to the matching command."""

    def __init__(
        self,
        telegram: TelegramClient,
        subscriptions: SubscriptionService,
        watchlists: WatchlistService,
        executions: ExecutionService,
        notifications: NotificationService,
    ) -> None:
        self._telegram = telegram
        self._subscriptions = subscriptions
        self._watchlists = watchlists
        self._executions = executions
        self._notifications = notifications
        self._routes = {
            COMMAND_START: self._start,
            COMMAND_STOP: self._stop,
            COMMAND_HELP: self._help,
            COMMAND_NOW: self._now,
            COMMAND_EXECUTE: self._execute,
            COMMAND_EXECUTIONS: self._executions_history,
            COMMAND_WATCHLIST: self._watchlist,
            COMMAND_WATCH: self._watchlist,
        }

    async def handle(self, chat_id: int | str, text: str) -> bool:
        """Run the command in `text`. False if it was not a known command."""
        command, args = split_command(text)
        route = self._routes.get(command)
        if route is None:
            return False
        try:
            await route(chat_id, args)
        except AppError as exc:
            if exc.type is not ErrorType.VALIDATION:
                raise
            await self._reply(chat_id, exc.message)
        except StorageError:
            logger.exception("Storage failure handling %s for %s", command, chat_id)
            await self._reply(chat_id, MESSAGE_GENERIC_ERROR)
        return True

    async def _reply(self, chat_id: int | str, text: str) -> None:
        await self._telegram.send_message(chat_id, text)

    async def _start(self, chat_id: int | str, _args: list[str]) -> None:
        result = await self._subscriptions.subscribe(chat_id)
        await self._reply(chat_id, MESSAGE_SUBSCRIBED if result.success else MESSAGE_GENERIC_ERROR)

    async def _stop(self, chat_id: int | str, _args: list[str]) -> None:
        result = await self._subscriptions.unsubscribe(chat_id)
        await self._reply(chat_id, MESSAGE_UNSUBSCRIBED if result.success else MESSAGE_GENERIC_ERROR)

    async def _help(self, chat_id: int | str, _args: list[str]) -> None:
        await self._reply(chat_id, MESSAGE_HELP)

    async def _now(self, chat_id: int | str, args: list[str]) -> None:
        ticker = validate_ticker(args[0]) if args else None
        await self._notifications.send_now(chat_id, ticker)

    async def _execute(self, chat_id: int | str, args: list[str]) -> None:
        if len(args) not in (2, 3):
            raise validation_error(EXECUTE_USAGE)
        ticker = validate_ticker(args[0])
        price = parse_price(args[1])
        execution_date = parse_execution_date(args[2]) if len(args) == 3 else None
        outcome = await self._executions.execute(chat_id, ticker, price, execution_date)
        await self._reply(chat_id, outcome.message)

    async def _executions_history(self, chat_id: int | str, args: list[str]) -> None:
        ticker = validate_ticker(args[0]) if args else None
        history = await self._executions.history(chat_id, ticker)
        await self._reply(chat_id, format_execution_history(history))

    async def _watchlist(self, chat_id: int | str, args: list[str]) -> None:
        if not args:
            tickers = await self._watchlists.get(chat_id)
            await self._reply(chat_id, WatchlistService.format(tickers))
            return
        if len(args) != 2 or args[0].lower() not in ("add", "remove"):
            raise validation_error(WATCHLIST_USAGE)
        action, raw = args[0].lower(), args[1]
        ticker = validate_ticker(raw)
        if action == "add":
            added = await self._watchlists.add(chat_id, ticker)
            status = f"✅ Added {ticker} to your watchlist." if added else f"ℹ️ {ticker} is already in your watchlist."
        else:
            removed = await self._watchlists.remove(chat_id, ticker)
            status = f"✅ Removed {ticker} from your watchlist." if removed else f"ℹ️ {ticker} is not in your watchlist."
        tickers = await self._watchlists.get(chat_id)
        await self._reply(chat_id, f"{status}\n\n{WatchlistService.format(tickers)}")
