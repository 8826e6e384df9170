"""HTTP requests with bounded timeout and capped exponential backoff."""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from fear_greed_bot.constants import (MAX_RETRIES, RETRY_BACKOFF_MULTIPLIER,
                                      RETRY_DELAY_SECONDS,
                                      RETRYABLE_STATUS_CODES)
from fear_greed_bot.errors import network_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry transient failures.

    Only statuses in `retry_statuses` and transport errors (timeouts,
    connection failures) are retried. The response of the final attempt is
    returned as-is; a transport error on the final attempt is raised as a
    network AppError.
    """

    max_retries: int = MAX_RETRIES
    initial_delay: float = RETRY_DELAY_SECONDS
    backoff: float = RETRY_BACKOFF_MULTIPLIER
    retry_statuses: frozenset[int] = field(default_factory=lambda: RETRYABLE_STATUS_CODES)

    def delay_for(self, attempt: int) -> float:
        return self.initial_delay * (self.backoff ** attempt)


DEFAULT_RETRY_POLICY = RetryPolicy()


async def fetch_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs,
) -> httpx.Response:
    """Send a request, retrying transient failures per `policy`."""
    for attempt in range(policy.max_retries + 1):
        last_attempt = attempt == policy.max_retries
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            if last_attempt:
                raise network_error(
                    f"{method} {url} failed after {attempt + 1} attempts: {exc}", exc
                ) from exc
            logger.warning("%s %s failed (%s); retrying", method, url, exc)
        else:
            if last_attempt or response.status_code not in policy.retry_statuses:
                return response
            logger.warning(
                "%s %s returned %s; retrying", method, url, response.status_code
            )
        await sleep(policy.delay_for(attempt))
    raise AssertionError("unreachable")
