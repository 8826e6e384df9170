"""CNN Fear & Greed Index provider."""
import logging

import httpx
from pydantic import ValidationError

from fear_greed_bot.constants import (BROWSER_HEADERS, FEAR_GREED_URL,
                                      REQUEST_TIMEOUT_SECONDS)
from fear_greed_bot.errors import api_error
from fear_greed_bot.providers.core import (DEFAULT_RETRY_POLICY, ProviderABC,
                                           RetryPolicy, fetch_with_retry)
from fear_greed_bot.schemas import SentimentReading

logger = logging.getLogger(__name__)


class FearGreedProvider(ProviderABC):
    """Fetches the current Fear & Greed reading over HTTP.

    The endpoint rejects requests that do not look like a browser, so the
    client is created with browser-like headers.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        url: str = FEAR_GREED_URL,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._url = url
        self._retry_policy = retry_policy
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=BROWSER_HEADERS)

    async def get_index(self) -> SentimentReading:
        """Current reading. Raises a network or API AppError on failure."""
        response = await fetch_with_retry(self._client, "GET", self._url, policy=self._retry_policy)
        if response.status_code != 200:
            raise api_error(
                f"Fear & Greed API returned HTTP {response.status_code}",
                status_code=502,
            )
        try:
            return SentimentReading.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("Unexpected Fear & Greed payload: %s", response.text[:200])
            raise api_error("Invalid Fear & Greed Index response", status_code=502, cause=exc) from exc

    async def close(self) -> None:
        await self._client.aclose()
