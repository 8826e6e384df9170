"""Core provider abstractions."""
from fear_greed_bot.providers.core.http import (DEFAULT_RETRY_POLICY,
                                                RetryPolicy, fetch_with_retry)
from fear_greed_bot.providers.core.provider_abc import ProviderABC

__all__ = [
    "DEFAULT_RETRY_POLICY",
    "ProviderABC",
    "RetryPolicy",
    "fetch_with_retry",
]
