"""Retry logic with specific backoff strategy."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

DEFAULT_DELAYS: tuple[float, ...] = (5, 20, 50)


def is_retryable_error(exc: Exception) -> bool:
  """Return True for rate-limit and quota failures."""
  error_msg = str(exc)
  is_quota_error = "Resource Exhausted" in error_msg or "RESOURCE_EXHAUSTED" in error_msg or "Quota Exceeded" in error_msg
  is_rate_limit = "429" in error_msg or "Too Many Requests" in error_msg
  return is_quota_error or is_rate_limit


async def retry_with_backoff(func: Callable[..., Awaitable[T]], *args: Any, delays: Sequence[float] = DEFAULT_DELAYS, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep, **kwargs: Any) -> T:
  """
  Execute a coroutine function with retries for 429/quota errors.

  Delays default to 5s, 20s, 50s before the final attempt.
  """
  for attempt, delay in enumerate(delays):
    try:
      return await func(*args, **kwargs)
    except Exception as e:
      if not is_retryable_error(e):
        # Non-retryable error, raise immediately
        raise
      logger.warning("Retry attempt %d/%d needed. Error: %s. Retrying in %ss...", attempt + 1, len(delays), e, delay)
      await sleep(delay)

  # Final attempt
  return await func(*args, **kwargs)
