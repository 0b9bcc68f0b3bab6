from __future__ import annotations

import pytest

from astrawrite.ai.backoff import is_retryable_error, retry_with_backoff


class Flaky:
  def __init__(self, failures: list[Exception]) -> None:
    self.failures = failures
    self.calls = 0

  async def __call__(self, value: str) -> str:
    self.calls += 1
    if self.failures:
      raise self.failures.pop(0)
    return value


class NoSleep:
  def __init__(self) -> None:
    self.delays: list[float] = []

  async def __call__(self, delay: float) -> None:
    self.delays.append(delay)


@pytest.mark.parametrize("message, expected", [("429 Too Many Requests", True), ("RESOURCE_EXHAUSTED", True), ("Quota Exceeded for model", True), ("400 invalid argument", False)])
def test_is_retryable_error(message: str, expected: bool) -> None:
  assert is_retryable_error(RuntimeError(message)) is expected


@pytest.mark.anyio
async def test_retry_with_backoff_retries_rate_limits() -> None:
  func = Flaky([RuntimeError("429"), RuntimeError("RESOURCE_EXHAUSTED")])
  sleep = NoSleep()

  assert await retry_with_backoff(func, "done", sleep=sleep) == "done"
  assert func.calls == 3
  assert sleep.delays == [5, 20]


@pytest.mark.anyio
async def test_retry_with_backoff_raises_other_errors_immediately() -> None:
  func = Flaky([ValueError("bad request")])
  sleep = NoSleep()

  with pytest.raises(ValueError):
    await retry_with_backoff(func, "x", sleep=sleep)
  assert func.calls == 1
  assert sleep.delays == []


@pytest.mark.anyio
async def test_retry_with_backoff_gives_up_after_final_attempt() -> None:
  func = Flaky([RuntimeError("429")] * 4)

  with pytest.raises(RuntimeError, match="429"):
    await retry_with_backoff(func, "x", delays=(1, 2), sleep=NoSleep())
  assert func.calls == 3
