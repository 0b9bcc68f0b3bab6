"""Identifier utilities."""

from __future__ import annotations

import time
import uuid


def generate_job_id() -> str:
  """Return a new generation job identifier."""
  return str(uuid.uuid4())


def generate_bulk_job_id(index: int) -> str:
  """Return a time-based identifier for one item of a bulk run."""
  # The index keeps ids unique when several items start within the same millisecond.
  return f"bulk-{now_millis()}-{index}"


def generate_run_id() -> str:
  """Return a new identifier for a bulk or cluster run."""
  return uuid.uuid4().hex


def generate_key_id() -> str:
  """Return a new API key record identifier."""
  return str(uuid.uuid4())


def now_millis() -> int:
  """Return the current wall-clock time in epoch milliseconds."""
  return int(time.time() * 1000)
