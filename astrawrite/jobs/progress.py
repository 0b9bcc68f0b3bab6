"""Heuristic progress estimates for streamed documents."""

from __future__ import annotations

import math
from collections.abc import Callable

from astrawrite.config import Settings

ProgressEstimator = Callable[[int], int]

# Streaming never reports completion; only source exhaustion does.
MAX_STREAMING_PROGRESS = 99


class LengthProgressEstimator:
  """Estimate progress from the buffer length against an expected document length."""

  def __init__(self, expected_length: int, *, cap: int = MAX_STREAMING_PROGRESS) -> None:
    if expected_length <= 0:
      raise ValueError("Expected document length must be positive.")
    if not 0 <= cap < 100:
      raise ValueError("Progress cap must be between 0 and 99.")
    self.expected_length = expected_length
    self.cap = cap

  def __call__(self, buffer_length: int) -> int:
    return min(self.cap, math.floor(buffer_length / self.expected_length * 100))

  def __repr__(self) -> str:
    return f"LengthProgressEstimator(expected_length={self.expected_length}, cap={self.cap})"


def expected_length_for_size(article_size: str, settings: Settings) -> int:
  """Return the configured expected document length for a size tier."""

  lengths = {"Small": settings.expected_length_small, "Medium": settings.expected_length_medium, "Large": settings.expected_length_large}
  if article_size not in lengths:
    raise ValueError(f"Unsupported article size '{article_size}'.")
  return lengths[article_size]


def estimator_for_size(article_size: str, settings: Settings, *, cap: int = MAX_STREAMING_PROGRESS) -> LengthProgressEstimator:
  """Build a progress estimator tuned to an article size tier."""

  return LengthProgressEstimator(expected_length_for_size(article_size, settings), cap=cap)
