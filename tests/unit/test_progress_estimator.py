from __future__ import annotations

from dataclasses import replace

import pytest

from astrawrite.jobs.progress import MAX_STREAMING_PROGRESS, LengthProgressEstimator, estimator_for_size, expected_length_for_size


def test_length_estimator_scales_with_buffer_length() -> None:
  estimator = LengthProgressEstimator(4000)
  assert estimator(0) == 0
  assert estimator(1000) == 25
  assert estimator(3999) == 99


def test_length_estimator_never_reports_completion() -> None:
  estimator = LengthProgressEstimator(100)
  assert estimator(10_000) == MAX_STREAMING_PROGRESS


def test_length_estimator_honors_lower_cap() -> None:
  estimator = LengthProgressEstimator(2500, cap=95)
  assert estimator(5000) == 95


@pytest.mark.parametrize("expected_length, cap", [(0, 99), (-5, 99), (100, 100), (100, -1)])
def test_length_estimator_rejects_invalid_configuration(expected_length: int, cap: int) -> None:
  with pytest.raises(ValueError):
    LengthProgressEstimator(expected_length, cap=cap)


def test_expected_length_follows_size_tier(settings) -> None:
  tuned = replace(settings, expected_length_small=1000, expected_length_medium=2000, expected_length_large=3000)
  assert expected_length_for_size("Small", tuned) == 1000
  assert expected_length_for_size("Large", tuned) == 3000
  assert estimator_for_size("Medium", tuned).expected_length == 2000


def test_expected_length_rejects_unknown_size(settings) -> None:
  with pytest.raises(ValueError, match="Unsupported article size"):
    expected_length_for_size("Huge", settings)
