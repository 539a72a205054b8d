"""Shared test fixtures for the evistory test suite."""

from __future__ import annotations

import pytest

from evistory._types import PixelObservation, SeriesRecord
from evistory.config import Config


@pytest.fixture
def test_config() -> Config:
    """Return a fresh default Config instance for test isolation."""
    return Config()


@pytest.fixture
def pixel_observations() -> list[PixelObservation]:
    """Return a 3x2 grid observed in 2010 and 2020.

    Row 0 holds a large decrease, a near-zero change, and a large
    increase. Row 1 holds the missing cases (sentinel at start,
    start-only, end-only).
    """
    start = {(0, 0): 0.50, (1, 0): 0.40, (2, 0): 0.30, (0, 1): 133.0, (1, 1): 0.2}
    end = {(0, 0): 0.20, (1, 0): 0.41, (2, 0): 0.60, (0, 1): 0.30, (2, 1): 0.4}
    obs = [PixelObservation(x, y, 2010, v) for (x, y), v in start.items()]
    obs += [PixelObservation(x, y, 2020, v) for (x, y), v in end.items()]
    return obs


@pytest.fixture
def vegetation_records() -> list[SeriesRecord]:
    """Return yearly EVI means for two states, 2000-2024."""
    records: list[SeriesRecord] = []
    for year in range(2000, 2025):
        records.append(SeriesRecord(year, "CA", 0.30 + 0.01 * (year - 2000)))
        records.append(SeriesRecord(year, "TX", 0.50))
    return records
