"""Internal shared record types.

These types define the data shapes passed between the loaders, the
analysis functions, and the result objects. Re-exported from
``evistory.__init__`` for callers that build records directly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

PixelKey = tuple[int, int]
"""Pixel identity ``(x, y)``."""

YearWindow = tuple[int, int]
"""Inclusive ``(min_year, max_year)`` display window."""


@dataclass(frozen=True)
class PixelObservation:
    """One EVI observation for a pixel in a given year.

    Args:
        x: Pixel column.
        y: Pixel row.
        year: Observation year.
        value: EVI value, the sentinel, or ``None`` when absent.

    Example:
        >>> obs = PixelObservation(x=3, y=7, year=2020, value=0.41)
        >>> obs.key
        (3, 7)
    """

    x: int
    y: int
    year: int
    value: float | None

    @property
    def key(self) -> PixelKey:
        return (self.x, self.y)


@dataclass(frozen=True)
class PixelDiff:
    """Per-pixel change between two years.

    ``diff`` is NaN whenever ``is_missing`` is true.

    Example:
        >>> PixelDiff(x=0, y=0, diff=0.12, is_missing=False).diff
        0.12
    """

    x: int
    y: int
    diff: float
    is_missing: bool

    def __eq__(self, other: object) -> bool:
        # NaN != NaN would make missing pixels unequal to themselves.
        if not isinstance(other, PixelDiff):
            return NotImplemented
        if (self.x, self.y, self.is_missing) != (other.x, other.y, other.is_missing):
            return False
        if self.is_missing:
            return math.isnan(self.diff) and math.isnan(other.diff)
        return self.diff == other.diff

    def __hash__(self) -> int:
        return hash((self.x, self.y, self.is_missing))


@dataclass(frozen=True)
class SeriesRecord:
    """One value of a yearly regional series (vegetation, drought, CO2).

    Example:
        >>> SeriesRecord(year=2020, region="CA", value=0.4).region
        'CA'
    """

    year: int
    region: str
    value: float


@dataclass(frozen=True)
class AggregatedPoint:
    """Mean value of a series for one year."""

    year: int
    mean_value: float


@dataclass(frozen=True)
class LegendEntry:
    """One legend swatch.

    Args:
        band: Band index, or ``None`` for the missing-data swatch.
        label: Human-readable range label (e.g. ``"-0.2 to -0.05"``).
        color: Hex colour.
    """

    band: int | None
    label: str
    color: str
