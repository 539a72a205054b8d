"""Yearly aggregation of regional series for the line charts.

Vegetation density, drought index, and CO2 emission tables share the
same ``(year, region, value)`` shape and go through the same pipeline:
filter by region, mean by year, then clip to the visible year window.

The window is a display clip applied to the fully computed series, so
it never changes which records feed a yearly mean.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

import pandas as pd

from evistory._types import AggregatedPoint, SeriesRecord

logger = logging.getLogger(__name__)

DEFAULT_WILDCARD: str = "US"


def aggregate_by_year(
    records: Iterable[SeriesRecord],
    region: str = DEFAULT_WILDCARD,
    *,
    wildcard: str = DEFAULT_WILDCARD,
) -> list[AggregatedPoint]:
    """Compute the mean value per year, optionally for one region.

    Args:
        records: Source records.
        region: Region to keep (exact, case-sensitive match), or the
            *wildcard* to aggregate across all regions.
        wildcard: Region name that disables filtering.

    Returns:
        One point per year present after filtering, ascending by year.
        Empty when nothing matches.

    Example:
        >>> recs = [
        ...     SeriesRecord(2020, "CA", 0.4),
        ...     SeriesRecord(2020, "TX", 0.6),
        ...     SeriesRecord(2021, "CA", 0.5),
        ... ]
        >>> [p.mean_value for p in aggregate_by_year(recs)]
        [0.5, 0.5]
    """
    rows = [
        (r.year, r.value)
        for r in records
        if region == wildcard or r.region == region
    ]
    if not rows:
        logger.debug("No records for region %r", region)
        return []

    frame = pd.DataFrame(rows, columns=["year", "value"])
    means = frame.groupby("year", sort=True)["value"].mean()

    return [
        AggregatedPoint(year=int(year), mean_value=float(value))
        for year, value in means.items()
    ]


def clip_window(
    points: Iterable[AggregatedPoint],
    min_year: int,
    max_year: int,
) -> list[AggregatedPoint]:
    """Keep points with ``min_year <= year <= max_year``, order unchanged."""
    return [p for p in points if min_year <= p.year <= max_year]


def series_extent(points: Sequence[AggregatedPoint]) -> tuple[float, float] | None:
    """Return ``(min, max)`` of ``mean_value`` for axis scaling.

    Returns:
        ``None`` for an empty series.
    """
    if not points:
        return None
    values = [p.mean_value for p in points]
    return (min(values), max(values))


def combine_series(
    series: Mapping[str, Sequence[AggregatedPoint]],
) -> pd.DataFrame:
    """Outer-join several named series on year.

    Used for the comparison chart (e.g. vegetation vs drought vs CO2).

    Args:
        series: Mapping of column name to aggregated points.

    Returns:
        DataFrame with a ``year`` column followed by one column per
        series, ascending by year. Years missing from a series are NaN.

    Example:
        >>> df = combine_series({
        ...     "evi": [AggregatedPoint(2020, 0.4)],
        ...     "co2": [AggregatedPoint(2021, 5.1)],
        ... })
        >>> df["year"].tolist()
        [2020, 2021]
    """
    if not series:
        return pd.DataFrame(columns=["year"])

    columns = [
        pd.Series(
            [p.mean_value for p in points],
            index=pd.Index([p.year for p in points], name="year", dtype="int64"),
            name=name,
            dtype="float64",
        )
        for name, points in series.items()
    ]
    combined = pd.concat(columns, axis=1, join="outer").sort_index()
    return combined.reset_index()
