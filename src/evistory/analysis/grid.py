"""Per-pixel EVI differencing and change-band classification.

Pure computation module: no file access, no configuration lookup.
Takes typed records in, returns typed records (or numpy arrays) out.
"""

from __future__ import annotations

import bisect
import logging
import math
from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np
import numpy.typing as npt

from evistory._types import PixelDiff, PixelKey, PixelObservation
from evistory.exceptions import ClassificationError

logger = logging.getLogger(__name__)

DEFAULT_SENTINEL: float = 133.0


def _is_missing_value(value: float | None, sentinel: float) -> bool:
    """Return ``True`` for absent, non-finite, or sentinel values."""
    if value is None:
        return True
    if not math.isfinite(value):
        return True
    return value == sentinel


def _snapshot(
    observations: Iterable[PixelObservation],
    year: int,
) -> dict[PixelKey, float | None]:
    """Build a ``(x, y) -> value`` lookup for a single year."""
    lookup: dict[PixelKey, float | None] = {}
    duplicates = 0
    for obs in observations:
        if obs.year != year:
            continue
        if obs.key in lookup:
            duplicates += 1
        lookup[obs.key] = obs.value
    if duplicates:
        logger.debug(
            "%d duplicate pixel rows for year %d; last value kept",
            duplicates,
            year,
        )
    return lookup


def diff_grid(
    observations: Iterable[PixelObservation],
    start_year: int,
    end_year: int,
    *,
    sentinel: float = DEFAULT_SENTINEL,
) -> list[PixelDiff]:
    """Compute per-pixel EVI change between two years.

    The output covers the union of pixels observed in either year. A
    pixel is missing when either endpoint is absent, ``None``, non-finite,
    or equal to *sentinel*; its ``diff`` is then NaN. Otherwise
    ``diff = end_value - start_value``.

    ``start_year <= end_year`` is not checked here.

    Args:
        observations: Pixel observations for any number of years.
        start_year: Baseline year.
        end_year: Comparison year.
        sentinel: Reserved "outside region of interest" value.

    Returns:
        One ``PixelDiff`` per pixel, sorted by ``(y, x)``.

    Example:
        >>> obs = [
        ...     PixelObservation(0, 0, 2010, 0.3),
        ...     PixelObservation(0, 0, 2020, 0.5),
        ... ]
        >>> round(diff_grid(obs, 2010, 2020)[0].diff, 2)
        0.2
    """
    # Materialize once; the snapshots iterate twice.
    rows = list(observations)
    start = _snapshot(rows, start_year)
    end = _snapshot(rows, end_year)

    diffs: list[PixelDiff] = []
    for key in sorted(start.keys() | end.keys(), key=lambda k: (k[1], k[0])):
        x, y = key
        # Absent keys come back as None and count as missing.
        start_value = start.get(key)
        end_value = end.get(key)
        if (
            start_value is None
            or end_value is None
            or _is_missing_value(start_value, sentinel)
            or _is_missing_value(end_value, sentinel)
        ):
            diffs.append(PixelDiff(x=x, y=y, diff=float("nan"), is_missing=True))
            continue
        diffs.append(
            PixelDiff(x=x, y=y, diff=end_value - start_value, is_missing=False)
        )

    logger.debug(
        "Diffed %d pixels between %d and %d (%d missing)",
        len(diffs),
        start_year,
        end_year,
        sum(1 for d in diffs if d.is_missing),
    )
    return diffs


def validate_thresholds(thresholds: Sequence[float]) -> tuple[float, ...]:
    """Return *thresholds* as a tuple, rejecting unusable lists.

    Raises:
        ClassificationError: If the list is empty, contains non-finite
            values, or is not strictly ascending.
    """
    values = tuple(float(t) for t in thresholds)
    if not values:
        raise ClassificationError(
            what="Cannot classify change",
            cause="Threshold list is empty",
            fix="Provide at least one boundary, e.g. [-0.05, 0.05]",
        )
    if any(not math.isfinite(v) for v in values):
        raise ClassificationError(
            what="Cannot classify change",
            cause=f"Non-finite threshold in {list(values)}",
            fix="Use finite numeric boundaries",
        )
    if any(b <= a for a, b in zip(values, values[1:])):
        raise ClassificationError(
            what="Cannot classify change",
            cause=f"Thresholds are not strictly ascending: {list(values)}",
            fix="Sort the boundaries and remove duplicates",
        )
    return values


def classify_diff(diff: float, thresholds: Sequence[float]) -> int:
    """Map a change value to its band index.

    Returns the index of the first boundary *diff* is strictly less
    than, or ``len(thresholds)`` if it is at or above every boundary.
    Band ``i`` therefore covers ``[t[i-1], t[i])``.

    Example:
        >>> classify_diff(0.0, [-0.2, -0.05, 0.05, 0.2])
        2
        >>> classify_diff(0.2, [-0.2, -0.05, 0.05, 0.2])
        4
    """
    bounds = validate_thresholds(thresholds)
    if math.isnan(diff):
        raise ClassificationError(
            what="Cannot classify change",
            cause="Change value is NaN",
            fix="Filter missing pixels before classifying",
        )
    return bisect.bisect_right(bounds, diff)


def classify_grid(
    diffs: Iterable[PixelDiff],
    thresholds: Sequence[float],
) -> list[int | None]:
    """Classify each pixel diff, yielding ``None`` for missing pixels."""
    bounds = validate_thresholds(thresholds)
    return [
        None if d.is_missing else bisect.bisect_right(bounds, d.diff) for d in diffs
    ]


def tally_bands(
    bands: Iterable[int | None],
    band_total: int,
) -> dict[int | None, int]:
    """Count band indices; key ``None`` holds the missing count.

    Every band in ``range(band_total)`` appears in the result, including
    empty ones.
    """
    counter: Counter[int | None] = Counter(bands)
    counts: dict[int | None, int] = {
        band: counter.get(band, 0) for band in range(band_total)
    }
    counts[None] = counter.get(None, 0)
    return counts


def band_counts(
    diffs: Iterable[PixelDiff],
    thresholds: Sequence[float],
) -> dict[int | None, int]:
    """Classify *diffs* and count pixels per band.

    See ``tally_bands`` for the shape of the result.
    """
    return tally_bands(classify_grid(diffs, thresholds), len(thresholds) + 1)


def diff_to_array(
    diffs: Iterable[PixelDiff],
    shape: tuple[int, int] | None = None,
) -> npt.NDArray[np.floating[Any]]:
    """Render diffs into a dense ``(height, width)`` float grid.

    Missing and unobserved cells are NaN.

    Args:
        diffs: Pixel diffs to place.
        shape: Explicit ``(height, width)``. Defaults to the smallest
            grid holding every pixel.

    Returns:
        Float64 array indexed ``[y, x]``.

    Raises:
        ValueError: If a pixel falls outside an explicit *shape*.
    """
    items = list(diffs)
    if shape is None:
        height = max((d.y for d in items), default=-1) + 1
        width = max((d.x for d in items), default=-1) + 1
        shape = (height, width)

    grid: npt.NDArray[np.floating[Any]] = np.full(shape, np.nan, dtype=np.float64)
    for d in items:
        if not (0 <= d.y < shape[0] and 0 <= d.x < shape[1]):
            msg = f"pixel ({d.x}, {d.y}) outside grid shape {shape}"
            raise ValueError(msg)
        if not d.is_missing:
            grid[d.y, d.x] = d.diff
    return grid
