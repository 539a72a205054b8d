"""Story-level entry points for the heatmap and line charts.

These functions take the user's current selection (year range, region,
display window) as explicit arguments, validate it, and run the pure
analysis functions with the active ``Config``.

Example:
    >>> import evistory as es
    >>> obs = es.read_pixel_csv("evi_pixels.csv")
    >>> grid = es.vegetation_change(obs, 2004, 2024)
    >>> grid.counts[None]  # missing pixels
    1532
    >>>
    >>> veg = es.read_series_csv("evi_by_state.csv")
    >>> trend = es.regional_trend(veg, "CA", window=(2005, 2015))
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from evistory._types import LegendEntry, PixelObservation, SeriesRecord, YearWindow
from evistory.analysis.grid import classify_grid, diff_grid, validate_thresholds
from evistory.analysis.series import aggregate_by_year, clip_window, series_extent
from evistory.config import Config, get_default_config
from evistory.exceptions import ConfigurationError, YearRangeError
from evistory.results import DiffGridResult, ResultMetadata, SeriesResult

logger = logging.getLogger(__name__)


def _check_year_range(start: int, end: int, label: str) -> None:
    if start > end:
        raise YearRangeError(
            what=f"Invalid {label}",
            cause=f"Start year {start} is after end year {end}",
            fix="Choose a start year on or before the end year",
        )


def _format_bound(value: float) -> str:
    return f"{value:g}"


def build_legend(
    thresholds: Sequence[float],
    colors: Sequence[str] | None = None,
    missing_color: str | None = None,
) -> list[LegendEntry]:
    """Build legend swatches for a threshold list.

    Args:
        thresholds: Ascending band boundaries.
        colors: One hex colour per band (``len(thresholds) + 1``).
            Defaults to the active config palette.
        missing_color: Colour for the missing-data swatch. Defaults to
            the active config value.

    Returns:
        One entry per band, lowest first, then the ``"No data"`` entry.

    Raises:
        ConfigurationError: If the colour count does not match the
            number of bands.

    Example:
        >>> [e.label for e in build_legend([-0.05, 0.05],
        ...                                ["#a6611a", "#f5f5f5", "#018571"])]
        ['< -0.05', '-0.05 to 0.05', '>= 0.05', 'No data']
    """
    bounds = validate_thresholds(thresholds)
    config = get_default_config()
    palette = tuple(colors) if colors is not None else config.band_colors
    band_count = len(bounds) + 1

    if len(palette) != band_count:
        raise ConfigurationError(
            what="Cannot build legend",
            cause=(
                f"{len(palette)} band colour(s) for {band_count} band(s) "
                f"from thresholds {list(bounds)}"
            ),
            fix="Provide exactly one colour per band (thresholds + 1)",
        )

    entries: list[LegendEntry] = []
    for band in range(band_count):
        if band == 0:
            label = f"< {_format_bound(bounds[0])}"
        elif band == band_count - 1:
            label = f">= {_format_bound(bounds[-1])}"
        else:
            label = f"{_format_bound(bounds[band - 1])} to {_format_bound(bounds[band])}"
        entries.append(LegendEntry(band=band, label=label, color=palette[band]))

    entries.append(
        LegendEntry(
            band=None,
            label="No data",
            color=missing_color if missing_color is not None else config.missing_color,
        )
    )
    return entries


def vegetation_change(
    observations: Iterable[PixelObservation],
    start_year: int,
    end_year: int,
    *,
    config: Config | None = None,
    source: str = "",
) -> DiffGridResult:
    """Compute the classified EVI change grid for a year range.

    Args:
        observations: Pixel observations covering at least the two years.
        start_year: Baseline year selected by the user.
        end_year: Comparison year selected by the user.
        config: Optional configuration override.
        source: Input name recorded in the result metadata.

    Returns:
        ``DiffGridResult`` with diffs, bands, and legend.

    Raises:
        YearRangeError: If ``start_year > end_year``.
    """
    _check_year_range(start_year, end_year, "year range")
    cfg = config if config is not None else get_default_config()
    thresholds = cfg.resolved_thresholds()

    rows = list(observations)
    diffs = diff_grid(rows, start_year, end_year, sentinel=cfg.sentinel_value)
    bands = classify_grid(diffs, thresholds)
    legend = build_legend(thresholds, cfg.band_colors, cfg.missing_color)
    missing = sum(1 for d in diffs if d.is_missing)

    logger.info(
        "Vegetation change %d → %d: %d pixels, %d missing",
        start_year,
        end_year,
        len(diffs),
        missing,
    )
    return DiffGridResult(
        diffs=diffs,
        bands=bands,
        start_year=start_year,
        end_year=end_year,
        thresholds=thresholds,
        legend=legend,
        metadata=ResultMetadata(
            source=source,
            record_count=len(rows),
            missing_count=missing,
            sentinel=cfg.sentinel_value,
        ),
    )


def regional_trend(
    records: Iterable[SeriesRecord],
    region: str | None = None,
    *,
    window: YearWindow | None = None,
    config: Config | None = None,
    source: str = "",
) -> SeriesResult:
    """Compute the yearly mean series for a region.

    Means are computed on all years; *window* only clips the visible
    slice and the axis extent.

    Args:
        records: Series records (vegetation, drought, or CO2).
        region: Region to keep; ``None`` or the config wildcard means all.
        window: Inclusive ``(min_year, max_year)`` display window.
        config: Optional configuration override.
        source: Input name recorded in the result metadata.

    Returns:
        ``SeriesResult`` with full and visible points.

    Raises:
        YearRangeError: If the window is inverted.
    """
    if window is not None:
        _check_year_range(window[0], window[1], "year window")
    cfg = config if config is not None else get_default_config()
    selected = region if region is not None else cfg.wildcard_region

    rows = list(records)
    points = aggregate_by_year(rows, selected, wildcard=cfg.wildcard_region)
    visible = clip_window(points, *window) if window is not None else list(points)

    logger.debug(
        "Trend for %s: %d year(s), %d visible", selected, len(points), len(visible)
    )
    return SeriesResult(
        points=points,
        visible=visible,
        region=selected,
        window=window,
        extent=series_extent(visible),
        metadata=ResultMetadata(source=source, record_count=len(rows)),
    )
