"""Validated loading of pixel and series tables.

Turns loosely typed pandas rows into ``PixelObservation`` and
``SeriesRecord`` instances. Cells that do not coerce to finite
numbers are reported (``strict=True``) or dropped with a warning,
never passed on as NaN or infinity.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from evistory._types import PixelObservation, SeriesRecord
from evistory.exceptions import RecordValidationError

logger = logging.getLogger(__name__)

PIXEL_COLUMNS: tuple[str, ...] = ("x", "y", "year", "value")

_MAX_REPORTED_ROWS = 10


def _require_columns(df: pd.DataFrame, columns: tuple[str, ...], kind: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise RecordValidationError(
            what=f"Cannot load {kind} table",
            cause=f"Missing column(s): {', '.join(missing)}",
            fix=f"Provide columns: {', '.join(columns)}",
        )


def _format_rows(index: pd.Index) -> str:
    shown = ", ".join(str(i) for i in index[:_MAX_REPORTED_ROWS])
    if len(index) > _MAX_REPORTED_ROWS:
        shown += f", ... ({len(index)} total)"
    return shown


def _coerce_integer(series: pd.Series) -> tuple[pd.Series, pd.Series]:
    """Coerce to numbers; return ``(values, bad_mask)``.

    Non-numeric, empty, and fractional cells are bad.
    """
    numeric = pd.to_numeric(series, errors="coerce")
    bad = numeric.isna() | (numeric.notna() & (numeric % 1 != 0))
    return numeric, bad


def _reject_or_drop(
    df: pd.DataFrame,
    bad: pd.Series,
    *,
    kind: str,
    reason: str,
    strict: bool,
) -> pd.DataFrame:
    if not bad.any():
        return df
    bad_index = df.index[bad.to_numpy()]
    if strict:
        raise RecordValidationError(
            what=f"Invalid {kind} rows",
            cause=f"{reason} in row(s) {_format_rows(bad_index)}",
            fix="Clean the source table, or load with strict=False to drop them",
        )
    logger.warning("Dropping %d invalid %s row(s): %s", len(bad_index), kind, reason)
    return df.loc[~bad.to_numpy()]


def pixel_observations_from_frame(
    df: pd.DataFrame,
    *,
    strict: bool = True,
) -> list[PixelObservation]:
    """Convert a pixel table to observations.

    Requires columns ``x``, ``y``, ``year``, and ``value``. Coordinates
    and years must be whole numbers. An empty ``value`` cell becomes
    ``None`` (absent); any other non-numeric or infinite value is
    invalid.

    Args:
        df: Pixel table, one row per pixel-year.
        strict: Raise on invalid rows instead of dropping them.

    Returns:
        Observations in table order.

    Raises:
        RecordValidationError: If columns are missing, or rows are
            invalid and *strict* is set.
    """
    _require_columns(df, PIXEL_COLUMNS, "pixel")

    coords: dict[str, pd.Series] = {}
    bad = pd.Series(False, index=df.index)
    for column in ("x", "y", "year"):
        coords[column], column_bad = _coerce_integer(df[column])
        bad |= column_bad

    raw_value = df["value"]
    value = pd.to_numeric(raw_value, errors="coerce")
    # Blank cells are absent data; text that fails coercion and
    # infinite values are errors.
    blank = raw_value.isna() | (raw_value.astype(str).str.strip() == "")
    non_finite = value.isna() | value.isin([np.inf, -np.inf])
    bad |= non_finite & ~blank

    frame = pd.DataFrame(
        {"x": coords["x"], "y": coords["y"], "year": coords["year"], "value": value}
    )
    frame = _reject_or_drop(
        frame,
        bad,
        kind="pixel",
        reason="Non-numeric or fractional x/y/year, or non-numeric or infinite value",
        strict=strict,
    )

    observations = [
        PixelObservation(
            x=int(row.x),
            y=int(row.y),
            year=int(row.year),
            value=None if np.isnan(row.value) else float(row.value),
        )
        for row in frame.itertuples(index=False)
    ]
    logger.debug("Loaded %d pixel observations", len(observations))
    return observations


def series_records_from_frame(
    df: pd.DataFrame,
    *,
    value_column: str = "value",
    region_column: str = "region",
    year_column: str = "year",
    strict: bool = True,
) -> list[SeriesRecord]:
    """Convert a yearly regional table to series records.

    Column names are configurable because the vegetation, drought, and
    CO2 tables name their value columns differently.

    Raises:
        RecordValidationError: If columns are missing, or rows are
            invalid and *strict* is set.
    """
    _require_columns(df, (year_column, region_column, value_column), "series")

    year, bad = _coerce_integer(df[year_column])
    value = pd.to_numeric(df[value_column], errors="coerce")
    region = df[region_column]
    non_finite = value.isna() | value.isin([np.inf, -np.inf])
    bad |= non_finite | region.isna() | (region.astype(str).str.strip() == "")

    frame = pd.DataFrame({"year": year, "region": region, "value": value})
    frame = _reject_or_drop(
        frame,
        bad,
        kind="series",
        reason=(
            f"Non-numeric {year_column}, non-finite {value_column}, "
            f"or empty {region_column}"
        ),
        strict=strict,
    )

    records = [
        SeriesRecord(year=int(row.year), region=str(row.region), value=float(row.value))
        for row in frame.itertuples(index=False)
    ]
    logger.debug("Loaded %d series records", len(records))
    return records


def _read_csv(path: Path | str, kind: str) -> pd.DataFrame:
    resolved = Path(path).expanduser()
    try:
        # Keep cells as text so validation sees the original values;
        # only blank cells become NaN.
        df = pd.read_csv(resolved, dtype=str, keep_default_na=False, na_values=[""])
    except FileNotFoundError:
        raise RecordValidationError(
            what=f"Cannot read {kind} table",
            cause=f"File not found: {resolved}",
            fix="Check the input path",
        ) from None
    except pd.errors.EmptyDataError:
        raise RecordValidationError(
            what=f"Cannot read {kind} table",
            cause=f"File is empty: {resolved}",
            fix="Provide a CSV file with a header row",
        ) from None
    logger.info("Read %d %s rows from %s", len(df), kind, resolved)
    return df


def read_pixel_csv(path: Path | str, **kwargs: Any) -> list[PixelObservation]:
    """Read a pixel CSV and validate it.

    Keyword arguments are passed to ``pixel_observations_from_frame``.
    """
    return pixel_observations_from_frame(_read_csv(path, "pixel"), **kwargs)


def read_series_csv(path: Path | str, **kwargs: Any) -> list[SeriesRecord]:
    """Read a series CSV and validate it.

    Keyword arguments are passed to ``series_records_from_frame``.
    """
    return series_records_from_frame(_read_csv(path, "series"), **kwargs)
