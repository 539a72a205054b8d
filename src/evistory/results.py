"""Result object model for the heatmap and line-chart pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel

from evistory._types import AggregatedPoint, LegendEntry, PixelDiff, YearWindow
from evistory.analysis.grid import diff_to_array, tally_bands

if TYPE_CHECKING:
    import pandas as pd

# Names for the standard five-band layout, lowest band first.
_FIVE_BAND_NAMES: tuple[str, ...] = (
    "large decrease",
    "moderate decrease",
    "no change",
    "moderate increase",
    "large increase",
)


def _band_name(band: int | None, band_count: int) -> str:
    """Return a plain-language name for a band index.

    Example:
        >>> _band_name(0, 5)
        'large decrease'
        >>> _band_name(None, 5)
        'no data'
    """
    if band is None:
        return "no data"
    if band_count == len(_FIVE_BAND_NAMES):
        return _FIVE_BAND_NAMES[band]
    return f"band {band}"


class ResultMetadata(BaseModel):
    """Metadata shared by result objects.

    Attributes:
        source: Input table name or path, if known.
        record_count: Number of input records considered.
        missing_count: Pixels classified as missing (grid results only).
        sentinel: Sentinel value used for the grid diff.
    """

    source: str = ""
    record_count: int = 0
    missing_count: int = 0
    sentinel: float | None = None


@dataclass
class DiffGridResult:
    """Classified EVI change grid between two years.

    Attributes:
        diffs: One ``PixelDiff`` per pixel in the union of both years.
        bands: Band index per diff (same order); ``None`` when missing.
        start_year: Baseline year.
        end_year: Comparison year.
        thresholds: Ascending band boundaries used for classification.
        legend: Swatches for every band plus the missing category.
        metadata: Source and counts.

    Example:
        >>> result = DiffGridResult(diffs=[], bands=[], start_year=2010,
        ...                         end_year=2020, thresholds=(0.0,))
        >>> result.counts
        {0: 0, 1: 0, None: 0}
    """

    diffs: list[PixelDiff]
    bands: list[int | None]
    start_year: int
    end_year: int
    thresholds: tuple[float, ...]
    legend: list[LegendEntry] = field(default_factory=list)
    metadata: ResultMetadata = field(default_factory=ResultMetadata)

    @property
    def counts(self) -> dict[int | None, int]:
        """Pixel count per band, ``None`` for missing."""
        return tally_bands(self.bands, len(self.thresholds) + 1)

    def __repr__(self) -> str:
        """Return a narrative summary without listing pixels."""
        lines: list[str] = [f"{type(self).__name__}("]
        lines.append(f"  years: {self.start_year} → {self.end_year}")
        lines.append(f"  pixels: {len(self.diffs)}")

        band_count = len(self.thresholds) + 1
        for band, count in self.counts.items():
            if count:
                lines.append(f"  {_band_name(band, band_count)}: {count}")

        valid = [d.diff for d in self.diffs if not d.is_missing]
        if valid:
            lines.append(f"  mean change: {float(np.mean(valid)):+.3f}")
        else:
            lines.append("  mean change: N/A (no valid pixels)")
        lines.append(")")
        return "\n".join(lines)

    def to_dataframe(self) -> pd.DataFrame:
        """Export pixels to a DataFrame.

        Returns:
            Columns ``x``, ``y``, ``diff``, ``is_missing``, ``band``,
            ``color``. ``band`` is nullable (``Int64``).
        """
        import pandas as pd

        colors = {entry.band: entry.color for entry in self.legend}
        return pd.DataFrame(
            {
                "x": [d.x for d in self.diffs],
                "y": [d.y for d in self.diffs],
                "diff": [d.diff for d in self.diffs],
                "is_missing": [d.is_missing for d in self.diffs],
                "band": pd.array(self.bands, dtype="Int64"),
                "color": [colors.get(b, "") for b in self.bands],
            }
        )

    def to_array(
        self,
        shape: tuple[int, int] | None = None,
    ) -> npt.NDArray[np.floating[Any]]:
        """Return the diff grid as a ``(height, width)`` array, NaN where missing."""
        return diff_to_array(self.diffs, shape=shape)


@dataclass
class SeriesResult:
    """Yearly mean series for one region, with its visible window.

    ``points`` always holds the full series; ``visible`` is the slice
    inside ``window`` (or the full series when no window is set).
    """

    points: list[AggregatedPoint]
    visible: list[AggregatedPoint]
    region: str
    window: YearWindow | None = None
    extent: tuple[float, float] | None = None
    metadata: ResultMetadata = field(default_factory=ResultMetadata)

    def __repr__(self) -> str:
        lines: list[str] = [f"{type(self).__name__}("]
        lines.append(f"  region: {self.region}")
        if self.window is not None:
            lines.append(f"  window: {self.window[0]} → {self.window[1]}")
        lines.append(f"  years: {len(self.visible)} of {len(self.points)}")
        if self.extent is None:
            lines.append("  range: N/A (no data)")
        else:
            lines.append(f"  range: {self.extent[0]:.3f} to {self.extent[1]:.3f}")
        lines.append(")")
        return "\n".join(lines)

    def to_dataframe(self) -> pd.DataFrame:
        """Export the visible slice as ``year``/``mean_value`` columns."""
        import pandas as pd

        return pd.DataFrame(
            {
                "year": pd.array([p.year for p in self.visible], dtype="int64"),
                "mean_value": pd.array(
                    [p.mean_value for p in self.visible], dtype="float64"
                ),
            }
        )
