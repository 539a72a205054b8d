"""Pure aggregation and classification for the EVI story charts."""

from evistory.analysis.grid import (
    band_counts,
    classify_diff,
    classify_grid,
    diff_grid,
    diff_to_array,
    tally_bands,
)
from evistory.analysis.series import (
    aggregate_by_year,
    clip_window,
    combine_series,
    series_extent,
)

__all__ = [
    "aggregate_by_year",
    "band_counts",
    "classify_diff",
    "classify_grid",
    "clip_window",
    "combine_series",
    "diff_grid",
    "diff_to_array",
    "series_extent",
    "tally_bands",
]
