"""evistory: data core for the EVI change story.

Example:
    >>> import evistory as es
    >>>
    >>> # Heatmap: classified EVI change between two years
    >>> pixels = es.read_pixel_csv("evi_pixels.csv")
    >>> grid = es.vegetation_change(pixels, 2004, 2024)
    >>>
    >>> # Line chart: yearly mean for one state
    >>> veg = es.read_series_csv("evi_by_state.csv")
    >>> trend = es.regional_trend(veg, "CA", window=(2005, 2015))
"""

from evistory.__about__ import __version__
from evistory._types import (
    AggregatedPoint,
    LegendEntry,
    PixelDiff,
    PixelObservation,
    SeriesRecord,
)
from evistory.analysis import (
    aggregate_by_year,
    band_counts,
    classify_diff,
    classify_grid,
    clip_window,
    combine_series,
    diff_grid,
    diff_to_array,
    series_extent,
)
from evistory.api import build_legend, regional_trend, vegetation_change
from evistory.config import Config, configure, get_default_config, load_config
from evistory.exceptions import (
    ClassificationError,
    ConfigurationError,
    EviStoryError,
    RecordValidationError,
    YearRangeError,
)
from evistory.records import (
    pixel_observations_from_frame,
    read_pixel_csv,
    read_series_csv,
    series_records_from_frame,
)
from evistory.results import DiffGridResult, ResultMetadata, SeriesResult

__all__ = [
    # Version
    "__version__",
    # Story API
    "build_legend",
    "regional_trend",
    "vegetation_change",
    # Analysis
    "aggregate_by_year",
    "band_counts",
    "classify_diff",
    "classify_grid",
    "clip_window",
    "combine_series",
    "diff_grid",
    "diff_to_array",
    "series_extent",
    # Records
    "AggregatedPoint",
    "LegendEntry",
    "PixelDiff",
    "PixelObservation",
    "SeriesRecord",
    "pixel_observations_from_frame",
    "read_pixel_csv",
    "read_series_csv",
    "series_records_from_frame",
    # Configuration
    "Config",
    "configure",
    "get_default_config",
    "load_config",
    # Results
    "DiffGridResult",
    "ResultMetadata",
    "SeriesResult",
    # Exceptions
    "ClassificationError",
    "ConfigurationError",
    "EviStoryError",
    "RecordValidationError",
    "YearRangeError",
]
