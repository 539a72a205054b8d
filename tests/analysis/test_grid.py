"""Tests for pixel differencing and band classification."""

from __future__ import annotations

import math

import numpy as np
import numpy.testing as npt
import pytest

from evistory._types import PixelDiff, PixelObservation
from evistory.analysis.grid import (
    band_counts,
    classify_diff,
    classify_grid,
    diff_grid,
    diff_to_array,
    tally_bands,
)
from evistory.exceptions import ClassificationError

THRESHOLDS = [-0.2, -0.05, 0.05, 0.2]


def _by_key(diffs: list[PixelDiff]) -> dict[tuple[int, int], PixelDiff]:
    return {(d.x, d.y): d for d in diffs}


@pytest.mark.unit
class TestDiffGrid:
    """Tests for diff_grid()."""

    def test_valid_pair_is_end_minus_start(self) -> None:
        obs = [
            PixelObservation(1, 2, 2010, 0.25),
            PixelObservation(1, 2, 2020, 0.75),
        ]

        (diff,) = diff_grid(obs, 2010, 2020)

        assert (diff.x, diff.y) == (1, 2)
        assert diff.is_missing is False
        assert diff.diff == 0.75 - 0.25

    def test_negative_change(self) -> None:
        obs = [
            PixelObservation(0, 0, 2010, 0.5),
            PixelObservation(0, 0, 2020, 0.125),
        ]

        (diff,) = diff_grid(obs, 2010, 2020)

        assert diff.diff == 0.125 - 0.5

    def test_union_of_keys_marks_one_sided_pixels_missing(self) -> None:
        obs = [
            PixelObservation(0, 0, 2010, 0.3),
            PixelObservation(0, 0, 2020, 0.4),
            PixelObservation(1, 0, 2010, 0.3),  # start only
            PixelObservation(2, 0, 2020, 0.4),  # end only
        ]

        diffs = _by_key(diff_grid(obs, 2010, 2020))

        assert set(diffs) == {(0, 0), (1, 0), (2, 0)}
        assert diffs[(1, 0)].is_missing
        assert math.isnan(diffs[(1, 0)].diff)
        assert diffs[(2, 0)].is_missing
        assert math.isnan(diffs[(2, 0)].diff)
        assert not diffs[(0, 0)].is_missing

    @pytest.mark.parametrize(
        ("start", "end"),
        [(133, 0.4), (0.4, 133), (133, 133), (133.0, 0.1)],
    )
    def test_sentinel_on_either_side_is_missing(self, start: float, end: float) -> None:
        obs = [
            PixelObservation(0, 0, 2010, start),
            PixelObservation(0, 0, 2020, end),
        ]

        (diff,) = diff_grid(obs, 2010, 2020)

        assert diff.is_missing
        assert math.isnan(diff.diff)

    def test_none_and_nan_values_are_missing(self) -> None:
        obs = [
            PixelObservation(0, 0, 2010, None),
            PixelObservation(0, 0, 2020, 0.4),
            PixelObservation(1, 0, 2010, 0.2),
            PixelObservation(1, 0, 2020, float("nan")),
        ]

        diffs = diff_grid(obs, 2010, 2020)

        assert all(d.is_missing for d in diffs)

    @pytest.mark.parametrize("bad", [float("inf"), float("-inf")])
    def test_infinite_values_are_missing(self, bad: float) -> None:
        obs = [
            PixelObservation(0, 0, 2010, bad),
            PixelObservation(0, 0, 2020, 0.4),
            PixelObservation(1, 0, 2010, 0.2),
            PixelObservation(1, 0, 2020, bad),
        ]

        diffs = diff_grid(obs, 2010, 2020)

        assert all(d.is_missing for d in diffs)
        assert all(math.isnan(d.diff) for d in diffs)
        assert classify_grid(diffs, THRESHOLDS) == [None, None]

    def test_custom_sentinel(self) -> None:
        obs = [
            PixelObservation(0, 0, 2010, -9999.0),
            PixelObservation(0, 0, 2020, 0.4),
            PixelObservation(1, 0, 2010, 133.0),
            PixelObservation(1, 0, 2020, 133.5),
        ]

        diffs = _by_key(diff_grid(obs, 2010, 2020, sentinel=-9999.0))

        assert diffs[(0, 0)].is_missing
        # 133 is an ordinary value once the sentinel changes.
        assert not diffs[(1, 0)].is_missing
        assert diffs[(1, 0)].diff == 0.5

    def test_other_years_are_ignored(self) -> None:
        obs = [
            PixelObservation(0, 0, 2010, 0.1),
            PixelObservation(0, 0, 2015, 0.9),
            PixelObservation(5, 5, 2015, 0.9),
            PixelObservation(0, 0, 2020, 0.3),
        ]

        diffs = diff_grid(obs, 2010, 2020)

        assert len(diffs) == 1
        assert diffs[0].diff == pytest.approx(0.2)

    def test_same_start_and_end_year_gives_zero(self) -> None:
        obs = [PixelObservation(0, 0, 2010, 0.3)]

        (diff,) = diff_grid(obs, 2010, 2010)

        assert diff.diff == 0.0
        assert not diff.is_missing

    def test_empty_input(self) -> None:
        assert diff_grid([], 2010, 2020) == []

    def test_accepts_generator(self) -> None:
        obs = (
            PixelObservation(0, 0, year, value)
            for year, value in [(2010, 0.1), (2020, 0.4)]
        )

        (diff,) = diff_grid(obs, 2010, 2020)

        assert diff.diff == pytest.approx(0.3)

    def test_output_sorted_row_major(self) -> None:
        obs = [
            PixelObservation(x, y, year, 0.5)
            for y in (1, 0)
            for x in (2, 0, 1)
            for year in (2010, 2020)
        ]

        diffs = diff_grid(obs, 2010, 2020)

        assert [(d.x, d.y) for d in diffs] == [
            (0, 0), (1, 0), (2, 0), (0, 1), (1, 1), (2, 1),
        ]

    def test_repeated_calls_are_equal(self) -> None:
        obs = [
            PixelObservation(0, 0, 2010, 0.3),
            PixelObservation(0, 0, 2020, 0.4),
            PixelObservation(1, 0, 2010, 133),
            PixelObservation(1, 0, 2020, 0.4),
        ]

        assert diff_grid(obs, 2010, 2020) == diff_grid(obs, 2010, 2020)


@pytest.mark.unit
class TestClassifyDiff:
    """Tests for classify_diff()."""

    @pytest.mark.parametrize(
        ("value", "band"),
        [
            (-1.0, 0),
            (-0.2000001, 0),
            (-0.2, 1),
            (-0.1, 1),
            (-0.05, 2),
            (0.0, 2),
            (0.0499, 2),
            (0.05, 3),
            (0.19, 3),
            (0.2, 4),
            (5.0, 4),
        ],
    )
    def test_five_bands(self, value: float, band: int) -> None:
        assert classify_diff(value, THRESHOLDS) == band

    def test_single_threshold(self) -> None:
        assert classify_diff(-0.1, [0.0]) == 0
        assert classify_diff(0.0, [0.0]) == 1
        assert classify_diff(0.1, [0.0]) == 1

    def test_percent_thresholds(self) -> None:
        percent = [-20.0, -5.0, 5.0, 20.0]
        assert classify_diff(-35.0, percent) == 0
        assert classify_diff(12.5, percent) == 3

    def test_monotonic(self) -> None:
        values = np.linspace(-1.0, 1.0, 401)

        bands = [classify_diff(float(v), THRESHOLDS) for v in values]

        assert bands == sorted(bands)
        assert set(bands) == {0, 1, 2, 3, 4}

    @pytest.mark.parametrize(
        "thresholds",
        [[], [0.1, 0.0], [0.0, 0.0], [0.0, float("inf")], [float("nan")]],
    )
    def test_invalid_thresholds_raise(self, thresholds: list[float]) -> None:
        with pytest.raises(ClassificationError):
            classify_diff(0.0, thresholds)

    def test_nan_diff_raises(self) -> None:
        with pytest.raises(ClassificationError, match="NaN"):
            classify_diff(float("nan"), THRESHOLDS)


@pytest.mark.unit
class TestClassifyGrid:
    """Tests for classify_grid() and band_counts()."""

    def test_missing_short_circuits(self) -> None:
        diffs = [
            PixelDiff(0, 0, -0.5, False),
            PixelDiff(1, 0, float("nan"), True),
            PixelDiff(2, 0, 0.0, False),
            PixelDiff(3, 0, 0.3, False),
        ]

        assert classify_grid(diffs, THRESHOLDS) == [0, None, 2, 4]

    def test_band_counts_cover_every_band(self) -> None:
        diffs = [
            PixelDiff(0, 0, -0.5, False),
            PixelDiff(1, 0, float("nan"), True),
            PixelDiff(2, 0, float("nan"), True),
            PixelDiff(3, 0, 0.3, False),
        ]

        counts = band_counts(diffs, THRESHOLDS)

        assert counts == {0: 1, 1: 0, 2: 0, 3: 0, 4: 1, None: 2}
        assert sum(counts.values()) == len(diffs)

    def test_tally_bands_fills_empty_bands(self) -> None:
        counts = tally_bands([0, None, 2, 2], band_total=3)

        assert counts == {0: 1, 1: 0, 2: 2, None: 1}

    def test_tally_bands_empty(self) -> None:
        assert tally_bands([], band_total=2) == {0: 0, 1: 0, None: 0}


@pytest.mark.unit
class TestDiffToArray:
    """Tests for diff_to_array()."""

    def test_places_values_and_nan(self) -> None:
        diffs = [
            PixelDiff(0, 0, 0.1, False),
            PixelDiff(2, 1, -0.2, False),
            PixelDiff(1, 0, float("nan"), True),
        ]

        grid = diff_to_array(diffs)

        assert grid.shape == (2, 3)
        npt.assert_allclose(grid[0, 0], 0.1)
        npt.assert_allclose(grid[1, 2], -0.2)
        assert np.isnan(grid[0, 1])  # missing
        assert np.isnan(grid[1, 0])  # never observed

    def test_explicit_shape(self) -> None:
        grid = diff_to_array([PixelDiff(1, 1, 0.5, False)], shape=(256, 512))

        assert grid.shape == (256, 512)
        assert np.count_nonzero(~np.isnan(grid)) == 1

    def test_pixel_outside_shape_raises(self) -> None:
        with pytest.raises(ValueError, match="outside grid"):
            diff_to_array([PixelDiff(5, 0, 0.5, False)], shape=(2, 2))

    def test_empty(self) -> None:
        assert diff_to_array([]).shape == (0, 0)
