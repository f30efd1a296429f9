import numpy as np
import pytest

from autohist.config import (as_sample, default_maxbins_irregular, default_maxbins_regular,
                             min_bin_length, resolve_support, validate_positive_int)
from autohist.grid import bin_irregular, bin_regular, build_grid


class TestBinning:
    def test_regular_right_closed_boundaries(self):
        y = np.array([0.0, 0.5, 1.0])
        np.testing.assert_array_equal(bin_regular(y, 2, True), [2.0, 1.0])

    def test_regular_left_closed_boundaries(self):
        y = np.array([0.0, 0.5, 1.0])
        np.testing.assert_array_equal(bin_regular(y, 2, False), [1.0, 2.0])

    def test_irregular_matches_closedness(self):
        edges = np.array([0.0, 0.3, 1.0])
        x = np.array([0.0, 0.3, 0.5, 1.0])
        np.testing.assert_array_equal(bin_irregular(x, edges, 'right'), [2, 2])
        np.testing.assert_array_equal(bin_irregular(x, edges, 'left'), [1, 3])

    def test_irregular_rejects_values_outside_edges(self):
        with pytest.raises(ValueError):
            bin_irregular(np.array([2.0]), np.array([0.0, 1.0]))


class TestBuildGrid:
    @pytest.mark.parametrize("mode", ["regular", "data", "quantile"])
    def test_grid_invariants(self, rng, mode):
        y = rng.beta(2.0, 5.0, size=300)
        y = (y - y.min()) / (y.max() - y.min())
        grid, N_cum = build_grid(y, mode, 25)

        assert grid[0] == 0.0 and grid[-1] == 1.0
        assert np.all(np.diff(grid) > 0)
        assert N_cum[0] == 0.0
        assert N_cum[-1] == len(y)
        assert np.all(np.diff(N_cum) >= 0)
        assert len(grid) == len(N_cum)

    def test_regular_grid_size(self, rng):
        grid, _ = build_grid(rng.uniform(size=50), 'regular', 7)
        assert len(grid) == 8

    def test_data_grid_uses_distinct_values(self):
        y = np.array([0.0, 0.25, 0.25, 0.5, 1.0])
        grid, N_cum = build_grid(y, 'data', 10)
        np.testing.assert_array_equal(grid, [0.0, 0.25, 0.5, 1.0])
        np.testing.assert_array_equal(N_cum, [0.0, 3.0, 4.0, 5.0])

    def test_quantile_ties_are_merged(self):
        y = np.concatenate([np.zeros(5), np.full(90, 0.5), np.ones(5)])
        grid, N_cum = build_grid(y, 'quantile', 10)
        np.testing.assert_array_equal(grid, [0.0, 0.5, 1.0])
        np.testing.assert_array_equal(N_cum, [0.0, 95.0, 100.0])

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            build_grid(np.array([0.0, 1.0]), 'bogus', 2)


class TestConfig:
    def test_default_maxbins(self):
        assert default_maxbins_irregular(100) == 19
        assert default_maxbins_irregular(2) == 2
        assert default_maxbins_regular(10 ** 7) == 1000

    def test_min_bin_length(self):
        assert min_bin_length(100) == pytest.approx(np.log(100) ** 1.5 / 100)

    def test_support_must_contain_sample(self):
        x = np.array([0.0, 2.0])
        assert resolve_support(x, (-1.0, np.inf)) == (-1.0, 2.0)
        assert resolve_support(x, (0.0, 2.0)) == (0.0, 2.0)
        with pytest.raises(ValueError):
            resolve_support(x, (0.5, np.inf))
        with pytest.raises(ValueError):
            resolve_support(x, (-np.inf, 1.0))

    def test_zero_range_needs_support(self):
        with pytest.raises(ValueError):
            resolve_support(np.array([1.0, 1.0]))
        assert resolve_support(np.array([1.0, 1.0]), (0.0, 2.0)) == (0.0, 2.0)

    def test_sample_validation(self):
        with pytest.raises(ValueError):
            as_sample([])
        with pytest.raises(ValueError):
            as_sample([1.0, np.nan])
        assert as_sample([[1, 2], [3, 4]]).shape == (4,)

    def test_positive_int(self):
        assert validate_positive_int(None, "maxbins") is None
        assert validate_positive_int(np.int64(3), "maxbins") == 3
        for bad in (0, -2, 2.5, True):
            with pytest.raises(ValueError):
                validate_positive_int(bad, "maxbins")
