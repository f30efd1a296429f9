import numpy as np
import pytest

from autohist.greedy import greedy_grid, split_gains
from autohist.grid import build_grid


class TestGreedyGrid:
    def test_endpoints_always_kept(self, rng):
        grid, N_cum = build_grid(rng.uniform(size=200), 'regular', 40)
        kept = greedy_grid(N_cum, grid, 5)
        assert kept[0] and kept[-1]
        assert kept.sum() <= 6

    def test_reaches_target(self, rng):
        y = rng.beta(0.5, 0.5, size=500)
        grid, N_cum = build_grid(y, 'regular', 60)
        kept = greedy_grid(N_cum, grid, 12, strict=False)
        assert kept.sum() == 13

    def test_smaller_target_is_a_subset(self, rng):
        y = np.concatenate([rng.normal(0.3, 0.05, 300), rng.uniform(size=200)])
        y = np.clip(y, 0.0, 1.0)
        grid, N_cum = build_grid(y, 'regular', 80)

        kept_small, order_small = greedy_grid(N_cum, grid, 10, strict=False, return_order=True)
        kept_large, order_large = greedy_grid(N_cum, grid, 30, strict=False, return_order=True)

        assert np.all(kept_large[kept_small])
        np.testing.assert_array_equal(order_small, order_large[:len(order_small)])

    def test_ties_resolve_to_smallest_index(self):
        grid = np.linspace(0.0, 1.0, 5)
        N_cum = np.array([0.0, 5.0, 5.0, 5.0, 10.0])
        _, order = greedy_grid(N_cum, grid, 2, return_order=True)
        np.testing.assert_array_equal(order, [1])

    def test_strict_stops_without_gain(self):
        grid = np.linspace(0.0, 1.0, 5)
        N_cum = np.array([0.0, 0.0, 0.0, 0.0, 10.0])

        strict = greedy_grid(N_cum, grid, 4)
        np.testing.assert_array_equal(np.flatnonzero(strict), [0, 3, 4])

        relaxed = greedy_grid(N_cum, grid, 4, strict=False)
        assert relaxed.all()

    def test_target_of_one_bin(self, rng):
        grid, N_cum = build_grid(rng.uniform(size=50), 'regular', 10)
        np.testing.assert_array_equal(np.flatnonzero(greedy_grid(N_cum, grid, 1)), [0, 10])

    def test_progress_output(self, rng, capsys):
        grid, N_cum = build_grid(rng.uniform(size=100), 'regular', 20)
        greedy_grid(N_cum, grid, 5, strict=False, verbose=True)
        assert "Greedy grid: kept" in capsys.readouterr().out


class TestSplitGains:
    def test_gain_is_loglik_difference(self):
        grid = np.linspace(0.0, 1.0, 5)
        N_cum = np.array([0.0, 5.0, 5.0, 5.0, 10.0])
        gains = np.full(5, -np.inf)
        split_gains(N_cum, grid, np.zeros(4), 0, 4, gains)

        old = 10 * np.log(10.0)
        assert gains[1] == pytest.approx(5 * np.log(20.0) + 5 * np.log(5 / 0.75) - old)
        assert gains[2] == pytest.approx(10 * np.log(10.0) - old)
        assert gains[1] == gains[3]
        assert gains[0] == -np.inf and gains[4] == -np.inf
