import numpy as np
import pytest

from autohist.backtrack import backtrack_optimal_partitioning, backtrack_segment_neighborhood
from autohist.criteria import PHI_BAYES, PHI_KLCV, PHI_L2CV, PHI_LOGLIK, ScoreFunction, cardinality_penalty
from autohist.dynprog import optimal_partitioning, segment_neighborhood
from autohist.grid import build_grid


def _score_fn(rng, code, m=8, n=60, **kwargs):
    y = rng.beta(2.0, 5.0, size=n)
    y = (y - y.min()) / (y.max() - y.min())
    grid, N_cum = build_grid(y, 'regular', m)
    return ScoreFunction(code, N_cum, grid, n, **kwargs)


def _assert_valid_path(path, k_max):
    assert path[0] == 0
    assert path[-1] == k_max
    assert np.all(np.diff(path) > 0)


class TestBacktrack:
    def test_optimal_partitioning_path(self):
        ancestor = np.array([0, 0, 0, 2, 2, 3])
        np.testing.assert_array_equal(backtrack_optimal_partitioning(ancestor, 5), [0, 2, 3, 5])

    def test_single_bin(self):
        ancestor = np.zeros(4, dtype=np.int64)
        np.testing.assert_array_equal(backtrack_optimal_partitioning(ancestor, 3), [0, 3])

    def test_segment_neighborhood_path(self):
        ancestor = np.zeros((5, 5), dtype=np.int64)
        ancestor[3, 4] = 3
        ancestor[2, 3] = 1
        ancestor[1, 1] = 0
        np.testing.assert_array_equal(backtrack_segment_neighborhood(ancestor, 4, 3), [0, 1, 3, 4])


class TestSegmentNeighborhood:
    def test_matches_exhaustive_search_per_bin_count(self, rng, brute_force):
        score_fn = _score_fn(rng, PHI_BAYES, a=5.0)
        optimal, ancestor = segment_neighborhood(score_fn)
        expected, _ = brute_force(score_fn)

        np.testing.assert_allclose(optimal, expected, rtol=1e-10)
        for k in range(1, score_fn.k_max + 1):
            path = backtrack_segment_neighborhood(ancestor, score_fn.k_max, k)
            assert len(path) == k + 1
            _assert_valid_path(path, score_fn.k_max)
            assert score_fn.total(path) == pytest.approx(optimal[k - 1], rel=1e-10)

    def test_penalized_choice_matches_exhaustive_search(self, rng, brute_force):
        score_fn = _score_fn(rng, PHI_LOGLIK, m=9, n=120)
        psi = cardinality_penalty('penb', score_fn.k_max, score_fn.k_max, 120)
        optimal, ancestor = segment_neighborhood(score_fn)
        expected, _ = brute_force(score_fn, psi)

        k = int(np.argmax(optimal + psi)) + 1
        assert k == int(np.argmax(expected)) + 1
        path = backtrack_segment_neighborhood(ancestor, score_fn.k_max, k)
        assert score_fn.total(path) + psi[k - 1] == pytest.approx(expected.max(), rel=1e-10)

    def test_pruned_candidates_stay_feasible(self, rng):
        score_fn = _score_fn(rng, PHI_BAYES, m=30, n=400, a=5.0)
        exact, _ = segment_neighborhood(score_fn)
        pruned, ancestor = segment_neighborhood(score_fn, max_cand=3)

        assert np.all(np.isfinite(pruned))
        assert np.all(pruned <= exact + 1e-9)
        assert pruned[0] == pytest.approx(exact[0])
        for k in (1, 5, 30):
            path = backtrack_segment_neighborhood(ancestor, score_fn.k_max, k)
            _assert_valid_path(path, score_fn.k_max)
            assert score_fn.total(path) == pytest.approx(pruned[k - 1], rel=1e-10)


class TestOptimalPartitioning:
    def test_matches_exhaustive_search(self, rng, brute_force):
        score_fn = _score_fn(rng, PHI_L2CV, m=10, n=200)
        best, ancestor = optimal_partitioning(score_fn)
        expected, _ = brute_force(score_fn)

        assert best == pytest.approx(expected.max(), rel=1e-10)
        path = backtrack_optimal_partitioning(ancestor, score_fn.k_max)
        _assert_valid_path(path, score_fn.k_max)
        assert score_fn.total(path) == pytest.approx(best, rel=1e-10)

    def test_agrees_with_segment_neighborhood(self, rng):
        y = rng.uniform(size=3000) ** 1.5
        grid, N_cum = build_grid(y, 'regular', 30)
        score_fn = ScoreFunction(PHI_L2CV, N_cum, grid, len(y))

        best, op_ancestor = optimal_partitioning(score_fn)
        optimal, sn_ancestor = segment_neighborhood(score_fn)
        k = int(np.argmax(optimal)) + 1

        assert best == pytest.approx(optimal.max(), rel=1e-12)
        op_path = backtrack_optimal_partitioning(op_ancestor, score_fn.k_max)
        sn_path = backtrack_segment_neighborhood(sn_ancestor, score_fn.k_max, k)
        assert score_fn.total(op_path) == pytest.approx(score_fn.total(sn_path), rel=1e-12)
        np.testing.assert_array_equal(op_path, sn_path)

    def test_pruned_candidates_stay_feasible(self, rng):
        score_fn = _score_fn(rng, PHI_L2CV, m=50, n=1000)
        exact, _ = optimal_partitioning(score_fn)
        pruned, ancestor = optimal_partitioning(score_fn, max_cand=2)

        assert np.isfinite(pruned)
        assert pruned <= exact + 1e-9
        path = backtrack_optimal_partitioning(ancestor, score_fn.k_max)
        _assert_valid_path(path, score_fn.k_max)
        assert score_fn.total(path) == pytest.approx(pruned, rel=1e-10)

    def test_infeasible_criterion_scores_minus_infinity(self):
        grid = np.array([0.0, 0.5, 1.0])
        N_cum = np.array([0.0, 1.0, 1.0])
        best, _ = optimal_partitioning(ScoreFunction(PHI_KLCV, N_cum, grid, 1))
        assert best == -np.inf
