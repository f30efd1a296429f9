import itertools

import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")


@pytest.fixture
def rng():
    return np.random.default_rng(20250807)


def brute_force_partitions(score_fn, psi=None):
    """Best score per bin count by enumerating every subset of interior cutpoints."""
    k_max = score_fn.k_max
    best = np.full(k_max, -np.inf)
    paths = [None] * k_max
    for r in range(k_max):
        for interior in itertools.combinations(range(1, k_max), r):
            path = (0,) + interior + (k_max,)
            value = score_fn.total(path)
            if psi is not None:
                value += psi[r]
            if value > best[r]:
                best[r] = value
                paths[r] = np.array(path)
    return best, paths


@pytest.fixture
def brute_force():
    return brute_force_partitions
