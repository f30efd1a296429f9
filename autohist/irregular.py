"""
Irregular Histogram Module

Fits a histogram with automatically chosen, possibly unequal bin widths. The
bin edges maximize an additive criterion over a finite set of candidate
cutpoints, found by dynamic programming after an optional greedy coarsening
of the candidate set.

Supported rules: bayes (Simensen et al., 2025), pena, penb, penr
(Rozenholc et al., 2010), nml (Kontkanen and Myllymaki, 2007), klcv, l2cv
(leave-one-out cross-validation) and blocks (Scargle et al., 2013).
"""

from typing import Callable, Optional, Tuple

import numpy as np

from .config import (DEFAULT_A, DEFAULT_P0, as_sample, default_maxbins_irregular,
                     resolve_support, validate_closed, validate_concentration,
                     validate_grid, validate_p0, validate_positive_int)
from .criteria import get_criterion
from .histogram import AutomaticHistogram, assemble_histogram
from .optimize import maximize_additive_crit


def histogram_irregular(x, rule: str = 'bayes', grid: str = 'regular', closed: str = 'right',
                        maxbins: Optional[int] = None,
                        support: Optional[Tuple[float, float]] = None,
                        a: float = DEFAULT_A, logprior: Optional[Callable] = None,
                        p0: float = DEFAULT_P0, use_min_length: bool = False,
                        alg=None, verbose: bool = False) -> AutomaticHistogram:
    """
    Fit an irregular histogram to a one-dimensional sample.

    Parameters:
        x (array-like): Sample
        rule (str): Criterion to maximize
        grid (str): Finest candidate grid: 'regular' (equal cells), 'data'
            (every distinct observation) or 'quantile' (sample quantiles)
        closed (str): 'right' for (a, b] bins, 'left' for [a, b)
        maxbins (int, optional): Number of cells of the finest regular or
            quantile grid. Defaults to min(n, ceil(4n / log(n)^2)). Ignored
            for the data grid.
        support (tuple, optional): (lower, upper) bounds of the support; use
            -inf or inf for a bound estimated from the sample
        a (float): Dirichlet concentration (bayes)
        logprior (Callable, optional): Log-prior on the number of bins (bayes)
        p0 (float): False-alarm probability (blocks)
        use_min_length (bool): Forbid bins shorter than log(n)^1.5 / n on the
            normalized scale (klcv, l2cv)
        alg (SegNeig | OptPart, optional): Algorithm and pruning options
        verbose (bool): Print progress

    Returns:
        AutomaticHistogram: The fitted histogram

    Raises:
        ValueError: On invalid arguments
        InfeasiblePartitionError: If no partition has a finite criterion value
    """
    get_criterion(rule)
    validate_grid(grid)
    validate_closed(closed)
    maxbins = validate_positive_int(maxbins, "maxbins")
    if rule == 'bayes':
        validate_concentration(a)
        if logprior is not None and not callable(logprior):
            raise ValueError("logprior must be a callable taking the number of bins")
    if rule == 'blocks':
        validate_p0(p0)

    x = as_sample(x)
    n = len(x)
    xmin, xmax = resolve_support(x, support)
    y = (x - xmin) / (xmax - xmin)

    if maxbins is None:
        maxbins = default_maxbins_irregular(n)

    a_used = a if rule == 'bayes' else 0.0
    result = maximize_additive_crit(y, rule=rule, grid=grid, maxbins=maxbins, closed=closed,
                                    alg=alg, a=a_used, logprior=logprior, p0=p0,
                                    use_min_length=use_min_length, verbose=verbose)

    return assemble_histogram(x, result.breaks, result.counts, xmin, xmax, closed=closed,
                              a=a_used, type='irregular')


# Performance testing and demonstration
if __name__ == "__main__":
    import time

    rng = np.random.default_rng(1)
    n_samples = 5000
    sample = np.concatenate([
        rng.normal(0.0, 1.0, int(n_samples * 0.7)),
        rng.normal(4.0, 0.3, int(n_samples * 0.3)),
    ])

    for name in ('bayes', 'penb', 'klcv'):
        print(f"\nTesting irregular rule '{name}'")
        start_time = time.time()
        h = histogram_irregular(sample, rule=name, verbose=True)
        print(f"\nTime elapsed: {time.time() - start_time:.2f} seconds")
        print(h.to_frame())
