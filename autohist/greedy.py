"""
Greedy coarsening of the candidate grid (Rozenholc et al., 2010).

Starting from the single bin [0, 1], the cutpoint whose insertion increases
the log-likelihood the most is added, one at a time, until the requested
number of bins is reached. Only the interval that was just split has its
split gains recomputed.

Each open interval (pair of consecutive kept cutpoints) is one record in an
arena of parallel lists. Its best split is kept in a heap ordered by
(-gain, index), so the global maximum is found without rescanning the grid
and ties resolve to the smallest grid index. A record has exactly one heap
entry, which is consumed when the interval is split, so the heap never holds
stale entries.
"""

import heapq

import numpy as np
from numba import njit
from tqdm import tqdm

from .criteria import PHI_LOGLIK, interval_score

_NO_PARAMS = np.zeros(4)


@njit(cache=True)
def split_gains(N_cum, grid, params, i, j, gains):
    """
    Log-likelihood gain of splitting (grid[i], grid[j]] at each interior index.

    Writes gains[i+1:j] in place.
    """
    loglik_old = interval_score(PHI_LOGLIK, N_cum, grid, params, i, j)
    for l in range(i + 1, j):
        gains[l] = (interval_score(PHI_LOGLIK, N_cum, grid, params, i, l)
                    + interval_score(PHI_LOGLIK, N_cum, grid, params, l, j)
                    - loglik_old)


def greedy_grid(N_cum: np.ndarray, grid: np.ndarray, gr_maxbins: int,
                strict: bool = True, return_order: bool = False, verbose: bool = False):
    """
    Select a sub-grid of at most gr_maxbins bins by greedy log-likelihood splits.

    The gain is always the plain log-likelihood increase, whatever criterion the
    pruned grid is later optimized for.

    Parameters:
        N_cum (np.ndarray): Cumulative counts of the finest grid
        grid (np.ndarray): Finest grid, strictly increasing
        gr_maxbins (int): Target number of bins
        strict (bool): Stop as soon as no split increases the log-likelihood.
            When False, keep splitting at the least harmful cutpoint until the
            target is met or the grid is exhausted.
        return_order (bool): Also return the grid indices in the order they
            were selected
        verbose (bool): Show a progress bar

    Returns:
        np.ndarray: Boolean mask over grid indices, endpoints always kept.
            With return_order=True, a tuple (mask, order).
    """
    N_cum = np.ascontiguousarray(N_cum, dtype=np.float64)
    grid = np.ascontiguousarray(grid, dtype=np.float64)
    m = len(grid) - 1

    kept = np.zeros(m + 1, dtype=np.bool_)
    kept[0] = True
    kept[m] = True
    gains = np.full(m + 1, -np.inf)

    lefts = []
    rights = []
    heap = []
    order = []

    def open_interval(i, j):
        if j - i < 2:
            return
        split_gains(N_cum, grid, _NO_PARAMS, i, j, gains)
        d = i + 1 + int(np.argmax(gains[i + 1:j]))
        lefts.append(i)
        rights.append(j)
        heapq.heappush(heap, (-gains[d], d, len(lefts) - 1))

    open_interval(0, m)
    num_bins = 1

    with tqdm(total=max(gr_maxbins - 1, 0), desc="Greedy grid",
              disable=not verbose) as pbar:
        while num_bins < gr_maxbins and heap:
            neg_gain, d, rec = heap[0]
            gain = -neg_gain
            if (strict and not gain > 0.0) or gain == -np.inf:
                break
            heapq.heappop(heap)

            kept[d] = True
            order.append(d)
            num_bins += 1
            pbar.update(1)

            open_interval(lefts[rec], d)
            open_interval(d, rights[rec])

    if verbose:
        print(f"Greedy grid: kept {num_bins + 1} of {m + 1} cutpoints")

    if return_order:
        return kept, np.array(order, dtype=np.int64)
    return kept
