"""
Dynamic programming solvers for additive partition criteria.

Two exact algorithms and their bounded-candidate variants:

- optimal partitioning (Jackson et al., 2005): one forward sweep over the
  endpoint t, best[t] = max_s best[s] + Phi(s, t). Quadratic in the number of
  candidate cutpoints and only valid when there is no per-k correction.
- segment neighborhood (Kanazawa, 1988): a full table
  cost[k, t] = max_s cost[k-1, s] + Phi(s, t) over every bin count k. Cubic,
  but yields the optimum for each k so that a cardinality term can be added.

The pruned variants only keep max_cand predecessors per step. The best
predecessor found so far is never dropped, so the result is always a valid
partition even though it may not be optimal.
"""

from typing import Tuple

import numpy as np
from numba import njit, prange
from tqdm import tqdm

from .criteria import ScoreFunction, interval_score, score_matrix


@njit(parallel=True, cache=True)
def _optimal_partitioning_sweep(code, N_cum, grid, params):
    k_max = len(grid) - 1
    best = np.full(k_max + 1, -np.inf)
    best[0] = 0.0
    ancestor = np.zeros(k_max + 1, dtype=np.int64)
    obj = np.empty(k_max)

    for t in range(1, k_max + 1):
        # predecessor scores are independent of each other
        for s in prange(t):
            obj[s] = best[s] + interval_score(code, N_cum, grid, params, s, t)
        amax = 0
        for s in range(1, t):
            if obj[s] > obj[amax]:
                amax = s
        ancestor[t] = amax
        best[t] = obj[amax]
    return best, ancestor


@njit(parallel=True, cache=True)
def _segment_neighborhood_row(cost, ancestor, weight, k):
    k_max = weight.shape[0] - 1
    for t in prange(k, k_max + 1):
        amax = k - 1
        val = cost[k - 1, k - 1] + weight[k - 1, t]
        for s in range(k, t):
            cand = cost[k - 1, s] + weight[s, t]
            if cand > val:
                val = cand
                amax = s
        cost[k, t] = val
        ancestor[k, t] = amax


@njit(cache=True)
def _admit_candidate(cand, obj, n_cand, amax, t):
    """Add t to the candidate set, evicting the worst entry other than the best."""
    if n_cand < cand.shape[0]:
        cand[n_cand] = t
        return n_cand + 1
    worst = -1
    for c in range(n_cand):
        if c != amax and (worst < 0 or obj[c] < obj[worst]):
            worst = c
    if worst >= 0:
        cand[worst] = t
    return n_cand


@njit(cache=True)
def _optimal_partitioning_pruned(code, N_cum, grid, params, max_cand):
    k_max = len(grid) - 1
    best = np.full(k_max + 1, -np.inf)
    best[0] = 0.0
    ancestor = np.zeros(k_max + 1, dtype=np.int64)
    cand = np.empty(max_cand, dtype=np.int64)
    obj = np.empty(max_cand)
    cand[0] = 0
    n_cand = 1

    for t in range(1, k_max + 1):
        amax = 0
        for c in range(n_cand):
            s = cand[c]
            obj[c] = best[s] + interval_score(code, N_cum, grid, params, s, t)
            if obj[c] > obj[amax]:
                amax = c
        ancestor[t] = cand[amax]
        best[t] = obj[amax]
        n_cand = _admit_candidate(cand, obj, n_cand, amax, t)
    return best, ancestor


@njit(cache=True)
def _segment_neighborhood_pruned_row(cost, ancestor, code, N_cum, grid, params, k, max_cand):
    k_max = len(grid) - 1
    cand = np.empty(max_cand, dtype=np.int64)
    obj = np.empty(max_cand)
    cand[0] = k - 1
    n_cand = 1

    for t in range(k, k_max + 1):
        amax = 0
        for c in range(n_cand):
            s = cand[c]
            obj[c] = cost[k - 1, s] + interval_score(code, N_cum, grid, params, s, t)
            if obj[c] > obj[amax]:
                amax = c
        cost[k, t] = obj[amax]
        ancestor[k, t] = cand[amax]
        n_cand = _admit_candidate(cand, obj, n_cand, amax, t)


def optimal_partitioning(score: ScoreFunction, max_cand: int = None) -> Tuple[float, np.ndarray]:
    """
    Best partition over all bin counts in a single sweep.

    Parameters:
        score (ScoreFunction): Phi bound to the candidate grid
        max_cand (int, optional): Keep only this many predecessors per step
            (linear-time heuristic). None runs the exact algorithm.

    Returns:
        Tuple[float, np.ndarray]: (optimal score, ancestor array of length k_max + 1)
    """
    if max_cand is None:
        best, ancestor = _optimal_partitioning_sweep(score.code, score.N_cum, score.grid, score.params)
    else:
        best, ancestor = _optimal_partitioning_pruned(score.code, score.N_cum, score.grid,
                                                      score.params, max_cand)
    return float(best[-1]), ancestor


def segment_neighborhood(score: ScoreFunction, max_cand: int = None,
                         verbose: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """
    Best k-bin partition of the whole grid for every k = 1..k_max.

    The table is filled one bin count at a time; each row only depends on the
    previous one, and its endpoints are computed in parallel.

    Parameters:
        score (ScoreFunction): Phi bound to the candidate grid
        max_cand (int, optional): Keep only this many predecessors per endpoint
            (quadratic-time heuristic). None runs the exact algorithm.
        verbose (bool): Show a progress bar over bin counts

    Returns:
        Tuple[np.ndarray, np.ndarray]: (optimal, ancestor) where optimal[k-1]
            is the best score with exactly k bins and ancestor has shape
            (k_max + 1, k_max + 1)
    """
    k_max = score.k_max
    cost = np.full((k_max + 1, k_max + 1), -np.inf)
    cost[0, 0] = 0.0
    ancestor = np.zeros((k_max + 1, k_max + 1), dtype=np.int64)

    weight = None
    if max_cand is None:
        weight = score_matrix(score.code, score.N_cum, score.grid, score.params)

    with tqdm(total=k_max, desc="Segment neighborhood",
              bar_format='{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]',
              disable=not verbose) as pbar:
        for k in range(1, k_max + 1):
            if weight is not None:
                _segment_neighborhood_row(cost, ancestor, weight, k)
            else:
                _segment_neighborhood_pruned_row(cost, ancestor, score.code, score.N_cum,
                                                 score.grid, score.params, k, max_cand)
            pbar.update(1)
            if k % 50 == 0 and np.isfinite(cost[k, k_max]):
                pbar.set_postfix({"score": f"{cost[k, k_max]:.2f}"})

    optimal = cost[1:, k_max].copy()
    return optimal, ancestor
