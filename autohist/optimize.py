"""
Irregular partition search on the normalized domain.

maximize_additive_crit ties the pieces together: finest candidate grid,
optional greedy coarsening, the criterion bound to the remaining cutpoints,
one of the dynamic programs and the backtracking step. It works on a sample
already scaled to [0, 1] and knows nothing about the original units.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .algorithms import OptPart, SegNeig, default_algorithm
from .backtrack import backtrack_optimal_partitioning, backtrack_segment_neighborhood
from .config import DEFAULT_A, DEFAULT_P0, min_bin_length, validate_concentration
from .criteria import PHI_BAYES, ScoreFunction, block_penalty, cardinality_penalty, get_criterion
from .dynprog import optimal_partitioning, segment_neighborhood
from .exceptions import InfeasiblePartitionError
from .greedy import greedy_grid
from .grid import build_grid


@dataclass
class PartitionResult:
    """
    Outcome of the partition search.

    Attributes:
        indices: Cutpoint indices into the finest candidate grid, strictly
            increasing from 0 to the last grid index.
        breaks: The selected cutpoints on [0, 1].
        counts: Observations in each bin, as counted on the candidate grid.
            These are the counts the criterion was maximized with.
        score: Achieved criterion value, including the cardinality term.
        n_bins: Number of bins of the selected partition.
        profile: For segment neighborhood, the criterion value of the best
            k-bin partition for k = 1..k_max. None for optimal partitioning.
    """

    indices: np.ndarray
    breaks: np.ndarray
    counts: np.ndarray
    score: float
    n_bins: int
    profile: Optional[np.ndarray] = None


def maximize_additive_crit(y: np.ndarray, rule: str = 'bayes', grid: str = 'regular',
                           maxbins: int = None, closed: str = 'right', alg=None,
                           a: float = DEFAULT_A, logprior: Optional[Callable] = None,
                           p0: float = DEFAULT_P0, use_min_length: bool = False,
                           verbose: bool = False) -> PartitionResult:
    """
    Find the partition of [0, 1] maximizing an additive criterion.

    Parameters:
        y (np.ndarray): Sample scaled to [0, 1]
        rule (str): Criterion tag, see autohist.criteria.CRITERIA
        grid (str): Finest grid mode: 'regular', 'data' or 'quantile'
        maxbins (int): Number of cells of the regular or quantile grid
        closed (str): 'right' or 'left'
        alg (SegNeig | OptPart, optional): Algorithm and its options. Defaults
            to the first algorithm the rule supports.
        a (float): Dirichlet concentration, must be positive (bayes)
        logprior (Callable, optional): Log-prior on the bin count (bayes)
        p0 (float): False-alarm probability (blocks)
        use_min_length (bool): Forbid bins shorter than log(n)^1.5 / n
            (cross-validation rules)
        verbose (bool): Print progress

    Returns:
        PartitionResult: Selected partition and its score

    Raises:
        ValueError: If the rule does not support the requested algorithm, or
            a is not positive for the bayes rule
        InfeasiblePartitionError: If every candidate partition scores -inf
    """
    criterion = get_criterion(rule)
    if alg is None:
        alg = default_algorithm(criterion.default_algorithm)
    if not isinstance(alg, (SegNeig, OptPart)):
        raise ValueError(f"alg must be a SegNeig or OptPart instance, got {alg!r}")
    if alg.name not in criterion.algorithms:
        raise ValueError(
            f"Rule '{rule}' has a cardinality penalty and requires SegNeig, got {type(alg).__name__}"
        )
    if criterion.phi == PHI_BAYES:
        validate_concentration(a)

    n = len(y)
    mesh, N_cum = build_grid(y, grid, maxbins, closed)
    m = len(mesh) - 1

    if verbose:
        print(f"\nProcessing {n:,} data points")
        print(f"Rule: {rule}, candidate grid: {grid} with {m} cells")

    min_length = min_bin_length(n) if use_min_length else 0.0
    ncp = block_penalty(p0, n) if rule == 'blocks' else 0.0
    score_fn = ScoreFunction(criterion.phi, N_cum, mesh, n, a=a,
                             min_length=min_length, block_penalty=ncp)

    kept_idx = np.arange(m + 1)
    target = alg.resolve_gr_maxbins(n, m)
    if alg.greedy and target < m:
        kept = greedy_grid(N_cum, mesh, target, verbose=verbose)
        kept_idx = np.flatnonzero(kept)
        score_fn = score_fn.restrict(kept_idx)
    k_max = score_fn.k_max

    if verbose:
        print(f"\nOptimizing over {k_max + 1} candidate cutpoints with {type(alg).__name__}...")

    if isinstance(alg, OptPart):
        best, ancestor = optimal_partitioning(score_fn, max_cand=alg.max_cand)
        if not np.isfinite(best):
            raise InfeasiblePartitionError(
                f"No partition with a finite '{rule}' score exists on this candidate grid"
            )
        path = backtrack_optimal_partitioning(ancestor, k_max)
        profile = None
    else:
        optimal, ancestor = segment_neighborhood(score_fn, max_cand=alg.max_cand, verbose=verbose)
        psi = cardinality_penalty(rule, k_max, m, n, a=a, logprior=logprior)
        profile = optimal + psi
        k = int(np.argmax(profile)) + 1
        best = profile[k - 1]
        if not np.isfinite(best):
            raise InfeasiblePartitionError(
                f"No partition with a finite '{rule}' score exists on this candidate grid"
            )
        path = backtrack_segment_neighborhood(ancestor, k_max, k)

    indices = kept_idx[path]
    counts = np.rint(np.diff(N_cum[indices])).astype(np.int64)
    result = PartitionResult(indices=indices, breaks=mesh[indices], counts=counts,
                             score=float(best), n_bins=len(indices) - 1, profile=profile)

    if verbose:
        print(f"\nOptimization complete")
        print(f"Number of bins: {result.n_bins}")
        print(f"Criterion value: {result.score:.4f}")
    return result
