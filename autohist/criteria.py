"""
Additive criteria for irregular histograms.

A criterion is a pair (Phi, Psi). Phi(i, j) is the contribution of the single
bin (grid[i], grid[j]] and is summed over the bins of a partition; Psi(k) is a
correction that only depends on the number k of bins and is added once per
candidate bin count after the dynamic programming table is complete.

Phi is evaluated inside compiled kernels, so each variant is identified by an
integer tag rather than a Python callable. The rule-specific constants travel
in a small float array laid out as [n, a, min_length, block_penalty].
"""

import math
from typing import Callable, NamedTuple, Optional

import numpy as np
from numba import njit, prange
from scipy.special import gammaln

# Phi tags
PHI_LOGLIK = 0
PHI_LOGLIK_R = 1
PHI_BAYES = 2
PHI_KLCV = 3
PHI_L2CV = 4
PHI_BLOCKS = 5

# Layout of the constants array
P_N = 0
P_A = 1
P_MIN_LENGTH = 2
P_BLOCK_PENALTY = 3


@njit(cache=True)
def interval_score(code, N_cum, grid, params, i, j):
    """
    Contribution of merging grid cells i..j-1 into a single bin.

    Empty bins score zero under the likelihood criteria so that they stay
    eligible. The cross-validation criteria return -inf for bins they do not
    admit.
    """
    N_bin = N_cum[j] - N_cum[i]
    len_bin = grid[j] - grid[i]

    if code == PHI_LOGLIK:
        if N_bin > 0.0:
            return N_bin * math.log(N_bin / len_bin)
        return 0.0
    elif code == PHI_LOGLIK_R:
        if N_bin > 0.0:
            return N_bin * math.log(N_bin / len_bin) - 0.5 * N_bin / (params[P_N] * len_bin)
        return 0.0
    elif code == PHI_BAYES:
        a_bin = params[P_A] * len_bin
        return math.lgamma(a_bin + N_bin) - math.lgamma(a_bin) - N_bin * math.log(len_bin)
    elif code == PHI_KLCV:
        if N_bin >= 2.0 and len_bin >= params[P_MIN_LENGTH]:
            return N_bin * math.log((N_bin - 1.0) / len_bin)
        return -np.inf
    elif code == PHI_L2CV:
        if len_bin >= params[P_MIN_LENGTH]:
            n = params[P_N]
            return ((n + 1.0) / n * N_bin * N_bin - 2.0 * N_bin) / len_bin
        return -np.inf
    elif code == PHI_BLOCKS:
        if N_bin > 0.0:
            return N_bin * math.log(N_bin / len_bin) - params[P_BLOCK_PENALTY]
        return -params[P_BLOCK_PENALTY]
    return -np.inf


@njit(parallel=True, cache=True)
def score_matrix(code, N_cum, grid, params):
    """
    Materialize Phi(i, j) for all i < j.

    Entries with i >= j are -inf. Only used by the segment neighborhood
    solver, whose tables are quadratic in size anyway.
    """
    k_max = len(grid) - 1
    weight = np.full((k_max + 1, k_max + 1), -np.inf)
    for i in prange(k_max):
        for j in range(i + 1, k_max + 1):
            weight[i, j] = interval_score(code, N_cum, grid, params, i, j)
    return weight


class ScoreFunction:
    """
    Phi bound to a candidate grid, its cumulative counts and rule constants.

    Instances are immutable in practice and safe to share between threads.
    Calling the object evaluates Phi(i, j) from Python; the solvers pass the
    underlying arrays straight to the compiled kernels.
    """

    def __init__(self, code: int, N_cum: np.ndarray, grid: np.ndarray, n: float,
                 a: float = 0.0, min_length: float = 0.0, block_penalty: float = 0.0):
        self.code = int(code)
        self.N_cum = np.ascontiguousarray(N_cum, dtype=np.float64)
        self.grid = np.ascontiguousarray(grid, dtype=np.float64)
        self.params = np.array([n, a, min_length, block_penalty], dtype=np.float64)

    @property
    def k_max(self) -> int:
        """Number of cells of the bound grid."""
        return len(self.grid) - 1

    def __call__(self, i: int, j: int) -> float:
        return interval_score(self.code, self.N_cum, self.grid, self.params, i, j)

    def restrict(self, keep: np.ndarray) -> 'ScoreFunction':
        """Bind the same rule to the sub-grid selected by a boolean mask or index array."""
        restricted = ScoreFunction.__new__(ScoreFunction)
        restricted.code = self.code
        restricted.N_cum = np.ascontiguousarray(self.N_cum[keep])
        restricted.grid = np.ascontiguousarray(self.grid[keep])
        restricted.params = self.params.copy()
        return restricted

    def total(self, indices) -> float:
        """Sum of Phi over the bins delimited by consecutive grid indices."""
        return float(sum(self(int(i), int(j)) for i, j in zip(indices[:-1], indices[1:])))

    def __repr__(self):
        return f"ScoreFunction(code={self.code}, k_max={self.k_max})"


def log_binomial(n, k):
    """log C(n, k), elementwise."""
    n = np.asarray(n, dtype=np.float64)
    k = np.asarray(k, dtype=np.float64)
    return gammaln(n + 1.0) - gammaln(k + 1.0) - gammaln(n - k + 1.0)


# Psi: each takes the bin counts k = 1..k_max as a float array and returns an
# array of the same shape.

def _psi_pena(k, maxbins, n, a, logprior):
    lb = log_binomial(maxbins - 1, k - 1)
    return -lb - k - 2.0 * np.log(k) - 2.0 * np.sqrt(0.5 * (k - 1.0) * (lb + np.log(k)))


def _psi_penb(k, maxbins, n, a, logprior):
    return -log_binomial(maxbins - 1, k - 1) - k - np.log(k) ** 2.5


def _psi_penr(k, maxbins, n, a, logprior):
    return -log_binomial(maxbins - 1, k - 1) - k - np.log(k) ** 2.5


def _psi_bayes(k, maxbins, n, a, logprior):
    prior = np.zeros_like(k) if logprior is None else np.array([logprior(int(kk)) for kk in k], dtype=np.float64)
    return prior - log_binomial(maxbins - 1, k - 1) + gammaln(a) - gammaln(a + n)


def nml_complexity(k, n):
    """
    Asymptotic expansion of the log parametric complexity of a k-cell
    multinomial, up to O(1/n).
    """
    with np.errstate(divide='ignore', invalid='ignore'):
        # gammaln(0) = inf, so the ratio terms vanish for k = 1
        ratio = np.exp(gammaln(0.5 * k) - gammaln(0.5 * k - 0.5))
    return (0.5 * k * np.log(0.5 * n) - gammaln(0.5 * k)
            + math.sqrt(2.0) * k / (3.0 * math.sqrt(n)) * ratio
            + ((3.0 + k * (k - 2.0) * (2.0 * k + 1.0)) / 36.0 - k ** 2 / 9.0 * ratio ** 2) / n)


def _psi_nml(k, maxbins, n, a, logprior):
    return -nml_complexity(k, n) - log_binomial(maxbins - 1, k - 1)


class Criterion(NamedTuple):
    """Entry of the rule dispatch table."""
    phi: int
    psi: Optional[Callable]
    algorithms: tuple

    @property
    def default_algorithm(self) -> str:
        return self.algorithms[0]


CRITERIA = {
    'bayes': Criterion(PHI_BAYES, _psi_bayes, ('segneig',)),
    'pena': Criterion(PHI_LOGLIK, _psi_pena, ('segneig',)),
    'penb': Criterion(PHI_LOGLIK, _psi_penb, ('segneig',)),
    'penr': Criterion(PHI_LOGLIK_R, _psi_penr, ('segneig',)),
    'nml': Criterion(PHI_LOGLIK, _psi_nml, ('segneig',)),
    'klcv': Criterion(PHI_KLCV, None, ('optpart', 'segneig')),
    'l2cv': Criterion(PHI_L2CV, None, ('optpart', 'segneig')),
    'blocks': Criterion(PHI_BLOCKS, None, ('optpart', 'segneig')),
}


def get_criterion(rule: str) -> Criterion:
    try:
        return CRITERIA[rule]
    except KeyError:
        raise ValueError(
            f"Unknown irregular rule '{rule}'. Choose one of: {', '.join(CRITERIA)}"
        ) from None


def cardinality_penalty(rule: str, k_max: int, maxbins: int, n: int,
                        a: float = 0.0, logprior: Optional[Callable] = None) -> np.ndarray:
    """
    Evaluate Psi(k) for k = 1..k_max.

    Parameters:
        rule (str): Rule tag
        k_max (int): Largest bin count considered
        maxbins (int): Number of cells of the finest, un-pruned grid
        n (int): Sample size
        a (float): Dirichlet concentration (bayes only)
        logprior (Callable): Unnormalized log-prior on k (bayes only)

    Returns:
        np.ndarray: Shape (k_max,), entry k-1 holds Psi(k). Zeros for rules
            without a cardinality term.
    """
    psi = get_criterion(rule).psi
    k = np.arange(1, k_max + 1, dtype=np.float64)
    if psi is None:
        return np.zeros(k_max)
    return np.asarray(psi(k, maxbins, n, a, logprior), dtype=np.float64)


def block_penalty(p0: float, n: int) -> float:
    """Per-block prior cost of the Bayesian blocks rule."""
    return 4.0 - math.log(73.53 * p0 * n ** (-0.478))
