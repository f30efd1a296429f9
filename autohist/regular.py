"""
Regular Histogram Module

Chooses the number k of equal-width bins. The likelihood, Bayesian and
cross-validation rules scan every k = 1..k_max and keep the maximizer of their
criterion. The classical rules (Sturges, Freedman-Diaconis, Scott) compute k
in closed form, and Wand's rule from a plug-in estimate of the bin width.

The scan bins the sample once per candidate k. Candidates are independent, so
they are evaluated in parallel, each task counting into its own buffer.
"""

import math
from typing import Callable, Optional, Tuple, Union

import numpy as np
from numba import njit, prange
from scipy.special import gammaln

from .config import (DEFAULT_A, as_sample, default_maxbins_regular, resolve_support,
                     validate_closed, validate_concentration, validate_positive_int)
from .criteria import nml_complexity
from .exceptions import InfeasiblePartitionError
from .grid import bin_regular
from .histogram import AutomaticHistogram, assemble_histogram
from .wand import wand_bandwidth

# Per-k data terms computed by the scan
STAT_LOGLIK = 0
STAT_MDL = 1
STAT_KLCV = 2
STAT_L2CV = 3
STAT_BAYES = 4

SCAN_RULES = {
    'bayes': STAT_BAYES,
    'knuth': STAT_BAYES,
    'aic': STAT_LOGLIK,
    'bic': STAT_LOGLIK,
    'br': STAT_LOGLIK,
    'nml': STAT_LOGLIK,
    'mdl': STAT_MDL,
    'klcv': STAT_KLCV,
    'l2cv': STAT_L2CV,
}
CLOSED_FORM_RULES = ('sturges', 'fd', 'scott', 'wand')
REGULAR_RULES = tuple(SCAN_RULES) + CLOSED_FORM_RULES


@njit(parallel=True, cache=True)
def _regular_statistics(z, k_max, stat, a_vec, right):
    out = np.empty(k_max)
    for kk in prange(k_max):
        k = kk + 1
        counts = bin_regular(z, k, right)
        s = 0.0
        if stat == STAT_LOGLIK:
            for N in counts:
                if N > 0.0:
                    s += N * math.log(N)
        elif stat == STAT_MDL:
            for N in counts:
                if N < 1.0:
                    s = -np.inf
                    break
                s += (N - 0.5) * math.log(N - 0.5)
        elif stat == STAT_KLCV:
            for N in counts:
                if N < 2.0:
                    s = -np.inf
                    break
                s += N * math.log(N - 1.0)
        elif stat == STAT_L2CV:
            for N in counts:
                s += N * N
        else:
            a_bin = a_vec[kk] / k
            for N in counts:
                s += math.lgamma(a_bin + N) - math.lgamma(a_bin)
        out[kk] = s
    return out


def _concentrations(a, k_max: int) -> np.ndarray:
    """Evaluate a scalar or callable concentration for k = 1..k_max."""
    if callable(a):
        a_vec = np.array([a(k) for k in range(1, k_max + 1)], dtype=np.float64)
        if not np.all(np.isfinite(a_vec)) or np.any(a_vec <= 0.0):
            raise ValueError("Supplied function a(k) must return strictly positive values")
        return a_vec
    return np.full(k_max, validate_concentration(a))


def regular_criterion(z: np.ndarray, rule: str, k_max: int, closed: str = 'right',
                      a: Union[float, Callable] = DEFAULT_A,
                      logprior: Optional[Callable] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Criterion value of the regular partition with k bins, for k = 1..k_max.

    Parameters:
        z (np.ndarray): Sample scaled to [0, 1]
        rule (str): One of the scanned rules
        k_max (int): Largest number of bins considered
        closed (str): 'right' or 'left'
        a (float or Callable): Concentration, or a function of k (bayes)
        logprior (Callable, optional): Log-prior on k (bayes, knuth)

    Returns:
        Tuple[np.ndarray, np.ndarray]: (criterion, a_vec); a_vec holds the
            concentration used for each k, zeros for non-Bayesian rules
    """
    n = len(z)
    k = np.arange(1, k_max + 1, dtype=np.float64)
    if rule == 'knuth':
        a_vec = 0.5 * k
    elif rule == 'bayes':
        a_vec = _concentrations(a, k_max)
    else:
        a_vec = np.zeros(k_max)

    stat = _regular_statistics(np.ascontiguousarray(z, dtype=np.float64), k_max,
                               SCAN_RULES[rule], a_vec, closed == 'right')
    # log-likelihood of the regular histogram, up to the constant -n log n
    loglik = n * np.log(k) + stat

    if rule == 'aic':
        crit = loglik - k
    elif rule == 'bic':
        crit = loglik - 0.5 * k * math.log(n)
    elif rule == 'br':
        crit = loglik - k - np.log(k) ** 2.5
    elif rule == 'nml':
        crit = loglik - nml_complexity(k, n)
    elif rule == 'mdl':
        with np.errstate(invalid='ignore'):
            crit = loglik - (n - 0.5 * k) * np.log(n - 0.5 * k) - 0.5 * k * math.log(n)
        # more than 2n bins leave the code length undefined
        crit = np.where(np.isnan(crit), -np.inf, crit)
    elif rule == 'klcv':
        crit = loglik
    elif rule == 'l2cv':
        crit = -2.0 * k + k * (n + 1.0) / n ** 2 * stat
    else:
        prior = np.zeros(k_max) if logprior is None else np.array([logprior(int(kk)) for kk in k], dtype=np.float64)
        crit = prior + gammaln(a_vec) - gammaln(a_vec + n) + n * np.log(k) + stat
    return crit, a_vec


def sturges_bins(n: int) -> int:
    return int(math.ceil(math.log2(n))) + 1


def closed_form_bins(x: np.ndarray, rule: str, xmin: float, xmax: float,
                     level: int = 2, scalest: str = 'minim') -> int:
    """Number of bins given by a rule-of-thumb or plug-in bin width."""
    n = len(x)
    if rule == 'sturges':
        return sturges_bins(n)
    if rule == 'fd':
        q75, q25 = np.percentile(x, [75, 25])
        width = 2.0 * (q75 - q25) / n ** (1.0 / 3.0)
    elif rule == 'wand':
        width = wand_bandwidth(x, level=level, scalest=scalest, xmin=xmin, xmax=xmax)
    else:
        width = np.std(x, ddof=1) * (24.0 * math.sqrt(math.pi) / n) ** (1.0 / 3.0) if n > 1 else 0.0
    if not width > 0.0:
        # no spread to base a width on
        return sturges_bins(n)
    return max(int(math.ceil((xmax - xmin) / width)), 1)


def histogram_regular(x, rule: str = 'bayes', closed: str = 'right',
                      maxbins: Optional[int] = None,
                      support: Optional[Tuple[float, float]] = None,
                      a: Union[float, Callable] = DEFAULT_A,
                      logprior: Optional[Callable] = None,
                      level: int = 2, scalest: str = 'minim',
                      verbose: bool = False) -> AutomaticHistogram:
    """
    Fit a regular histogram to a one-dimensional sample.

    Parameters:
        x (array-like): Sample
        rule (str): 'bayes', 'knuth', 'aic', 'bic', 'br', 'mdl', 'nml', 'l2cv',
            'klcv', 'sturges', 'fd', 'scott' or 'wand'
        closed (str): 'right' for (a, b] bins, 'left' for [a, b)
        maxbins (int, optional): Largest number of bins scanned. Defaults to
            min(ceil(4n / log(n)^2), 1000). Caps the closed-form rules when given.
        support (tuple, optional): (lower, upper) bounds of the support; use
            -inf or inf for a bound estimated from the sample
        a (float or Callable): Dirichlet concentration, possibly a function of
            the number of bins (bayes)
        logprior (Callable, optional): Log-prior on the number of bins (bayes, knuth)
        level (int): Stages of functional estimation, 0 to 5 (wand)
        scalest (str): 'minim', 'stdev' or 'iqr' scale estimate (wand)
        verbose (bool): Print the selected number of bins

    Returns:
        AutomaticHistogram: The fitted histogram

    Raises:
        ValueError: On invalid arguments
        InfeasiblePartitionError: If every candidate bin count scores -inf
    """
    if rule not in REGULAR_RULES:
        raise ValueError(
            f"Unknown regular rule '{rule}'. Choose one of: {', '.join(REGULAR_RULES)}"
        )
    validate_closed(closed)
    maxbins = validate_positive_int(maxbins, "maxbins")
    if logprior is not None and not callable(logprior):
        raise ValueError("logprior must be a callable taking the number of bins")

    x = as_sample(x)
    n = len(x)
    xmin, xmax = resolve_support(x, support)
    z = (x - xmin) / (xmax - xmin)

    a_opt = 0.0
    if rule in CLOSED_FORM_RULES:
        k_opt = closed_form_bins(x, rule, xmin, xmax, level=level, scalest=scalest)
        if maxbins is not None:
            k_opt = min(k_opt, maxbins)
    else:
        k_max = maxbins if maxbins is not None else default_maxbins_regular(n)
        crit, a_vec = regular_criterion(z, rule, k_max, closed, a=a, logprior=logprior)
        k_opt = int(np.argmax(crit)) + 1
        if not np.isfinite(crit[k_opt - 1]):
            raise InfeasiblePartitionError(
                f"No regular partition with a finite '{rule}' score exists for k <= {k_max}"
            )
        a_opt = float(a_vec[k_opt - 1])

    if verbose:
        print(f"Regular rule '{rule}': {k_opt} bins for {n:,} data points")

    # same cell assignment the scan scored the partition with
    counts = bin_regular(z, k_opt, closed == 'right')
    breaks_norm = np.linspace(0.0, 1.0, k_opt + 1)
    return assemble_histogram(x, breaks_norm, counts, xmin, xmax, closed=closed, a=a_opt,
                              type='regular')
