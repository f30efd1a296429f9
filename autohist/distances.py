"""
Distances between two fitted histogram densities.

Both densities are piecewise constant, so every integral is an exact finite
sum over the union of the two sets of breakpoints. A histogram is zero
outside its own support.
"""

import numpy as np

from .histogram import AutomaticHistogram


def _common_pieces(h1: AutomaticHistogram, h2: AutomaticHistogram):
    disc = np.union1d(h1.breaks, h2.breaks)
    mid = 0.5 * (disc[:-1] + disc[1:])
    return np.diff(disc), h1.evaluate(mid), h2.evaluate(mid)


def hellinger_distance(h1: AutomaticHistogram, h2: AutomaticHistogram) -> float:
    """sqrt of the integral of (sqrt(f1) - sqrt(f2))^2."""
    width, d1, d2 = _common_pieces(h1, h2)
    return float(np.sqrt(np.sum(width * (np.sqrt(d1) - np.sqrt(d2)) ** 2)))


def lp_distance(h1: AutomaticHistogram, h2: AutomaticHistogram, p: float = 2.0) -> float:
    if not p >= 1.0:
        raise ValueError(f"p must be at least 1, got {p}")
    width, d1, d2 = _common_pieces(h1, h2)
    return float(np.sum(width * np.abs(d1 - d2) ** p) ** (1.0 / p))


def supremum_distance(h1: AutomaticHistogram, h2: AutomaticHistogram) -> float:
    _, d1, d2 = _common_pieces(h1, h2)
    return float(np.max(np.abs(d1 - d2)))


def kl_divergence(h1: AutomaticHistogram, h2: AutomaticHistogram) -> float:
    """
    Kullback-Leibler divergence K(f1, f2), not symmetric.

    Pieces where f1 vanishes contribute nothing. The result is inf when f1
    puts mass where f2 does not.
    """
    width, d1, d2 = _common_pieces(h1, h2)
    mask = d1 > 0.0
    with np.errstate(divide='ignore'):
        terms = width[mask] * d1[mask] * (np.log(d1[mask]) - np.log(d2[mask]))
    return float(np.sum(terms))
