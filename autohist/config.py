"""
Defaults and argument resolution shared by the histogram builders.

All user-facing validation happens here, before any of the numerical kernels
run. The kernels assume sanitized input.
"""

import math
from typing import Optional, Tuple

import numpy as np

DEFAULT_A = 5.0
DEFAULT_P0 = 0.05
REGULAR_MAXBINS_CAP = 1000

GRID_MODES = ('data', 'regular', 'quantile')
CLOSED_OPTIONS = ('right', 'left')


def validate_closed(closed: str) -> str:
    if closed not in CLOSED_OPTIONS:
        raise ValueError(f"closed must be 'right' or 'left', got '{closed}'")
    return closed


def validate_grid(grid: str) -> str:
    if grid not in GRID_MODES:
        raise ValueError(
            f"grid must be one of {', '.join(GRID_MODES)}, got '{grid}'"
        )
    return grid


def validate_positive_int(value, name: str) -> Optional[int]:
    """Accept None (use default) or a strictly positive integer."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"{name} must be a positive integer or None, got {value!r}")
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return int(value)


def validate_concentration(a: float) -> float:
    if not np.isfinite(a) or a <= 0.0:
        raise ValueError(f"Concentration parameter a must be positive, got {a}")
    return float(a)


def validate_p0(p0: float) -> float:
    if not 0.0 < p0 < 1.0:
        raise ValueError(f"p0 must lie in the open interval (0, 1), got {p0}")
    return float(p0)


def as_sample(x) -> np.ndarray:
    """Convert input to a flat float64 array and reject empty or non-finite data."""
    x = np.asarray(x, dtype=np.float64).ravel()
    if x.size == 0:
        raise ValueError("Sample must contain at least one observation")
    if not np.all(np.isfinite(x)):
        raise ValueError("Sample contains NaN or infinite values")
    return x


def resolve_support(x: np.ndarray,
                    support: Optional[Tuple[float, float]] = None) -> Tuple[float, float]:
    """
    Determine the interval the histogram is built on.

    An infinite (or missing) bound is replaced by the corresponding sample
    extreme. A finite bound must contain every observation.

    Returns:
        Tuple[float, float]: (xmin, xmax) with xmin < xmax
    """
    xmin, xmax = float(np.min(x)), float(np.max(x))
    if support is not None:
        lo, hi = support
        if np.isfinite(lo):
            if lo > xmin:
                raise ValueError(
                    f"Supplied lower bound {lo} is greater than the smallest observation {xmin}"
                )
            xmin = float(lo)
        if np.isfinite(hi):
            if hi < xmax:
                raise ValueError(
                    f"Supplied upper bound {hi} is smaller than the largest observation {xmax}"
                )
            xmax = float(hi)
    if not xmax > xmin:
        raise ValueError(
            "Sample has zero range; supply an explicit support to build a histogram"
        )
    return xmin, xmax


def default_maxbins_irregular(n: int) -> int:
    """Size of the finest regular or quantile grid."""
    if n < 2:
        return 1
    return min(n, math.ceil(4.0 * n / math.log(n) ** 2))


def default_maxbins_regular(n: int) -> int:
    """Largest bin count scanned by the regular criteria."""
    if n < 2:
        return 1
    return min(math.ceil(4.0 * n / math.log(n) ** 2), REGULAR_MAXBINS_CAP)


def min_bin_length(n: int) -> float:
    """Smallest admissible bin length on the normalized scale."""
    if n < 2:
        return 0.0
    return math.log(n) ** 1.5 / n
