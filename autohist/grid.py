"""
Candidate grid construction and binning.

The finest candidate grid lives on the normalized domain [0, 1]. Together with
the cumulative cell counts it is the only input the partition optimizer needs:
the number of observations in the bin (grid[i], grid[j]] is simply
N_cum[j] - N_cum[i].

Boundary convention: with closed='right' every bin is (left, right] except the
first, which also contains its left endpoint. With closed='left' every bin is
[left, right) except the last, which also contains its right endpoint. The
outer endpoints are therefore never lost, without perturbing the grid.
"""

import math
from typing import Tuple

import numpy as np
from numba import njit


@njit(cache=True)
def bin_regular(z: np.ndarray, k: int, right: bool) -> np.ndarray:
    """
    Count normalized observations in k equal-width cells of [0, 1].

    The cell index is computed arithmetically instead of by search, which is
    what makes the regular grid and the regular bin-count scan cheap.

    Parameters:
        z (np.ndarray): Observations scaled to [0, 1]
        k (int): Number of cells
        right (bool): True for right-closed cells

    Returns:
        np.ndarray: Float counts per cell, shape (k,)
    """
    counts = np.zeros(k)
    for v in z:
        if right:
            idx = int(math.ceil(v * k)) - 1
        else:
            idx = int(math.floor(v * k))
        # closed outer endpoints
        if idx < 0:
            idx = 0
        elif idx > k - 1:
            idx = k - 1
        counts[idx] += 1.0
    return counts


def bin_irregular(x: np.ndarray, edges: np.ndarray, closed: str = 'right') -> np.ndarray:
    """
    Count observations in the bins delimited by sorted edges.

    Parameters:
        x (np.ndarray): Observations, all within [edges[0], edges[-1]]
        edges (np.ndarray): Strictly increasing bin edges
        closed (str): 'right' or 'left'

    Returns:
        np.ndarray: Integer counts per bin, shape (len(edges) - 1,)
    """
    k = len(edges) - 1
    if closed == 'right':
        idx = np.searchsorted(edges, x, side='left') - 1
        idx = np.maximum(idx, 0)
    else:
        idx = np.searchsorted(edges, x, side='right') - 1
        idx = np.minimum(idx, k - 1)
    if idx.size and (idx.min() < 0 or idx.max() > k - 1):
        raise ValueError("Observations fall outside the outer bin edges")
    return np.bincount(idx, minlength=k)


def _with_endpoints(interior: np.ndarray) -> np.ndarray:
    interior = np.unique(interior)
    interior = interior[(interior > 0.0) & (interior < 1.0)]
    return np.concatenate(([0.0], interior, [1.0]))


def build_grid(y: np.ndarray, mode: str, maxbins: int,
               closed: str = 'right') -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the finest candidate grid and its cumulative counts.

    Parameters:
        y (np.ndarray): Sample scaled to [0, 1]
        mode (str): 'regular' (maxbins equal cells), 'data' (every distinct
            observation is a cutpoint, maxbins is ignored) or 'quantile'
            (maxbins - 1 interior cutpoints at evenly spaced sample quantiles)
        maxbins (int): Number of cells for the regular and quantile grids
        closed (str): 'right' or 'left'

    Returns:
        Tuple[np.ndarray, np.ndarray]: (grid, N_cum), both of length m + 1,
            grid strictly increasing from 0 to 1, N_cum[0] = 0 and
            N_cum[m] = len(y)
    """
    if mode == 'regular':
        grid = np.linspace(0.0, 1.0, maxbins + 1)
        counts = bin_regular(y, maxbins, closed == 'right')
    elif mode == 'data':
        grid = _with_endpoints(y)
        counts = bin_irregular(y, grid, closed).astype(np.float64)
    elif mode == 'quantile':
        levels = np.linspace(1.0 / maxbins, 1.0 - 1.0 / maxbins, maxbins - 1)
        # tied quantiles collapse into one cutpoint
        grid = _with_endpoints(np.quantile(y, levels))
        counts = bin_irregular(y, grid, closed).astype(np.float64)
    else:
        raise ValueError(f"Unknown grid mode: {mode}")

    N_cum = np.zeros(len(grid))
    N_cum[1:] = np.cumsum(counts)
    return grid, N_cum
