"""
Reconstruction of the optimal partition from dynamic programming ancestors.
"""

import numpy as np
from numba import njit


@njit(cache=True)
def backtrack_optimal_partitioning(ancestor: np.ndarray, k_max: int) -> np.ndarray:
    """
    Follow ancestor pointers from the last cutpoint back to 0.

    Parameters:
        ancestor (np.ndarray): ancestor[t] is the best predecessor of endpoint t
        k_max (int): Index of the last cutpoint

    Returns:
        np.ndarray: Strictly increasing cutpoint indices, from 0 to k_max
    """
    length = 1
    t = k_max
    while t > 0:
        t = ancestor[t]
        length += 1

    path = np.empty(length, dtype=np.int64)
    pos = length - 1
    t = k_max
    path[pos] = t
    while t > 0:
        t = ancestor[t]
        pos -= 1
        path[pos] = t
    return path


@njit(cache=True)
def backtrack_segment_neighborhood(ancestor: np.ndarray, k_max: int, k: int) -> np.ndarray:
    """
    Recover the optimal k-bin partition of grid[0..k_max].

    Parameters:
        ancestor (np.ndarray): ancestor[b, t] is the best start of the b-th bin
            when that bin ends at t
        k_max (int): Index of the last cutpoint
        k (int): Number of bins

    Returns:
        np.ndarray: k + 1 strictly increasing cutpoint indices, from 0 to k_max
    """
    path = np.empty(k + 1, dtype=np.int64)
    path[k] = k_max
    for b in range(k, 0, -1):
        path[b - 1] = ancestor[b, path[b]]
    return path
