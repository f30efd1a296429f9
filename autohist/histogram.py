"""
Fitted histogram container and result assembly.
"""

from dataclasses import dataclass
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from scipy.special import gammaln


@dataclass(eq=False)
class AutomaticHistogram:
    """
    A histogram whose partition was chosen automatically from the sample.

    Attributes:
        breaks: Strictly increasing bin edges in data units.
        density: Estimated density of each bin.
        counts: Number of observations in each bin.
        type: 'irregular' or 'regular'.
        closed: 'right' for (left, right] bins, 'left' for [left, right).
        a: Dirichlet concentration used for the densities, NaN when the
            histogram was not fit with a Bayesian rule.
    """

    breaks: np.ndarray
    density: np.ndarray
    counts: np.ndarray
    type: str = 'irregular'
    closed: str = 'right'
    a: float = np.nan

    @property
    def n_bins(self) -> int:
        return len(self.counts)

    @property
    def widths(self) -> np.ndarray:
        return np.diff(self.breaks)

    def loglikelihood(self) -> float:
        """Sum of N_j log(d_j) over the non-empty bins."""
        mask = self.counts > 0
        return float(np.sum(self.counts[mask] * np.log(self.density[mask])))

    def logmarginallikelihood(self, a: Optional[float] = None) -> float:
        """
        Log-marginal likelihood under a Dirichlet prior centered on the uniform
        distribution over bins, with a_j = a / k.

        Parameters:
            a (float, optional): Concentration. Defaults to the one the
                histogram was fit with.

        Raises:
            ValueError: If a is not given and the histogram was not fit with a
                Bayesian rule, or if a is not positive
        """
        if a is None:
            if np.isnan(self.a):
                raise ValueError(
                    "The histogram was not fit with a Bayesian rule; pass the concentration a explicitly"
                )
            a = self.a
        if not a > 0.0:
            raise ValueError(f"Concentration parameter a must be positive, got {a}")
        counts = self.counts.astype(np.float64)
        a_bin = a / self.n_bins
        n = counts.sum()
        return float(gammaln(a) - gammaln(a + n)
                     + np.sum(gammaln(counts + a_bin) - gammaln(a_bin) - counts * np.log(self.widths)))

    def bin_index(self, x) -> np.ndarray:
        """
        Zero-based bin of each value under the closedness convention, -1 for
        values outside [breaks[0], breaks[-1]].
        """
        x = np.asarray(x, dtype=np.float64)
        k = self.n_bins
        if self.closed == 'right':
            idx = np.searchsorted(self.breaks, x, side='left') - 1
            idx = np.where(x == self.breaks[0], 0, idx)
        else:
            idx = np.searchsorted(self.breaks, x, side='right') - 1
            idx = np.where(x == self.breaks[-1], k - 1, idx)
        outside = (x < self.breaks[0]) | (x > self.breaks[-1]) | np.isnan(x)
        return np.where(outside, -1, idx)

    def evaluate(self, x) -> np.ndarray:
        """Density at each value, zero outside the support."""
        idx = self.bin_index(x)
        return np.where(idx >= 0, self.density[np.maximum(idx, 0)], 0.0)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            'Left': self.breaks[:-1],
            'Right': self.breaks[1:],
            'Count': self.counts,
            'Density': self.density,
        })

    def plot(self, ax=None, **kwargs):
        """
        Draw the histogram as a step density.

        Parameters:
            ax (matplotlib.axes.Axes, optional): Axes to draw on. A new figure
                is created when omitted.
            **kwargs: Passed on to Axes.bar

        Returns:
            matplotlib.axes.Axes: The axes drawn on
        """
        if ax is None:
            _, ax = plt.subplots(figsize=(10, 6))
        style = {'alpha': 0.7, 'color': 'skyblue', 'edgecolor': 'black'}
        style.update(kwargs)
        ax.bar(self.breaks[:-1], self.density, width=self.widths, align='edge', **style)
        ax.set_xlabel('x')
        ax.set_ylabel('Density')
        ax.set_title(f'{self.type.capitalize()} histogram with {self.n_bins} bins')
        ax.grid(True, alpha=0.3)
        return ax

    def __eq__(self, other):
        if not isinstance(other, AutomaticHistogram):
            return NotImplemented
        return (np.array_equal(self.breaks, other.breaks)
                and np.array_equal(self.density, other.density)
                and np.array_equal(self.counts, other.counts)
                and self.type == other.type
                and self.closed == other.closed
                and (self.a == other.a or (np.isnan(self.a) and np.isnan(other.a))))

    def __repr__(self):
        return (f"AutomaticHistogram(type={self.type}, closed={self.closed}, n_bins={self.n_bins}, "
                f"a={self.a})\n"
                f"breaks: {np.array2string(self.breaks, precision=4)}\n"
                f"density: {np.array2string(self.density, precision=4)}\n"
                f"counts: {np.array2string(self.counts)}")


def breaks_in_data_units(breaks_norm: np.ndarray, xmin: float, xmax: float,
                         x: np.ndarray) -> np.ndarray:
    """
    Map a partition of [0, 1] back to data units.

    A normalized cutpoint that is the image of an observation is replaced by
    that observation, so the bin an observation on a cutpoint belongs to does
    not depend on rounding in the affine map. The outer edges are exactly the
    support.
    """
    breaks_norm = np.asarray(breaks_norm, dtype=np.float64)
    breaks = xmin + (xmax - xmin) * breaks_norm

    # same expression the sample was normalized with
    values = np.unique(x)
    images = (values - xmin) / (xmax - xmin)
    pos = np.minimum(np.searchsorted(images, breaks_norm), len(values) - 1)
    hit = images[pos] == breaks_norm
    breaks[hit] = values[pos[hit]]

    breaks[0] = xmin
    breaks[-1] = xmax
    return breaks


def assemble_histogram(x: np.ndarray, breaks_norm: np.ndarray, counts: np.ndarray,
                       xmin: float, xmax: float, closed: str = 'right', a: float = 0.0,
                       type: str = 'irregular') -> AutomaticHistogram:
    """
    Turn an optimized partition of [0, 1] into a fitted histogram.

    The counts are the ones the partition was selected with; they are not
    recomputed on the data-unit edges. With a > 0 the densities are shrunk
    toward the uniform distribution on the support,
    (N_j + a p_j) / ((n + a) width_j) where p_j is the normalized bin width.

    Parameters:
        x (np.ndarray): Original sample
        breaks_norm (np.ndarray): Partition of [0, 1], strictly increasing
        counts (np.ndarray): Observations per bin of the partition
        xmin, xmax (float): Support the sample was normalized with
        closed (str): 'right' or 'left'
        a (float): Dirichlet concentration, 0 for non-Bayesian rules
        type (str): 'irregular' or 'regular'

    Returns:
        AutomaticHistogram: The assembled histogram
    """
    breaks_norm = np.asarray(breaks_norm, dtype=np.float64)
    counts = np.rint(np.asarray(counts)).astype(np.int64)
    if len(counts) != len(breaks_norm) - 1:
        raise ValueError(f"Expected {len(breaks_norm) - 1} bin counts, got {len(counts)}")
    if counts.sum() != len(x):
        raise ValueError(f"Bin counts add up to {counts.sum()}, expected {len(x)}")

    breaks = breaks_in_data_units(breaks_norm, xmin, xmax, x)
    p0 = np.diff(breaks_norm)
    density = (counts + a * p0) / ((len(x) + a) * np.diff(breaks))
    return AutomaticHistogram(breaks=breaks, density=density, counts=counts, type=type,
                              closed=closed, a=float(a) if a > 0.0 else np.nan)
