"""
Histogram Estimator Module

Fit/transform wrapper around the automatic histogram builders, for use in
data preparation code that discretizes a continuous variable into the bins of
a data-driven partition.
"""

from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .fitting import fit, infer_type
from .histogram import AutomaticHistogram


class HistogramEstimator:
    """
    Discretize a continuous variable into automatically chosen bins.

    Attributes:
        rule (str): Criterion used to select the partition
        type (str): 'irregular' or 'regular'
        options (dict): Keyword arguments forwarded to the builder
        histogram (AutomaticHistogram): Fitted histogram, None before fit()
        boundaries (np.ndarray): Bin edges after fitting
        num_bins (int): Number of bins after fitting
    """

    def __init__(self, rule: str = 'bayes', type: Optional[str] = None, **options):
        """
        Parameters:
            rule (str): Criterion used to select the partition
            type (str, optional): 'irregular' or 'regular' for rules that
                exist in both families
            **options: Passed on to histogram_irregular or histogram_regular
        """
        self.rule = rule
        self.type = infer_type(rule, type)
        self.options = options
        self.histogram = None
        self.boundaries = None
        self.num_bins = None

    def fit(self, x: np.ndarray) -> 'HistogramEstimator':
        """
        Fit the partition to a sample.

        Returns:
            HistogramEstimator: Fitted estimator for method chaining
        """
        self.histogram = fit(x, rule=self.rule, type=self.type, **self.options)
        self.boundaries = self.histogram.breaks
        self.num_bins = self.histogram.n_bins
        return self

    def _check_fitted(self) -> AutomaticHistogram:
        if self.histogram is None:
            raise ValueError("Model not fitted. Call fit() first.")
        return self.histogram

    def transform(self, x: np.ndarray) -> np.ndarray:
        """
        Map values to the zero-based index of their bin.

        Values outside the fitted support map to -1.

        Raises:
            ValueError: If the estimator has not been fitted
        """
        return self._check_fitted().bin_index(x)

    def fit_transform(self, x: np.ndarray) -> np.ndarray:
        return self.fit(x).transform(x)

    def get_bin_stats(self, x: np.ndarray) -> pd.DataFrame:
        """
        Summary statistics of the values falling in each bin.

        Returns:
            pd.DataFrame: One row per bin with columns Bin, Left, Right,
                Count, Min, Max, Mean, Std and Density
        """
        h = self._check_fitted()
        x = np.asarray(x, dtype=np.float64)
        idx = self.transform(x)

        stats = []
        for b in range(h.n_bins):
            values = x[idx == b]
            has_values = len(values) > 0
            stats.append({
                'Bin': b,
                'Left': h.breaks[b],
                'Right': h.breaks[b + 1],
                'Count': len(values),
                'Min': np.min(values) if has_values else np.nan,
                'Max': np.max(values) if has_values else np.nan,
                'Mean': np.mean(values) if has_values else np.nan,
                'Std': np.std(values) if has_values else np.nan,
                'Density': h.density[b],
            })
        return pd.DataFrame(stats)

    def plot_histogram(self, x: np.ndarray, figsize: Tuple[int, int] = (12, 8)):
        """
        Plot the fitted density over a fine regular histogram of the data.

        Returns:
            matplotlib.figure.Figure: Upper panel shows the data with the
                fitted bin boundaries, lower panel the fitted density
        """
        h = self._check_fitted()
        fig, axes = plt.subplots(2, 1, figsize=figsize)

        ax1 = axes[0]
        ax1.hist(x, bins=50, density=True, alpha=0.7, color='lightgray', edgecolor='black')
        for boundary in h.breaks[1:-1]:
            ax1.axvline(boundary, color='red', linestyle='--', alpha=0.8)
        ax1.set_xlabel('x')
        ax1.set_ylabel('Density')
        ax1.set_title(f"Data with '{self.rule}' bin boundaries")
        ax1.grid(True, alpha=0.3)

        h.plot(ax=axes[1])

        plt.tight_layout()
        return fig
