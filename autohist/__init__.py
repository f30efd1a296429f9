"""
Automatic histograms with data-driven regular and irregular partitions.
"""

from .algorithms import OptPart, SegNeig
from .distances import hellinger_distance, kl_divergence, lp_distance, supremum_distance
from .estimator import HistogramEstimator
from .exceptions import InfeasiblePartitionError
from .fitting import fit
from .histogram import AutomaticHistogram
from .irregular import histogram_irregular
from .optimize import PartitionResult, maximize_additive_crit
from .regular import histogram_regular

__version__ = "0.1.0"

__all__ = [
    "AutomaticHistogram",
    "HistogramEstimator",
    "InfeasiblePartitionError",
    "OptPart",
    "PartitionResult",
    "SegNeig",
    "fit",
    "hellinger_distance",
    "histogram_irregular",
    "histogram_regular",
    "kl_divergence",
    "lp_distance",
    "maximize_additive_crit",
    "supremum_distance",
]
