"""
Algorithm configuration for the irregular partition search.

SegNeig and OptPart only carry options; the solvers themselves live in
autohist.dynprog. Both optionally coarsen the candidate grid with the greedy
pruner before running the dynamic program, and both switch to the bounded
candidate heuristic when max_cand is set.
"""

import math
from typing import Optional

from .config import validate_positive_int


class _PartitionAlgorithm:
    name = None
    _greedy_floor = None
    _greedy_power = None

    def __init__(self, greedy: bool = True, gr_maxbins: Optional[int] = None,
                 max_cand: Optional[int] = None):
        self.greedy = bool(greedy)
        self.gr_maxbins = validate_positive_int(gr_maxbins, "gr_maxbins")
        self.max_cand = validate_positive_int(max_cand, "max_cand")
        if self.max_cand is not None and self.max_cand < 2:
            raise ValueError(f"max_cand must be at least 2, got {self.max_cand}")

    def default_gr_maxbins(self, n: int, maxbins: int) -> int:
        """Size the greedy pruner aims for when gr_maxbins is not given."""
        return min(maxbins, max(math.ceil(n ** self._greedy_power), self._greedy_floor))

    def resolve_gr_maxbins(self, n: int, maxbins: int) -> int:
        if self.gr_maxbins is None:
            return self.default_gr_maxbins(n, maxbins)
        return min(self.gr_maxbins, maxbins)

    def __eq__(self, other):
        return (type(self) is type(other) and self.greedy == other.greedy
                and self.gr_maxbins == other.gr_maxbins and self.max_cand == other.max_cand)

    def __repr__(self):
        return (f"{type(self).__name__}(greedy={self.greedy}, gr_maxbins={self.gr_maxbins}, "
                f"max_cand={self.max_cand})")


class SegNeig(_PartitionAlgorithm):
    """
    Segment neighborhood: optimal partition for every bin count.

    Required by rules with a cardinality penalty. Cubic in the number of
    candidate cutpoints, so greedy pruning is on by default and targets a few
    hundred cutpoints.

    Parameters:
        greedy (bool): Prune the candidate grid before the dynamic program
        gr_maxbins (int, optional): Number of bins kept by the pruner
        max_cand (int, optional): Predecessors kept per endpoint (>= 2);
            enables the quadratic-time heuristic
    """
    name = 'segneig'
    _greedy_floor = 500
    _greedy_power = 1.0 / 3.0


class OptPart(_PartitionAlgorithm):
    """
    Optimal partitioning: best partition over all bin counts in one sweep.

    Only valid for rules without a cardinality penalty. Quadratic in the
    number of candidate cutpoints, so the default greedy target is larger.

    Parameters:
        greedy (bool): Prune the candidate grid before the dynamic program
        gr_maxbins (int, optional): Number of bins kept by the pruner
        max_cand (int, optional): Predecessors kept per endpoint (>= 2);
            enables the linear-time heuristic
    """
    name = 'optpart'
    _greedy_floor = 3000
    _greedy_power = 0.5


def default_algorithm(name: str) -> _PartitionAlgorithm:
    if name == SegNeig.name:
        return SegNeig()
    if name == OptPart.name:
        return OptPart()
    raise ValueError(f"Unknown algorithm: {name}")
