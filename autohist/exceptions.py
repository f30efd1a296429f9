"""
Exceptions raised by the partition optimizer.
"""


class InfeasiblePartitionError(ValueError):
    """
    Raised when every partition of the candidate grid scores minus infinity.

    This happens for cross-validation criteria that forbid bins with too few
    observations or too small a length, when no admissible partition exists.
    """
