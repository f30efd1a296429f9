"""
Single entry point dispatching to the regular or irregular builders.
"""

from typing import Optional

from .criteria import CRITERIA
from .histogram import AutomaticHistogram
from .irregular import histogram_irregular
from .regular import REGULAR_RULES, histogram_regular

HISTOGRAM_TYPES = ('irregular', 'regular')


def infer_type(rule: str, type: Optional[str] = None) -> str:
    """
    Decide which family a rule is fit with.

    Rules that exist in only one family ignore type. Rules available in both
    (bayes, klcv, l2cv, nml) use type, defaulting to 'irregular'.
    """
    in_irregular = rule in CRITERIA
    in_regular = rule in REGULAR_RULES
    if not (in_irregular or in_regular):
        rules = sorted(set(CRITERIA) | set(REGULAR_RULES))
        raise ValueError(f"Unknown rule '{rule}'. Choose one of: {', '.join(rules)}")
    if in_irregular and in_regular:
        if type is None:
            return 'irregular'
        if type not in HISTOGRAM_TYPES:
            raise ValueError(f"type must be 'irregular' or 'regular', got '{type}'")
        return type
    return 'irregular' if in_irregular else 'regular'


def fit(x, rule: str = 'bayes', type: Optional[str] = None, **kwargs) -> AutomaticHistogram:
    """
    Fit a histogram with an automatically chosen partition.

    Parameters:
        x (array-like): Sample
        rule (str): Criterion used to select the partition
        type (str, optional): 'irregular' or 'regular' for rules implemented
            in both families
        **kwargs: Passed to histogram_irregular or histogram_regular

    Returns:
        AutomaticHistogram: The fitted histogram
    """
    if infer_type(rule, type) == 'irregular':
        return histogram_irregular(x, rule=rule, **kwargs)
    return histogram_regular(x, rule=rule, **kwargs)
