"""Nearest-rank quantile estimation."""

import math
from collections.abc import Sequence


def nearest_rank(sorted_values: Sequence[int], q: float) -> int:
    """Return the nearest-rank quantile of an ascending sequence.

    The rank is ``ceil(n * q) - 1`` clamped to ``[0, n - 1]``; the result is
    always one of the observed values, never an interpolation.

    Args:
        sorted_values: Values sorted ascending.
        q: Quantile in [0, 1] (e.g., 0.95 for p95).

    Returns:
        The selected value, or 0 for an empty sequence.
    """
    n = len(sorted_values)
    if n == 0:
        return 0
    index = min(n - 1, max(0, math.ceil(n * q) - 1))
    return sorted_values[index]
