"""Rounding helpers matching the backend's JavaScript ``Math.round``.

Python's built-in ``round`` rounds halves to even (``round(12.5) == 12``);
the catalog expects halves to round up (``12.5 -> 13``).
"""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity.

    Examples:
        >>> round_half_up(12.5)
        13
        >>> round_half_up(66.666)
        67
        >>> round_half_up(-0.5)
        0
    """
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    """Integer percentage of ``part`` in ``whole``, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)
