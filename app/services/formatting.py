import math
from typing import Union

Number = Union[int, float]


def round_money(value: Number) -> float:
    """Round half-up to 2 decimals (``round(x * 100) / 100``).

    The builtin ``round`` rounds half to even, which would turn 0.125 into 0.12.
    """
    return math.floor(value * 100 + 0.5) / 100


def percentage(part: Number, whole: Number) -> float:
    """Share of ``whole`` as a percentage rounded to 2 decimals; 0 when whole is 0."""
    if not whole:
        return 0
    return round_money(part / whole * 100)
