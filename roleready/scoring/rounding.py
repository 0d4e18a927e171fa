from __future__ import annotations

import math

# Float products like 75 * 0.8 land just under exact halves.
_FLOAT_NOISE_DIGITS = 6


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive inputs (2.5 -> 3, 0.05 -> 0.1)."""
    factor = 10 ** digits
    return math.floor(round(value * factor, _FLOAT_NOISE_DIGITS) + 0.5) / factor


def round_int(value: float) -> int:
    return int(math.floor(round(value, _FLOAT_NOISE_DIGITS) + 0.5))
