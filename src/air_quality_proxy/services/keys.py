"""Cache key derivation from coordinates."""

import math


def _round_half_away(value: float) -> float:
    """Round to 2 decimal places, halves away from zero."""
    if not math.isfinite(value):
        return value
    scaled = value * 100
    rounded = math.floor(abs(scaled) + 0.5)
    # + 0.0 folds -0.0 into 0.0
    return math.copysign(rounded, scaled) / 100 + 0.0


def _format(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def make_key(latitude: float, longitude: float) -> str:
    """Create the cache key for a coordinate pair.

    Each axis is rounded to 2 decimal places (about 1.1 km at the equator)
    so nearby locations share a cache entry, e.g. ``40.7128, -74.0060`` and
    ``40.7129, -74.0061`` both map to ``"40.71,-74.01"``.
    """
    return f"{_format(_round_half_away(latitude))},{_format(_round_half_away(longitude))}"
