# app/utils/numeric.py
from __future__ import annotations

import math
from typing import Optional, Union

import numpy as np

Number = Union[int, float]

METRES_PER_KM = 1000.0


def coerce_float(value) -> Optional[float]:
    """
    Best-effort float conversion that returns None when the value cannot be parsed.
    Thousands separators in text ("1,200") are tolerated; NaN/inf are rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def coerce_int(value) -> Optional[int]:
    """
    Best-effort integer conversion with support for numeric strings/floats.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        as_float = coerce_float(value)
        return int(as_float) if as_float is not None else None


def safe_divide(numerator, denominator) -> Optional[float]:
    """
    Divide while guarding against None/zero/invalid values.
    """
    if numerator is None or denominator in (None, 0):
        return None
    try:
        return float(numerator) / float(denominator)
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def to_km(metres: Number | None) -> float:
    if metres is None:
        return 0.0
    return float(metres) / METRES_PER_KM


__all__ = ["METRES_PER_KM", "coerce_float", "coerce_int", "safe_divide", "to_km"]
