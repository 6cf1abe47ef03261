"""Rounding primitives used by the tariff calculators."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal

_CENTS = Decimal("0.01")
# wide enough to quantize any finite double without raising
_CONTEXT = Context(prec=400, rounding=ROUND_HALF_UP)


def round2(value: float) -> float:
    """Round to two decimal places, half away from zero.

    Rounding works on the exact binary value of ``value``, so ``1.005`` (stored
    as ``1.00499...``) becomes ``1.0`` while ``0.125`` becomes ``0.13``.
    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    return float(Decimal(value).quantize(_CENTS, context=_CONTEXT))


def round_whole(value: float) -> float:
    """Round to the nearest integer with ties going toward positive infinity."""
    if not math.isfinite(value):
        return value
    floor = math.floor(value)
    if value - floor >= 0.5:
        return float(floor + 1)
    return float(floor)
