"""Domain models shared across services."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping

DEFAULT_GAS_PERCENTAGE = 100.0
DEFAULT_POWER_REDUCTION = 0.0

_NON_FINITE_WORDS = frozenset({"inf", "infinity", "nan"})


def parse_number(value: Any, default: float = math.nan) -> float:
    """Convert a meter field to a float.

    Missing or blank values fall back to ``default``. Anything that cannot be
    read as a decimal number becomes NaN instead of raising, so a bad field
    shows up as a NaN price rather than a failed calculation.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    candidate = str(value).strip()
    if not candidate:
        return default
    # float() also takes digit separators and any inf/nan spelling; only "Infinity" is a number here
    if "_" in candidate:
        return math.nan
    unsigned = candidate[1:] if candidate[0] in "+-" else candidate
    if unsigned.lower() in _NON_FINITE_WORDS:
        return float(candidate) if unsigned == "Infinity" else math.nan
    try:
        return float(candidate)
    except ValueError:
        return math.nan


def parse_reading_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    candidate = str(value).strip()
    return date.fromisoformat(candidate[:10])


@dataclass(frozen=True, slots=True)
class MeterReading:
    """A single set of cumulative meter totals taken on one day."""

    date: date
    power: float
    gas: float
    water: float
    gas_percentage: float = DEFAULT_GAS_PERCENTAGE
    power_reduction: float = DEFAULT_POWER_REDUCTION

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MeterReading":
        """Build a reading from a stored or submitted record with camelCase keys."""
        return cls(
            date=parse_reading_date(payload["date"]),
            power=parse_number(payload.get("power")),
            gas=parse_number(payload.get("gas")),
            water=parse_number(payload.get("water")),
            gas_percentage=parse_number(
                payload.get("gasPercentage"), default=DEFAULT_GAS_PERCENTAGE
            ),
            power_reduction=parse_number(
                payload.get("powerReduction"), default=DEFAULT_POWER_REDUCTION
            ),
        )
