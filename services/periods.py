"""Ordering and billing-unit helpers shared by the calculators."""

from __future__ import annotations

from datetime import date
from operator import attrgetter
from typing import Iterable, Iterator, List, Tuple

from models.records import MeterReading


def count_billing_units(previous: date, current: date) -> int:
    """Number of monthly fee cycles between two readings.

    Counts calendar-month boundaries crossed, ignoring the day of month, with a
    floor of one cycle for readings taken within the same month.
    """
    months = (current.year - previous.year) * 12 + (current.month - previous.month)
    return max(1, months)


def chronological(readings: Iterable[MeterReading]) -> List[MeterReading]:
    return sorted(readings, key=attrgetter("date"))


def consecutive_pairs(
    readings: Iterable[MeterReading],
) -> Iterator[Tuple[MeterReading, MeterReading]]:
    """Yield ``(previous, current)`` pairs of readings in date order."""
    ordered = chronological(readings)
    for index in range(1, len(ordered)):
        yield ordered[index - 1], ordered[index]
