"""Reading bookkeeping and per-utility billing for apartments."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import List
from uuid import uuid4

from app.schemas import (
    ConsumptionSummary,
    PeriodSummary,
    ReadingPayload,
    StoredReading,
    finite_or_none,
)
from datastore.readings_store import ReadingStore, build_default_store
from models.records import MeterReading
from models.tariffs import build_default_tariffs
from services.calculators import (
    GasCalculator,
    GasUsage,
    PowerCalculator,
    PowerUsage,
    WaterCalculator,
    WaterUsage,
)
from services.rounding import round2

logger = logging.getLogger(__name__)


class InsufficientDataError(ValueError):
    """Raised when an apartment has fewer than two readings to bill."""


class ConsumptionService:
    """Coordinates the reading store and the three tariff calculators."""

    def __init__(
        self,
        store: ReadingStore,
        power: PowerCalculator,
        gas: GasCalculator,
        water: WaterCalculator,
    ) -> None:
        self.store = store
        self.power = power
        self.gas = gas
        self.water = water

    def list_apartments(self) -> List[str]:
        return self.store.list_apartments()

    def create_apartment(self, apartment: str) -> None:
        self.store.create_apartment(apartment)
        logger.info("Apartment registered", extra={"apartment": apartment})

    def list_readings(self, apartment: str) -> List[StoredReading]:
        return self.store.list_readings(apartment)

    def record_reading(self, apartment: str, payload: ReadingPayload) -> StoredReading:
        """Store a new reading under a generated id."""
        reading = StoredReading(
            id=str(uuid4()),
            timestamp=datetime.now(timezone.utc),
            **payload.model_dump(),
        )
        self.store.add_reading(apartment, reading)
        logger.info(
            "Reading recorded",
            extra={"apartment": apartment, "reading_id": reading.id},
        )
        return reading

    def update_reading(
        self, apartment: str, reading_id: str, payload: ReadingPayload
    ) -> StoredReading:
        """Replace every meter field of a reading, keeping its id and timestamp."""
        existing = self.store.get_reading(apartment, reading_id)
        reading = StoredReading(
            id=existing.id,
            timestamp=existing.timestamp,
            **payload.model_dump(),
        )
        self.store.update_reading(apartment, reading_id, reading)
        logger.info(
            "Reading updated",
            extra={"apartment": apartment, "reading_id": reading_id},
        )
        return reading

    def delete_reading(self, apartment: str, reading_id: str) -> None:
        self.store.delete_reading(apartment, reading_id)
        logger.info(
            "Reading deleted",
            extra={"apartment": apartment, "reading_id": reading_id},
        )

    def power_calculations(self, apartment: str) -> List[PowerUsage]:
        readings = self._billable_readings(apartment, "power")
        return self._logged(apartment, "power", self.power.calculate_for_dataset(readings))

    def gas_calculations(self, apartment: str) -> List[GasUsage]:
        readings = self._billable_readings(apartment, "gas")
        return self._logged(apartment, "gas", self.gas.calculate_for_dataset(readings))

    def water_calculations(self, apartment: str) -> List[WaterUsage]:
        readings = self._billable_readings(apartment, "water")
        return self._logged(apartment, "water", self.water.calculate_for_dataset(readings))

    def summary(self, apartment: str) -> ConsumptionSummary:
        """Gross amounts of every utility side by side for each billed period.

        All calculators pair the same readings in the same order, so their
        outputs line up period by period.
        """
        readings = self._meter_readings(apartment)
        power = self.power.calculate_for_dataset(readings)
        gas = self.gas.calculate_for_dataset(readings)
        water = self.water.calculate_for_dataset(readings)

        periods: List[PeriodSummary] = []
        for power_usage, gas_usage, water_usage in zip(power, gas, water):
            grosses = (power_usage.gross_price, gas_usage.gross_price, water_usage.gross_price)
            total = round2(sum(grosses))
            periods.append(
                PeriodSummary(
                    date=power_usage.date,
                    power=finite_or_none(power_usage.gross_price),
                    gas=finite_or_none(gas_usage.gross_price),
                    water=finite_or_none(water_usage.gross_price),
                    total=finite_or_none(total),
                )
            )
        return ConsumptionSummary(apartment=apartment, periods=periods)

    def _meter_readings(self, apartment: str) -> List[MeterReading]:
        return [
            MeterReading.from_payload(stored.model_dump(by_alias=True))
            for stored in self.store.list_readings(apartment)
        ]

    def _billable_readings(self, apartment: str, utility: str) -> List[MeterReading]:
        readings = self._meter_readings(apartment)
        if len(readings) < 2:
            logger.info(
                "Not enough readings to bill",
                extra={
                    "apartment": apartment,
                    "utility": utility,
                    "reading_count": len(readings),
                },
            )
            raise InsufficientDataError("Insufficient data for calculations")
        return readings

    @staticmethod
    def _logged(apartment: str, utility: str, periods: list) -> list:
        logger.debug(
            "Billing periods calculated",
            extra={"apartment": apartment, "utility": utility, "period_count": len(periods)},
        )
        return periods


@lru_cache
def build_default_service() -> ConsumptionService:
    """Factory that wires the service with the configured store and tariffs."""
    tariffs = build_default_tariffs()
    return ConsumptionService(
        store=build_default_store(),
        power=PowerCalculator(tariffs.power),
        gas=GasCalculator(tariffs.gas),
        water=WaterCalculator(tariffs.water),
    )
