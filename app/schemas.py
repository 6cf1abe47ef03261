"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import datetime as dt
import math
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from services.calculators import GasUsage, PowerUsage, WaterUsage


def finite_or_none(value: float) -> Optional[float]:
    """NaN and infinite prices have no JSON form and are sent as null."""
    return value if math.isfinite(value) else None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReadingPayload(_CamelModel):
    """Meter totals submitted when creating or editing a reading."""

    date: dt.date
    power: float = Field(..., ge=0, allow_inf_nan=False)
    gas: float = Field(..., ge=0, allow_inf_nan=False)
    water: float = Field(..., ge=0, allow_inf_nan=False)
    gas_percentage: float = Field(
        default=100, ge=0, le=100, description="Share of the gas cost billed to the apartment."
    )
    power_reduction: float = Field(
        default=0,
        allow_inf_nan=False,
        description="Units subtracted from the power delta of the period.",
    )


class StoredReading(_CamelModel):
    """A reading as persisted in an apartment file.

    Meter fields accept numbers or text so that files written by hand or by
    older clients still load. Text is parsed when the reading is priced.
    """

    id: str
    timestamp: Optional[dt.datetime] = None
    date: dt.date
    power: Union[float, str, None] = None
    gas: Union[float, str, None] = None
    water: Union[float, str, None] = None
    gas_percentage: Union[float, str, None] = None
    power_reduction: Union[float, str, None] = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value


class ApartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9_-]+$")


class MessageResponse(BaseModel):
    message: str


class PowerDetails(_CamelModel):
    active_energy: Optional[float]
    res_fee: Optional[float]
    quality_component: Optional[float]
    network_fee: Optional[float]
    transition_fee: float
    fixed_transmission_fee: float
    subscription_fee: float
    commercial_fee: float
    fixed_capacity_fee: float


class PowerCalculation(_CamelModel):
    date: dt.date
    net_price: Optional[float]
    gross_price: Optional[float]
    consumption: Optional[float]
    details: PowerDetails

    @classmethod
    def from_usage(cls, usage: PowerUsage) -> "PowerCalculation":
        details = usage.details
        return cls(
            date=usage.date,
            net_price=finite_or_none(usage.net_price),
            gross_price=finite_or_none(usage.gross_price),
            consumption=finite_or_none(usage.consumption),
            details=PowerDetails(
                active_energy=finite_or_none(details.active_energy),
                res_fee=finite_or_none(details.res_fee),
                quality_component=finite_or_none(details.quality_component),
                network_fee=finite_or_none(details.network_fee),
                transition_fee=details.transition_fee,
                fixed_transmission_fee=details.fixed_transmission_fee,
                subscription_fee=details.subscription_fee,
                commercial_fee=details.commercial_fee,
                fixed_capacity_fee=details.fixed_capacity_fee,
            ),
        )


class GasCalculation(_CamelModel):
    date: dt.date
    net_price: Optional[float]
    gross_price: Optional[float]
    consumption_in_kwh: Optional[float] = Field(..., alias="consumptionInKWh")
    consumption: Optional[float]

    @classmethod
    def from_usage(cls, usage: GasUsage) -> "GasCalculation":
        return cls(
            date=usage.date,
            net_price=finite_or_none(usage.net_price),
            gross_price=finite_or_none(usage.gross_price),
            consumption_in_kwh=finite_or_none(usage.consumption_in_kwh),
            consumption=finite_or_none(usage.consumption),
        )


class WaterDetails(_CamelModel):
    water_subscription_fee: Optional[float]
    savage_subscription_fee: Optional[float]
    water_consumption_fee: Optional[float]
    savage_consumption_fee: Optional[float]


class WaterCalculation(_CamelModel):
    date: dt.date
    net_price: float
    gross_price: Optional[float]
    consumption: Optional[float]
    details: WaterDetails

    @classmethod
    def from_usage(cls, usage: WaterUsage) -> "WaterCalculation":
        details = usage.details
        return cls(
            date=usage.date,
            net_price=usage.net_price,
            gross_price=finite_or_none(usage.gross_price),
            consumption=finite_or_none(usage.consumption),
            details=WaterDetails(
                water_subscription_fee=finite_or_none(details.water_subscription_fee),
                savage_subscription_fee=finite_or_none(details.savage_subscription_fee),
                water_consumption_fee=finite_or_none(details.water_consumption_fee),
                savage_consumption_fee=finite_or_none(details.savage_consumption_fee),
            ),
        )


class PeriodSummary(_CamelModel):
    """Gross amounts of all utilities billed for the period ending on ``date``."""

    date: dt.date
    power: Optional[float] = None
    gas: Optional[float] = None
    water: Optional[float] = None
    total: Optional[float] = None


class ConsumptionSummary(_CamelModel):
    apartment: str
    periods: List[PeriodSummary] = Field(default_factory=list)
