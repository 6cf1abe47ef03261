"""Tariff calculators turning meter readings into billed periods.

Each calculator holds one immutable tariff and exposes two operations:
``calculate`` prices a single pair of readings and ``calculate_for_dataset``
prices every consecutive pair of an apartment's history in date order.

The calculators round at different points on purpose. Gas rounds only the net
total, power rounds each fee before summing, water folds tax into every fee.
Changing the order changes billed amounts by a cent here and there.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, List, Optional, Sequence, TypeVar

from models.records import MeterReading
from models.tariffs import GasTariff, PowerTariff, WaterTariff
from services.periods import consecutive_pairs, count_billing_units
from services.rounding import round2, round_whole

_U = TypeVar("_U")


@dataclass(frozen=True)
class PowerFeeDetails:
    active_energy: float
    res_fee: float
    quality_component: float
    network_fee: float
    transition_fee: float
    fixed_transmission_fee: float
    subscription_fee: float
    commercial_fee: float
    fixed_capacity_fee: float


@dataclass(frozen=True)
class PowerUsage:
    net_price: float
    gross_price: float
    consumption: float
    details: PowerFeeDetails
    date: Optional[date] = None


@dataclass(frozen=True)
class GasUsage:
    net_price: float
    gross_price: float
    consumption_in_kwh: float
    consumption: float
    date: Optional[date] = None


@dataclass(frozen=True)
class WaterFeeDetails:
    water_subscription_fee: float
    savage_subscription_fee: float
    water_consumption_fee: float
    savage_consumption_fee: float


@dataclass(frozen=True)
class WaterUsage:
    net_price: float
    gross_price: float
    consumption: float
    details: WaterFeeDetails
    date: Optional[date] = None


def _for_dataset(
    readings: Sequence[MeterReading],
    price_pair: Callable[[MeterReading, MeterReading], _U],
) -> List[_U]:
    if len(readings) < 2:
        return []
    return [
        replace(price_pair(previous, current), date=current.date)  # type: ignore[type-var]
        for previous, current in consecutive_pairs(readings)
    ]


class PowerCalculator:
    """Prices electricity from the power meter delta."""

    def __init__(self, tariff: PowerTariff) -> None:
        self.tariff = tariff

    def calculate(
        self,
        previous: MeterReading,
        current: MeterReading,
        billing_units: int,
    ) -> PowerUsage:
        tariff = self.tariff
        consumption = current.power - previous.power - current.power_reduction

        active_energy = round2(consumption * tariff.active_energy)
        res_fee = round2(consumption * tariff.res_fee)
        quality_component = round2(consumption * tariff.quality_component)
        network_fee = round2(consumption * tariff.network_fee)
        transition_fee = round2(tariff.transition_fee * billing_units)
        fixed_transmission_fee = round2(tariff.fixed_transmission_fee * billing_units)
        subscription_fee = round2(tariff.subscription_fee * billing_units)
        commercial_fee = round2(tariff.commercial_fee * billing_units)
        fixed_capacity_fee = round2(tariff.fixed_capacity_fee * billing_units)

        net_price = round2(
            active_energy
            + res_fee
            + quality_component
            + network_fee
            + transition_fee
            + fixed_transmission_fee
            + subscription_fee
            + commercial_fee
            + fixed_capacity_fee
        )
        gross_price = round2(net_price * tariff.tax_rate)

        return PowerUsage(
            net_price=net_price,
            gross_price=gross_price,
            consumption=consumption,
            details=PowerFeeDetails(
                active_energy=active_energy,
                res_fee=res_fee,
                quality_component=quality_component,
                network_fee=network_fee,
                transition_fee=transition_fee,
                fixed_transmission_fee=fixed_transmission_fee,
                subscription_fee=subscription_fee,
                commercial_fee=commercial_fee,
                fixed_capacity_fee=fixed_capacity_fee,
            ),
        )

    def calculate_for_dataset(self, readings: Sequence[MeterReading]) -> List[PowerUsage]:
        return _for_dataset(
            readings,
            lambda previous, current: self.calculate(
                previous, current, count_billing_units(previous.date, current.date)
            ),
        )


class GasCalculator:
    """Prices gas by converting the volume delta to kWh."""

    def __init__(self, tariff: GasTariff) -> None:
        self.tariff = tariff

    def calculate(
        self,
        previous: MeterReading,
        current: MeterReading,
        billing_units: int,
    ) -> GasUsage:
        tariff = self.tariff
        consumption = current.gas - previous.gas
        gas_percentage = current.gas_percentage / 100

        consumption_in_kwh = round_whole(consumption * tariff.conversion_factor)
        consumption_net = consumption_in_kwh * tariff.net_price_per_kwh
        subscription_fee = tariff.subscription_fee * billing_units
        fixed_distribution_fee = tariff.fixed_distribution_fee * billing_units
        variable_distribution_fee = consumption_in_kwh * tariff.variable_distribution_fee

        net_price = round2(
            consumption_net
            + subscription_fee
            + fixed_distribution_fee
            + variable_distribution_fee
        )
        # the billed share is applied to the already rounded gross amount
        gross_price = round2(net_price * tariff.tax_rate) * gas_percentage

        return GasUsage(
            net_price=net_price,
            gross_price=gross_price,
            consumption_in_kwh=consumption_in_kwh,
            consumption=consumption,
        )

    def calculate_for_dataset(self, readings: Sequence[MeterReading]) -> List[GasUsage]:
        return _for_dataset(
            readings,
            lambda previous, current: self.calculate(
                previous, current, count_billing_units(previous.date, current.date)
            ),
        )


class WaterCalculator:
    """Prices water and sewage. Fees already include tax, net is reported as 0."""

    def __init__(self, tariff: WaterTariff) -> None:
        self.tariff = tariff

    def calculate(self, previous: MeterReading, current: MeterReading) -> WaterUsage:
        tariff = self.tariff
        consumption = current.water - previous.water

        water_subscription_fee = round2(
            tariff.water_subscription_fee * tariff.water_consumption_factor * tariff.tax_rate
        )
        savage_subscription_fee = round2(
            tariff.savage_subscription_fee * tariff.savage_consumption_factor * tariff.tax_rate
        )
        water_consumption_fee = round2(
            consumption
            * (tariff.water_price + (tariff.water_price * (tariff.tax_rate - 1)))
        )
        savage_consumption_fee = round2(
            consumption
            * (tariff.savage_price + (tariff.savage_price * (tariff.tax_rate - 1)))
        )

        gross_price = round2(
            water_subscription_fee
            + savage_subscription_fee
            + water_consumption_fee
            + savage_consumption_fee
        )

        return WaterUsage(
            net_price=0.0,
            gross_price=gross_price,
            consumption=consumption,
            details=WaterFeeDetails(
                water_subscription_fee=water_subscription_fee,
                savage_subscription_fee=savage_subscription_fee,
                water_consumption_fee=water_consumption_fee,
                savage_consumption_fee=savage_consumption_fee,
            ),
        )

    def calculate_for_dataset(self, readings: Sequence[MeterReading]) -> List[WaterUsage]:
        return _for_dataset(readings, self.calculate)
