"""Tariff constants for the three billed utilities."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional, Type, TypeVar

from settings import get_settings

POWER_SECTION = "PowerCalculatorOptions"
GAS_SECTION = "GasCalculatorOptions"
WATER_SECTION = "WaterCalculatorOptions"

_T = TypeVar("_T")


class TariffConfigError(ValueError):
    """Raised when tariff configuration is missing or malformed."""


def _from_section(cls: Type[_T], section: str, raw: Any) -> _T:
    if not isinstance(raw, Mapping):
        raise TariffConfigError(f"Tariff section {section!r} must be a mapping.")

    values: dict[str, float] = {}
    missing: list[str] = []
    for item in fields(cls):  # type: ignore[arg-type]
        key = item.metadata["key"]
        if key not in raw:
            missing.append(key)
            continue
        value = raw[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TariffConfigError(
                f"Tariff value {section}.{key} must be numeric, got {value!r}."
            )
        if not math.isfinite(value):
            raise TariffConfigError(f"Tariff value {section}.{key} must be finite.")
        values[item.name] = float(value)

    if missing:
        raise TariffConfigError(
            f"Tariff section {section!r} is missing keys: {', '.join(missing)}"
        )
    return cls(**values)


def _key(name: str) -> Any:
    return field(metadata={"key": name})


@dataclass(frozen=True)
class PowerTariff:
    active_energy: float = _key("ActiveEnergy")
    res_fee: float = _key("RESFee")
    quality_component: float = _key("QualityComponent")
    network_fee: float = _key("NetworkFee")
    transition_fee: float = _key("TransitionFee")
    fixed_transmission_fee: float = _key("FixedTransmissionFee")
    subscription_fee: float = _key("SubscriptionFee")
    commercial_fee: float = _key("CommercialFee")
    fixed_capacity_fee: float = _key("FixedCapacityFee")
    tax_rate: float = _key("TaxRate")

    @classmethod
    def from_mapping(cls, raw: Any) -> "PowerTariff":
        return _from_section(cls, POWER_SECTION, raw)


@dataclass(frozen=True)
class GasTariff:
    conversion_factor: float = _key("ConversionFactor")
    net_price_per_kwh: float = _key("NetPricePerKWh")
    subscription_fee: float = _key("SubscriptionFee")
    fixed_distribution_fee: float = _key("FixedDistributionFee")
    variable_distribution_fee: float = _key("VariableDistributionFee")
    tax_rate: float = _key("TaxRate")

    @classmethod
    def from_mapping(cls, raw: Any) -> "GasTariff":
        return _from_section(cls, GAS_SECTION, raw)


@dataclass(frozen=True)
class WaterTariff:
    water_price: float = _key("WaterPrice")
    savage_price: float = _key("SavagePrice")
    water_subscription_fee: float = _key("WaterSubscriptionFee")
    water_consumption_factor: float = _key("WaterConsumptionFactor")
    savage_subscription_fee: float = _key("SavageSubscriptionFee")
    savage_consumption_factor: float = _key("SavageConsumptionFactor")
    tax_rate: float = _key("TaxRate")

    @classmethod
    def from_mapping(cls, raw: Any) -> "WaterTariff":
        return _from_section(cls, WATER_SECTION, raw)


@dataclass(frozen=True)
class TariffConfig:
    """The full set of tariffs read from one configuration document."""

    power: PowerTariff
    gas: GasTariff
    water: WaterTariff

    @classmethod
    def from_mapping(cls, raw: Any) -> "TariffConfig":
        if not isinstance(raw, Mapping):
            raise TariffConfigError("Tariff configuration must be a JSON object.")
        for section in (POWER_SECTION, GAS_SECTION, WATER_SECTION):
            if section not in raw:
                raise TariffConfigError(f"Tariff configuration is missing {section!r}.")
        return cls(
            power=PowerTariff.from_mapping(raw[POWER_SECTION]),
            gas=GasTariff.from_mapping(raw[GAS_SECTION]),
            water=WaterTariff.from_mapping(raw[WATER_SECTION]),
        )


def load_tariff_config(path: Path) -> TariffConfig:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise TariffConfigError(f"Tariff configuration {str(path)!r} not found.") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise TariffConfigError(
            f"Tariff configuration {str(path)!r} could not be read: {exc}"
        ) from exc
    return TariffConfig.from_mapping(raw)


@lru_cache
def build_default_tariffs(path: Optional[str] = None) -> TariffConfig:
    settings = get_settings()
    config_path = settings.tariff_config_path if path is None else path
    return load_tariff_config(Path(config_path))
