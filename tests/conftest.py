"""Shared fixtures for the billing tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from models.tariffs import TariffConfig


def sample_tariff_mapping() -> Dict[str, Any]:
    return {
        "PowerCalculatorOptions": {
            "ActiveEnergy": 0.5,
            "RESFee": 0.01,
            "QualityComponent": 0.03,
            "NetworkFee": 0.3,
            "TransitionFee": 0.33,
            "FixedTransmissionFee": 10.68,
            "SubscriptionFee": 0.75,
            "CommercialFee": 0.0,
            "FixedCapacityFee": 9.58,
            "TaxRate": 1.23,
        },
        "GasCalculatorOptions": {
            "ConversionFactor": 11,
            "NetPricePerKWh": 0.25,
            "SubscriptionFee": 5,
            "FixedDistributionFee": 3,
            "VariableDistributionFee": 0.1,
            "TaxRate": 1.23,
        },
        "WaterCalculatorOptions": {
            "WaterPrice": 5,
            "SavagePrice": 4,
            "WaterSubscriptionFee": 2,
            "WaterConsumptionFactor": 1,
            "SavageSubscriptionFee": 3,
            "SavageConsumptionFactor": 1,
            "TaxRate": 1.08,
        },
    }


@pytest.fixture()
def tariff_mapping() -> Dict[str, Any]:
    return sample_tariff_mapping()


@pytest.fixture()
def tariffs(tariff_mapping: Dict[str, Any]) -> TariffConfig:
    return TariffConfig.from_mapping(tariff_mapping)


@pytest.fixture()
def tariff_file(tmp_path: Path, tariff_mapping: Dict[str, Any]) -> Path:
    path = tmp_path / "appsettings.json"
    path.write_text(json.dumps(tariff_mapping))
    return path
