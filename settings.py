from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


_DATA_DIR_ENV = "METER_DATA_DIR"
_TARIFF_PATH_ENV = "TARIFF_CONFIG_PATH"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_DEFAULT_TARIFF_PATH = Path(__file__).resolve().parent / "config" / "appsettings.json"


@dataclass(frozen=True)
class Settings:
    data_dir: str
    tariff_config_path: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        data_dir=_read_str_env(_DATA_DIR_ENV, "./data"),
        tariff_config_path=_read_str_env(_TARIFF_PATH_ENV, str(_DEFAULT_TARIFF_PATH)),
        log_level=_read_log_level("INFO"),
    )
