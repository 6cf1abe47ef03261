from __future__ import annotations
import json
import logging
import re
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import List, Optional

from pydantic import ValidationError

from app.schemas import StoredReading
from settings import get_settings

logger = logging.getLogger(__name__)

_APARTMENT_NAME = re.compile(r"^[A-Za-z0-9_-]+$")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ApartmentNotFoundError(KeyError):
    """Raised when no reading file exists for an apartment."""


class ReadingNotFoundError(KeyError):
    """Raised when an apartment has no reading with the requested id."""


def _by_timestamp(reading: StoredReading) -> datetime:
    return reading.timestamp or _EPOCH


class ReadingStore:
    """Keeps each apartment's readings as a JSON list in ``<data_dir>/<apartment>.json``."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self._lock = Lock()
        data_dir.mkdir(parents=True, exist_ok=True)

    def list_apartments(self) -> List[str]:
        return sorted(path.stem for path in self.data_dir.glob("*.json") if path.is_file())

    def create_apartment(self, apartment: str) -> None:
        if not _APARTMENT_NAME.match(apartment):
            raise ValueError(f"Invalid apartment name {apartment!r}.")
        path = self.data_dir / f"{apartment}.json"
        with self._lock:
            if not path.exists():
                self._persist(path, [])

    def list_readings(self, apartment: str) -> List[StoredReading]:
        path = self._path(apartment)
        with self._lock:
            return self._load(path)

    def add_reading(self, apartment: str, reading: StoredReading) -> StoredReading:
        path = self._path(apartment)
        with self._lock:
            readings = self._load(path)
            readings.append(reading.model_copy(deep=True))
            readings.sort(key=_by_timestamp)
            self._persist(path, readings)
        return reading

    def update_reading(
        self, apartment: str, reading_id: str, reading: StoredReading
    ) -> StoredReading:
        path = self._path(apartment)
        with self._lock:
            readings = self._load(path)
            index = self._index_of(readings, apartment, reading_id)
            readings[index] = reading.model_copy(deep=True)
            self._persist(path, readings)
        return reading

    def delete_reading(self, apartment: str, reading_id: str) -> None:
        path = self._path(apartment)
        with self._lock:
            readings = self._load(path)
            index = self._index_of(readings, apartment, reading_id)
            del readings[index]
            self._persist(path, readings)

    def get_reading(self, apartment: str, reading_id: str) -> StoredReading:
        readings = self.list_readings(apartment)
        return readings[self._index_of(readings, apartment, reading_id)]

    def _path(self, apartment: str) -> Path:
        path = self.data_dir / f"{apartment}.json"
        if not _APARTMENT_NAME.match(apartment) or not path.exists():
            raise ApartmentNotFoundError(f"Apartment {apartment!r} not found.")
        return path

    @staticmethod
    def _index_of(readings: List[StoredReading], apartment: str, reading_id: str) -> int:
        for index, reading in enumerate(readings):
            if reading.id == reading_id:
                return index
        raise ReadingNotFoundError(
            f"Reading {reading_id!r} not found for apartment {apartment!r}."
        )

    @staticmethod
    def _persist(path: Path, readings: List[StoredReading]) -> None:
        payload = [reading.model_dump(mode="json", by_alias=True) for reading in readings]
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    @staticmethod
    def _load(path: Path) -> List[StoredReading]:
        try:
            raw = path.read_text(encoding="utf-8") or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Unreadable reading file, treating as empty",
                extra={"apartment": path.stem},
            )
            return []

        if not isinstance(data, list):
            return []

        readings: List[StoredReading] = []
        for item in data:
            try:
                readings.append(StoredReading.model_validate(item))
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed reading",
                    extra={"apartment": path.stem, "reason": f"{exc.error_count()} validation errors"},
                )
        return readings


@lru_cache
def build_default_store(data_dir: Optional[str] = None) -> ReadingStore:
    settings = get_settings()
    directory = settings.data_dir if data_dir is None else data_dir
    return ReadingStore(data_dir=Path(directory))
