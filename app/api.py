"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    ApartmentCreate,
    ConsumptionSummary,
    GasCalculation,
    MessageResponse,
    PowerCalculation,
    ReadingPayload,
    StoredReading,
    WaterCalculation,
)
from datastore.readings_store import ApartmentNotFoundError, ReadingNotFoundError
from services.consumption import (
    ConsumptionService,
    InsufficientDataError,
    build_default_service,
)

router = APIRouter()


def get_service() -> ConsumptionService:
    return build_default_service()


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0])


@router.get(
    "/api/apartments",
    response_model=List[str],
    summary="List apartments that have a reading file.",
)
def list_apartments(
    service: ConsumptionService = Depends(get_service),
) -> List[str]:
    return service.list_apartments()


@router.post(
    "/api/apartments",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageResponse,
    summary="Register an apartment with an empty reading history.",
)
def create_apartment(
    body: ApartmentCreate,
    service: ConsumptionService = Depends(get_service),
) -> MessageResponse:
    service.create_apartment(body.name)
    return MessageResponse(message=f"Apartment {body.name} created")


@router.get(
    "/api/consumption/{apartment}",
    response_model=List[StoredReading],
    summary="Fetch every stored reading of an apartment.",
)
def list_readings(
    apartment: str,
    service: ConsumptionService = Depends(get_service),
) -> List[StoredReading]:
    try:
        return service.list_readings(apartment)
    except ApartmentNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post(
    "/api/consumption/{apartment}",
    status_code=status.HTTP_201_CREATED,
    response_model=StoredReading,
    summary="Record a new meter reading.",
)
def create_reading(
    apartment: str,
    payload: ReadingPayload,
    service: ConsumptionService = Depends(get_service),
) -> StoredReading:
    try:
        return service.record_reading(apartment, payload)
    except ApartmentNotFoundError as exc:
        raise _not_found(exc) from exc


@router.put(
    "/api/consumption/{apartment}/{reading_id}",
    response_model=StoredReading,
    summary="Replace the values of an existing reading.",
)
def update_reading(
    apartment: str,
    reading_id: str,
    payload: ReadingPayload,
    service: ConsumptionService = Depends(get_service),
) -> StoredReading:
    try:
        return service.update_reading(apartment, reading_id, payload)
    except (ApartmentNotFoundError, ReadingNotFoundError) as exc:
        raise _not_found(exc) from exc


@router.delete(
    "/api/consumption/{apartment}/{reading_id}",
    response_model=MessageResponse,
    summary="Delete a reading.",
)
def delete_reading(
    apartment: str,
    reading_id: str,
    service: ConsumptionService = Depends(get_service),
) -> MessageResponse:
    try:
        service.delete_reading(apartment, reading_id)
    except (ApartmentNotFoundError, ReadingNotFoundError) as exc:
        raise _not_found(exc) from exc
    return MessageResponse(message="Reading deleted successfully")


@router.get(
    "/api/consumption/{apartment}/power-calculations",
    response_model=List[PowerCalculation],
    summary="Bill electricity for each pair of consecutive readings.",
)
def power_calculations(
    apartment: str,
    service: ConsumptionService = Depends(get_service),
) -> List[PowerCalculation]:
    try:
        usages = service.power_calculations(apartment)
    except ApartmentNotFoundError as exc:
        raise _not_found(exc) from exc
    except InsufficientDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return [PowerCalculation.from_usage(usage) for usage in usages]


@router.get(
    "/api/consumption/{apartment}/gas-calculations",
    response_model=List[GasCalculation],
    summary="Bill gas for each pair of consecutive readings.",
)
def gas_calculations(
    apartment: str,
    service: ConsumptionService = Depends(get_service),
) -> List[GasCalculation]:
    try:
        usages = service.gas_calculations(apartment)
    except ApartmentNotFoundError as exc:
        raise _not_found(exc) from exc
    except InsufficientDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return [GasCalculation.from_usage(usage) for usage in usages]


@router.get(
    "/api/consumption/{apartment}/water-calculations",
    response_model=List[WaterCalculation],
    summary="Bill water and sewage for each pair of consecutive readings.",
)
def water_calculations(
    apartment: str,
    service: ConsumptionService = Depends(get_service),
) -> List[WaterCalculation]:
    try:
        usages = service.water_calculations(apartment)
    except ApartmentNotFoundError as exc:
        raise _not_found(exc) from exc
    except InsufficientDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return [WaterCalculation.from_usage(usage) for usage in usages]


@router.get(
    "/api/consumption/{apartment}/summary",
    response_model=ConsumptionSummary,
    summary="Gross amounts of all utilities per billed period.",
)
def consumption_summary(
    apartment: str,
    service: ConsumptionService = Depends(get_service),
) -> ConsumptionSummary:
    try:
        return service.summary(apartment)
    except ApartmentNotFoundError as exc:
        raise _not_found(exc) from exc


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
