"""
Fare administration endpoints.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from distribution_service.repositories.fare import FareStatus
from distribution_service.schemas.fare import (
    CurrentFareResponse,
    EnrichedFareResponse,
    FareCreateRequest,
    FareResponse,
    FareUpdateRequest,
)
from distribution_service.services.fares.deps import get_fare_service
from distribution_service.services.fares.service import FareService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/fares", tags=["Fares"])


@router.get("", response_model=List[EnrichedFareResponse])
async def list_fares(
    status: Optional[FareStatus] = None,
    service: FareService = Depends(get_fare_service),
):
    """Every fare, optionally filtered by status, with organization details."""
    return await service.list_enriched_fares(status)


@router.get("/organizations/{organization_id}/current", response_model=CurrentFareResponse)
async def current_fare(organization_id: str, service: FareService = Depends(get_fare_service)):
    fare = await service.get_current_active_fare(organization_id)
    return CurrentFareResponse(
        organization_id=organization_id,
        fare=FareResponse.from_fare(fare) if fare else None,
    )


@router.get("/{fare_id}", response_model=EnrichedFareResponse)
async def get_fare(fare_id: str, service: FareService = Depends(get_fare_service)):
    return await service.get_enriched_fare(fare_id)


@router.post("", response_model=FareResponse, status_code=status.HTTP_201_CREATED)
async def create_fare(request: FareCreateRequest, service: FareService = Depends(get_fare_service)):
    """Create a fare. A future effective_date schedules it as INACTIVE."""
    logger.info(f"Fare creation request for organization {request.organization_id}")
    fare = await service.create_fare(
        request.organization_id,
        request.fare_name,
        request.fare_type,
        request.fare_amount,
        request.effective_date,
    )
    return FareResponse.from_fare(fare)


@router.put("/{fare_id}", response_model=FareResponse)
async def update_fare(
    fare_id: str,
    request: FareUpdateRequest,
    service: FareService = Depends(get_fare_service),
):
    fare = await service.update_fare(
        fare_id,
        request.organization_id,
        request.fare_name,
        request.fare_type,
        request.fare_amount,
        request.effective_date,
    )
    return FareResponse.from_fare(fare)


@router.delete("/{fare_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fare(fare_id: str, service: FareService = Depends(get_fare_service)):
    await service.delete_fare(fare_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{fare_id}/activate", response_model=FareResponse)
async def activate_fare(fare_id: str, service: FareService = Depends(get_fare_service)):
    return FareResponse.from_fare(await service.activate(fare_id))


@router.patch("/{fare_id}/deactivate", response_model=FareResponse)
async def deactivate_fare(fare_id: str, service: FareService = Depends(get_fare_service)):
    return FareResponse.from_fare(await service.deactivate(fare_id))
