"""
Request / response schemas for the fare endpoints.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from distribution_service.repositories.fare import Fare, FareStatus, FareType
from distribution_service.services.organizations import Organization


class FareCreateRequest(BaseModel):
    """Payload to create (or schedule) a fare."""
    organization_id: str = Field(..., min_length=1)
    fare_name: str = Field(..., min_length=1)
    fare_type: FareType
    fare_amount: Decimal = Field(..., ge=0)
    effective_date: Optional[datetime] = None  # None = effective right away


class FareUpdateRequest(FareCreateRequest):
    """Full replacement of the editable fields. Status is not editable here."""
    pass


class FareResponse(BaseModel):
    id: str
    organization_id: str
    fare_code: str
    fare_name: str
    fare_type: str
    fare_amount: Decimal
    status: FareStatus
    created_at: Optional[datetime] = None
    effective_date: Optional[datetime] = None

    @classmethod
    def from_fare(cls, fare: Fare) -> "FareResponse":
        return cls(
            id=fare.id,
            organization_id=fare.organization_id,
            fare_code=fare.fare_code,
            fare_name=fare.fare_name,
            fare_type=fare.fare_type,
            fare_amount=fare.fare_amount,
            status=fare.status,
            created_at=fare.created_at,
            effective_date=fare.effective_date,
        )


class OrganizationInfo(BaseModel):
    organization_id: str
    organization_code: Optional[str] = None
    organization_name: Optional[str] = None
    legal_representative: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    logo: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_organization(cls, organization: Organization) -> "OrganizationInfo":
        return cls(
            organization_id=organization.organization_id,
            organization_code=organization.organization_code,
            organization_name=organization.organization_name,
            legal_representative=organization.legal_representative,
            address=organization.address,
            phone=organization.phone,
            logo=organization.logo,
            status=organization.status,
        )


class EnrichedFareResponse(FareResponse):
    organization: Optional[OrganizationInfo] = None

    @classmethod
    def from_fare(cls, fare: Fare, organization: Optional[OrganizationInfo] = None) -> "EnrichedFareResponse":
        base = FareResponse.from_fare(fare)
        return cls(**base.model_dump(), organization=organization)


class CurrentFareResponse(BaseModel):
    """Current fare of an organization; `fare` is null when none is in force."""
    organization_id: str
    fare: Optional[FareResponse] = None
