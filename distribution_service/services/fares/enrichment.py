"""
Fare responses enriched with organization details.
"""
import asyncio
import logging
from typing import Dict, List, Optional

from distribution_service.repositories.fare import Fare
from distribution_service.schemas.fare import EnrichedFareResponse, OrganizationInfo
from distribution_service.services.organizations import Organization, OrganizationDirectory

logger = logging.getLogger(__name__)


class FareEnricher:
    """Attaches organization metadata; a failed lookup yields a placeholder."""

    def __init__(self, directory: OrganizationDirectory):
        self.directory = directory

    async def _lookup(self, organization_id: str) -> Organization:
        organization: Optional[Organization] = None
        try:
            organization = await self.directory.get_organization_by_id(organization_id)
        except Exception as e:
            logger.warning(f"Failed to fetch organization details for ID {organization_id}: {e}")
        return organization or Organization.placeholder(organization_id)

    async def enrich(self, fare: Fare) -> EnrichedFareResponse:
        organization = await self._lookup(fare.organization_id) if fare.organization_id else None
        return self._build(fare, organization)

    async def enrich_many(self, fares: List[Fare]) -> List[EnrichedFareResponse]:
        # One lookup per organization, not per fare
        org_ids = sorted({fare.organization_id for fare in fares if fare.organization_id})
        found = await asyncio.gather(*(self._lookup(org_id) for org_id in org_ids))
        organizations: Dict[str, Organization] = dict(zip(org_ids, found))
        return [self._build(fare, organizations.get(fare.organization_id)) for fare in fares]

    @staticmethod
    def _build(fare: Fare, organization: Optional[Organization]) -> EnrichedFareResponse:
        return EnrichedFareResponse.from_fare(
            fare,
            OrganizationInfo.from_organization(organization) if organization else None,
        )
