"""
Fare use cases consumed by the HTTP layer.

Creation, manual activation and the current-fare query are delegated to the
lifecycle engine; the rest are plain administrative CRUD.
"""
import logging
from datetime import datetime
from typing import List, Optional

from distribution_service.core.exceptions import NotFoundError
from distribution_service.core.timezone import to_utc
from distribution_service.repositories.fare import Fare, FareStatus, FareStore
from distribution_service.schemas.fare import EnrichedFareResponse
from .enrichment import FareEnricher
from .lifecycle import FareLifecycleEngine, validate_fare_fields

logger = logging.getLogger(__name__)


class FareService:

    def __init__(self, store: FareStore, engine: FareLifecycleEngine, enricher: FareEnricher):
        self.store = store
        self.engine = engine
        self.enricher = enricher

    async def list_fares(self, status: Optional[FareStatus] = None) -> List[Fare]:
        if status is None:
            return await self.store.find_all()
        return await self.store.find_by_status(status)

    async def get_fare(self, fare_id: str) -> Fare:
        fare = await self.store.find_by_id(fare_id)
        if fare is None:
            raise NotFoundError("Fare", fare_id)
        return fare

    async def create_fare(
        self,
        organization_id: str,
        fare_name: str,
        fare_type: str,
        fare_amount,
        effective_date: Optional[datetime] = None,
    ) -> Fare:
        return await self.engine.create_fare(
            organization_id, fare_name, fare_type, fare_amount, effective_date
        )

    async def update_fare(
        self,
        fare_id: str,
        organization_id: str,
        fare_name: str,
        fare_type: str,
        fare_amount,
        effective_date: Optional[datetime] = None,
    ) -> Fare:
        """
        Replace the editable fields of a fare.

        Status is left as is; a changed effective date is picked up by the
        next scheduler run.
        """
        normalized_type, amount = validate_fare_fields(organization_id, fare_name, fare_type, fare_amount)
        existing = await self.get_fare(fare_id)
        updated = existing.copy(
            organization_id=organization_id,
            fare_name=fare_name,
            fare_type=normalized_type,
            fare_amount=amount,
            effective_date=to_utc(effective_date) if effective_date else None,
        )
        saved = await self.store.save(updated)
        logger.info(f"Fare updated: {saved.fare_code}")
        return saved

    async def delete_fare(self, fare_id: str) -> None:
        if not await self.store.delete(fare_id):
            raise NotFoundError("Fare", fare_id)
        logger.info(f"Fare deleted: {fare_id}")

    async def activate(self, fare_id: str) -> Fare:
        return await self.engine.activate(fare_id)

    async def deactivate(self, fare_id: str) -> Fare:
        return await self.engine.deactivate(fare_id)

    async def get_current_active_fare(self, organization_id: str) -> Optional[Fare]:
        return await self.engine.get_current_active_fare(organization_id)

    async def get_enriched_fare(self, fare_id: str) -> EnrichedFareResponse:
        return await self.enricher.enrich(await self.get_fare(fare_id))

    async def list_enriched_fares(self, status: Optional[FareStatus] = None) -> List[EnrichedFareResponse]:
        return await self.enricher.enrich_many(await self.list_fares(status))
