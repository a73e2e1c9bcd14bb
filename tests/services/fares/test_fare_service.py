"""
Tests for FareService (administrative operations around the engine).
"""
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from distribution_service.core.exceptions import NotFoundError, ValidationError
from distribution_service.repositories.fare import FareStatus
from distribution_service.repositories.memory import InMemoryFareRepository
from distribution_service.services.fares.enrichment import FareEnricher
from distribution_service.services.fares.lifecycle import FareLifecycleEngine
from distribution_service.services.fares.service import FareService


@pytest.fixture
def service_store(fare_factory, now):
    return InMemoryFareRepository([
        fare_factory("on", effective_date=now - timedelta(days=1)),
        fare_factory("off", status=FareStatus.INACTIVE),
    ])


@pytest.fixture
def service(service_store, now):
    directory = MagicMock()
    directory.get_organization_by_id = AsyncMock(return_value=None)
    engine = FareLifecycleEngine(service_store, clock=lambda: now)
    return FareService(service_store, engine, FareEnricher(directory))


class TestFareService:

    @pytest.mark.asyncio
    async def test_list_by_status(self, service):
        assert len(await service.list_fares()) == 2
        assert [f.id for f in await service.list_fares(FareStatus.INACTIVE)] == ["off"]

    @pytest.mark.asyncio
    async def test_get_missing_raises(self, service):
        with pytest.raises(NotFoundError):
            await service.get_fare("missing")

    @pytest.mark.asyncio
    async def test_update_replaces_fields_but_not_status(self, service, now):
        updated = await service.update_fare(
            "off", "org-b", "Renamed", "daily", "3.50", effective_date=now - timedelta(days=1)
        )

        assert updated.organization_id == "org-b"
        assert updated.fare_type == "DAILY"
        assert updated.fare_amount == Decimal("3.50")
        assert updated.status == FareStatus.INACTIVE
        assert updated.fare_code == "TAR-off"

    @pytest.mark.asyncio
    async def test_update_validates(self, service):
        with pytest.raises(ValidationError):
            await service.update_fare("on", "org-a", "Name", "DAILY", -5)

    @pytest.mark.asyncio
    async def test_delete(self, service, service_store):
        await service.delete_fare("off")

        assert await service_store.find_by_id("off") is None
        with pytest.raises(NotFoundError):
            await service.delete_fare("off")

    @pytest.mark.asyncio
    async def test_current_fare_delegates_to_engine(self, service):
        fare = await service.get_current_active_fare("org-a")
        assert fare.id == "on"

    @pytest.mark.asyncio
    async def test_enriched_views(self, service):
        single = await service.get_enriched_fare("on")
        many = await service.list_enriched_fares(FareStatus.ACTIVE)

        assert single.organization.organization_id == "org-a"
        assert [f.id for f in many] == ["on"]
