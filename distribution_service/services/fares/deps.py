"""
Composition of the fare services.

Singletons for FastAPI Depends and for the application lifespan, which owns
the scheduler.
"""
from functools import lru_cache

from distribution_service.repositories.deps import get_fare_repo
from distribution_service.services.organizations import OrganizationDirectory
from .enrichment import FareEnricher
from .lifecycle import FareLifecycleEngine
from .scheduler import FareTransitionScheduler
from .service import FareService


@lru_cache()
def get_fare_engine() -> FareLifecycleEngine:
    return FareLifecycleEngine(get_fare_repo())


@lru_cache()
def get_fare_service() -> FareService:
    return FareService(
        store=get_fare_repo(),
        engine=get_fare_engine(),
        enricher=FareEnricher(OrganizationDirectory()),
    )


@lru_cache()
def get_fare_scheduler() -> FareTransitionScheduler:
    return FareTransitionScheduler(get_fare_engine())
