"""
Dependency injection for repositories.

Usage in endpoints:
    from distribution_service.repositories.deps import get_fare_repo

    @router.get("/fares/{id}")
    async def get_fare(id: str, repo: FareStore = Depends(get_fare_repo)):
        return await repo.find_by_id(id)

Usage in tests:
    repo = create_fare_repo(MockDatabase())
"""
from functools import lru_cache

from distribution_service.core.config import settings
from distribution_service.core.exceptions import ConfigurationError
from .fare import FareStore, SupabaseFareRepository
from .memory import InMemoryFareRepository


@lru_cache()
def get_fare_repo() -> FareStore:
    """Singleton FareStore for the configured backend."""
    backend = settings.FARE_STORE_BACKEND.lower()
    if backend == "memory":
        return InMemoryFareRepository()
    if backend == "supabase":
        from distribution_service.services.supabase import get_supabase_client
        return SupabaseFareRepository(get_supabase_client(), table_name=settings.FARES_TABLE)
    raise ConfigurationError(
        f"Unknown fare store backend: {settings.FARE_STORE_BACKEND}",
        {"supported": ["supabase", "memory"]},
    )


def create_fare_repo(db_client, table_name: str = "fares") -> SupabaseFareRepository:
    """
    Build a Supabase-backed repository around a custom client.

    Handy in tests:
        repo = create_fare_repo(MockDatabase())
    """
    return SupabaseFareRepository(db_client, table_name=table_name)
