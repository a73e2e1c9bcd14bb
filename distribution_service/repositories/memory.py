"""
In-memory FareStore.

Used with FARE_STORE_BACKEND=memory (local development) and in tests.
Returned fares are copies: changes only land through save().
"""
import asyncio
import logging
from typing import Dict, List, Optional
from uuid import uuid4

from distribution_service.core.exceptions import NotFoundError
from .fare import Fare, FareStatus, FareStore, order_by_effective_date

logger = logging.getLogger(__name__)


class InMemoryFareRepository(FareStore):
    """Process-local fare store with per-record atomic writes."""

    def __init__(self, fares: Optional[List[Fare]] = None):
        self._fares: Dict[str, Fare] = {}
        self._lock = asyncio.Lock()
        for fare in fares or []:
            fare_id = fare.id or str(uuid4())
            self._fares[fare_id] = fare.copy(id=fare_id)

    async def find_by_id(self, id: str) -> Optional[Fare]:
        fare = self._fares.get(id)
        return fare.copy() if fare else None

    async def find_all(self) -> List[Fare]:
        return [fare.copy() for fare in self._fares.values()]

    async def find_by_status(self, status: FareStatus) -> List[Fare]:
        return [fare.copy() for fare in self._fares.values() if fare.status == status]

    async def find_by_organization_and_status(
        self, organization_id: str, status: FareStatus
    ) -> List[Fare]:
        matches = [
            fare.copy()
            for fare in self._fares.values()
            if fare.organization_id == organization_id and fare.status == status
        ]
        return order_by_effective_date(matches)

    async def find_last_by_code(self, prefix: str) -> Optional[Fare]:
        candidates = [f for f in self._fares.values() if (f.fare_code or "").startswith(prefix)]
        if not candidates:
            return None
        return max(candidates, key=lambda f: f.fare_code).copy()

    async def exists_by_code(self, fare_code: str) -> bool:
        return any(f.fare_code == fare_code for f in self._fares.values())

    async def save(self, fare: Fare) -> Fare:
        async with self._lock:
            if fare.id is None:
                stored = fare.copy(id=str(uuid4()))
                logger.info(f"Fare created: {stored.id} ({stored.fare_code})")
            elif fare.id in self._fares:
                stored = fare.copy()
            else:
                raise NotFoundError("Fare", fare.id)
            self._fares[stored.id] = stored
            return stored.copy()

    async def delete(self, id: str) -> bool:
        async with self._lock:
            removed = self._fares.pop(id, None)
        return removed is not None
