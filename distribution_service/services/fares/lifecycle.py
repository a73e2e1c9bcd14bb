"""
Fare lifecycle: status at creation, immediate reconciliation and
"which fare is current" queries.

Invariant kept here (and restored hourly by the transition scheduler): an
organization has at most one ACTIVE fare among its dated fares that are
already effective.
"""
import asyncio
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Tuple

from distribution_service.core.exceptions import (
    DuplicateCodeError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from distribution_service.core.logging import get_logger
from distribution_service.core.timezone import now_utc, to_utc
from distribution_service.repositories.fare import Fare, FareStatus, FareStore, FareType
from .codes import FareCodeGenerator

logger = logging.getLogger(__name__)


def initial_status(effective_date: Optional[datetime], now: datetime) -> FareStatus:
    """INACTIVE only for fares scheduled strictly in the future."""
    if effective_date is not None and effective_date > now:
        return FareStatus.INACTIVE
    return FareStatus.ACTIVE


def pick_current(fares: List[Fare], now: datetime) -> Optional[Fare]:
    """Latest-effective ACTIVE fare that is already in force, or None."""
    eligible = [
        fare for fare in fares
        if fare.is_active and (fare.effective_date is None or fare.effective_date <= now)
    ]
    if not eligible:
        return None
    return max(eligible, key=Fare.recency_key)


def validate_fare_fields(
    organization_id: Optional[str],
    fare_name: Optional[str],
    fare_type: Optional[str],
    fare_amount,
) -> tuple[str, Decimal]:
    """
    Validate client supplied fare fields.

    Returns:
        (normalized fare type, amount as Decimal)

    Raises:
        ValidationError: on the first invalid field
    """
    if not organization_id or not str(organization_id).strip():
        raise ValidationError("organization_id is required", {"field": "organization_id"})
    if not fare_name or not str(fare_name).strip():
        raise ValidationError("fare_name is required", {"field": "fare_name"})

    raw_type = fare_type.value if isinstance(fare_type, FareType) else str(fare_type or "")
    try:
        normalized_type = FareType(raw_type.strip().upper()).value
    except ValueError:
        raise ValidationError(
            "Unknown fare type",
            {"field": "fare_type", "allowed": [t.value for t in FareType]},
        )

    if fare_amount is None:
        raise ValidationError("fare_amount is required", {"field": "fare_amount"})
    try:
        amount = Decimal(str(fare_amount))
    except InvalidOperation:
        raise ValidationError("fare_amount must be a number", {"field": "fare_amount"})
    if not amount.is_finite() or amount < 0:
        raise ValidationError("fare_amount must be non-negative", {"field": "fare_amount"})

    return normalized_type, amount


class FareLifecycleEngine:
    """
    Creates fares with the right status and keeps one current fare per
    organization.

    Code assignment (read last code, check, insert) is serialized through a
    single asyncio.Lock, so creations within this process never race for a
    code. Other processes are still guarded by the exists check.
    """

    def __init__(
        self,
        store: FareStore,
        code_generator: Optional[FareCodeGenerator] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.codes = code_generator or FareCodeGenerator(store)
        self.clock = clock
        self._code_lock = asyncio.Lock()

    async def create_fare(
        self,
        organization_id: str,
        fare_name: str,
        fare_type: str,
        fare_amount,
        effective_date: Optional[datetime] = None,
    ) -> Fare:
        """
        Create a fare and reconcile its organization when it is already due.

        Args:
            organization_id: Owning organization
            fare_name: Display name
            fare_type: DAILY | WEEKLY | MONTHLY
            fare_amount: Non-negative amount
            effective_date: When the fare takes over; None means right away

        Returns:
            The persisted fare

        Raises:
            ValidationError: invalid input
            DuplicateCodeError: generated code already taken
            CodeSequenceExhaustedError: no codes left
            StoreError: persistence unavailable
        """
        fare_type, amount = validate_fare_fields(organization_id, fare_name, fare_type, fare_amount)
        if effective_date is not None:
            effective_date = to_utc(effective_date)

        async with self._code_lock:
            code = await self.codes.next_code()
            if await self.store.exists_by_code(code):
                raise DuplicateCodeError(code)

            now = self.clock()
            fare = Fare(
                organization_id=organization_id,
                fare_code=code,
                fare_name=fare_name,
                fare_type=fare_type,
                fare_amount=amount,
                status=initial_status(effective_date, now),
                created_at=now,
                effective_date=effective_date,
            )
            saved = await self.store.save(fare)

        logger.info(
            f"Fare {saved.fare_code} created for organization {saved.organization_id} "
            f"with status {saved.status.value}"
        )

        if saved.is_due(now):
            try:
                await self.reconcile_organization(saved.organization_id, keep_fare_id=saved.id)
            except StoreError as e:
                # Next scheduler run restores the invariant
                logger.error(
                    f"Reconciliation after creating {saved.fare_code} failed: {e}",
                    exc_info=True,
                )

        return saved

    async def reconcile_organization(self, organization_id: str, keep_fare_id: str) -> List[Fare]:
        """
        Deactivate every ACTIVE fare of the organization except `keep_fare_id`.

        A failed save of one sibling is logged and does not stop the others.

        Returns:
            The fares that were deactivated
        """
        deactivated, _ = await self.sweep_organization(organization_id, keep_fare_id)
        return deactivated

    async def sweep_organization(
        self, organization_id: str, keep_fare_id: str
    ) -> Tuple[List[Fare], List[Fare]]:
        """
        Same sweep as `reconcile_organization`, also reporting failures.

        Returns:
            (deactivated fares, siblings whose save failed)
        """
        active = await self.store.find_by_organization_and_status(organization_id, FareStatus.ACTIVE)
        siblings = [fare for fare in active if fare.id != keep_fare_id]
        if not siblings:
            return [], []

        results = await asyncio.gather(
            *(self._set_status(fare, FareStatus.INACTIVE) for fare in siblings),
            return_exceptions=True,
        )

        log = get_logger(__name__, organization_id=organization_id)
        deactivated = []
        failed = []
        for fare, result in zip(siblings, results):
            if isinstance(result, Exception):
                log.error(f"Failed to deactivate fare {fare.fare_code} for organization {organization_id}: {result}")
                failed.append(fare)
                continue
            log.info(f"Deactivated previous fare {fare.fare_code} for organization {organization_id}")
            deactivated.append(result)
        return deactivated, failed

    async def get_current_active_fare(self, organization_id: str) -> Optional[Fare]:
        """
        The ACTIVE fare in force for the organization, latest effective date first.

        Read only. Reflects stored status flags, which may lag effective dates
        until the next scheduler run.
        """
        active = await self.store.find_by_organization_and_status(organization_id, FareStatus.ACTIVE)
        return pick_current(active, self.clock())

    async def activate(self, fare_id: str) -> Fare:
        """Manual override. Does not deactivate sibling fares."""
        return await self._change_status(fare_id, FareStatus.ACTIVE)

    async def deactivate(self, fare_id: str) -> Fare:
        """Manual override."""
        return await self._change_status(fare_id, FareStatus.INACTIVE)

    async def _change_status(self, fare_id: str, status: FareStatus) -> Fare:
        fare = await self.store.find_by_id(fare_id)
        if fare is None:
            raise NotFoundError("Fare", fare_id)
        logger.info(f"Fare {fare.fare_code}: {fare.status.value} -> {status.value}")
        return await self._set_status(fare, status)

    async def _set_status(self, fare: Fare, status: FareStatus) -> Fare:
        return await self.store.save(fare.copy(status=status))
