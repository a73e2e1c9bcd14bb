"""
Fare entity, the FareStore contract and its Supabase implementation.
"""

import asyncio
import logging
from abc import abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, List, Optional

from distribution_service.core.exceptions import DuplicateCodeError, NotFoundError, StoreError
from distribution_service.core.timezone import TZ_UTC, iso_utc, parse_datetime
from .base import BaseRepository

logger = logging.getLogger(__name__)

# Postgres unique_violation, raised by the unique index on fare_code
UNIQUE_VIOLATION = "23505"

# Sorts before every real effective date
_ALWAYS = datetime.min.replace(tzinfo=TZ_UTC)


class FareStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class FareType(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


def _to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise StoreError("Invalid fare amount in store", {"fare_amount": value})


@dataclass
class Fare:
    """
    A priced tariff tied to an organization.

    `effective_date` marks when the fare becomes the authoritative one;
    None means "effective immediately and indefinitely".
    """

    organization_id: str
    fare_code: str
    fare_name: str
    fare_type: str
    fare_amount: Decimal
    status: FareStatus = FareStatus.ACTIVE
    created_at: Optional[datetime] = None
    effective_date: Optional[datetime] = None
    id: Optional[str] = field(default=None)

    @property
    def is_active(self) -> bool:
        return self.status == FareStatus.ACTIVE

    def is_due(self, now: datetime) -> bool:
        """True for a dated fare whose effective date has been reached."""
        return self.effective_date is not None and self.effective_date <= now

    def recency_key(self) -> tuple:
        """
        Ordering used for "most recent effective date wins".

        Undated fares rank oldest; ties fall back to code then id.
        """
        return (self.effective_date or _ALWAYS, self.fare_code or "", self.id or "")

    def copy(self, **changes) -> "Fare":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict) -> "Fare":
        """Build a Fare from a database row."""
        return cls(
            id=data.get("id"),
            organization_id=data.get("organization_id", ""),
            fare_code=data.get("fare_code", ""),
            fare_name=data.get("fare_name", ""),
            fare_type=data.get("fare_type", ""),
            fare_amount=_to_decimal(data.get("fare_amount")),
            status=FareStatus(data.get("status") or FareStatus.INACTIVE.value),
            created_at=parse_datetime(data.get("created_at")),
            effective_date=parse_datetime(data.get("effective_date")),
        )

    def to_dict(self) -> dict:
        """Row representation for inserts and updates."""
        data = {
            "organization_id": self.organization_id,
            "fare_code": self.fare_code,
            "fare_name": self.fare_name,
            "fare_type": self.fare_type,
            "fare_amount": str(self.fare_amount),
            "status": self.status.value,
            "created_at": iso_utc(self.created_at) if self.created_at else None,
            "effective_date": iso_utc(self.effective_date) if self.effective_date else None,
        }
        if self.id:
            data["id"] = self.id
        return data


def order_by_effective_date(fares: List[Fare]) -> List[Fare]:
    """Newest effective date first, undated fares last."""
    dated = sorted(
        (f for f in fares if f.effective_date is not None),
        key=lambda f: f.effective_date,
        reverse=True,
    )
    return dated + [f for f in fares if f.effective_date is None]


class FareStore(BaseRepository[Fare]):
    """
    Persistence contract for fares.

    Only per-record writes are assumed to be atomic; there are no
    multi-record transactions.
    """

    @abstractmethod
    async def find_by_status(self, status: FareStatus) -> List[Fare]:
        pass

    @abstractmethod
    async def find_by_organization_and_status(
        self, organization_id: str, status: FareStatus
    ) -> List[Fare]:
        """Fares of one organization in a status, newest effective date first, undated last."""
        pass

    @abstractmethod
    async def find_last_by_code(self, prefix: str) -> Optional[Fare]:
        """Fare with the greatest code (string order) among codes starting with prefix."""
        pass

    @abstractmethod
    async def exists_by_code(self, fare_code: str) -> bool:
        pass


class SupabaseFareRepository(FareStore):
    """
    FareStore backed by a Supabase (PostgREST) table.

    Usage:
        repo = SupabaseFareRepository(get_supabase_client())
        fare = await repo.find_by_id("uuid")

    The supabase client is synchronous, so every request runs in the default
    executor. Client failures surface as StoreError.
    """

    def __init__(self, db_client: Any, table_name: str = "fares"):
        self.db = db_client
        self._table_name = table_name

    @property
    def table_name(self) -> str:
        return self._table_name

    def _table(self):
        return self.db.table(self.table_name)

    async def _execute(self, build: Callable[[], Any], action: str):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, lambda: build().execute())
        except Exception as e:
            logger.error(f"Error {action}: {e}")
            raise StoreError(
                f"Fare store failure while {action}",
                {"table": self.table_name},
                original_error=e,
            ) from e

    @staticmethod
    def _rows(response) -> List[dict]:
        return list(getattr(response, "data", None) or [])

    async def find_by_id(self, id: str) -> Optional[Fare]:
        response = await self._execute(
            lambda: self._table().select("*").eq("id", id).limit(1),
            f"fetching fare {id}",
        )
        rows = self._rows(response)
        return Fare.from_dict(rows[0]) if rows else None

    async def find_all(self) -> List[Fare]:
        response = await self._execute(
            lambda: self._table().select("*"),
            "listing fares",
        )
        return [Fare.from_dict(row) for row in self._rows(response)]

    async def find_by_status(self, status: FareStatus) -> List[Fare]:
        response = await self._execute(
            lambda: self._table().select("*").eq("status", FareStatus(status).value),
            f"listing {FareStatus(status).value} fares",
        )
        return [Fare.from_dict(row) for row in self._rows(response)]

    async def find_by_organization_and_status(
        self, organization_id: str, status: FareStatus
    ) -> List[Fare]:
        response = await self._execute(
            lambda: (
                self._table()
                .select("*")
                .eq("organization_id", organization_id)
                .eq("status", FareStatus(status).value)
                .order("effective_date", desc=True)
            ),
            f"listing {FareStatus(status).value} fares of organization {organization_id}",
        )
        return order_by_effective_date([Fare.from_dict(row) for row in self._rows(response)])

    async def find_last_by_code(self, prefix: str) -> Optional[Fare]:
        response = await self._execute(
            lambda: (
                self._table()
                .select("*")
                .like("fare_code", f"{prefix}%")
                .order("fare_code", desc=True)
                .limit(1)
            ),
            "fetching last fare code",
        )
        rows = self._rows(response)
        return Fare.from_dict(rows[0]) if rows else None

    async def exists_by_code(self, fare_code: str) -> bool:
        response = await self._execute(
            lambda: self._table().select("id").eq("fare_code", fare_code).limit(1),
            f"checking fare code {fare_code}",
        )
        return bool(self._rows(response))

    async def save(self, fare: Fare) -> Fare:
        data = fare.to_dict()
        if fare.id is None:
            try:
                response = await self._execute(
                    lambda: self._table().insert(data),
                    "inserting fare",
                )
            except StoreError as e:
                if getattr(e.original_error, "code", None) == UNIQUE_VIOLATION:
                    raise DuplicateCodeError(fare.fare_code) from e.original_error
                raise
            rows = self._rows(response)
            if not rows:
                raise StoreError("Insert returned no row", {"fare_code": fare.fare_code})
            saved = Fare.from_dict(rows[0])
            logger.info(f"Fare created: {saved.id} ({saved.fare_code})")
            return saved

        data.pop("id", None)
        response = await self._execute(
            lambda: self._table().update(data).eq("id", fare.id),
            f"updating fare {fare.id}",
        )
        rows = self._rows(response)
        if not rows:
            raise NotFoundError("Fare", fare.id)
        return Fare.from_dict(rows[0])

    async def delete(self, id: str) -> bool:
        response = await self._execute(
            lambda: self._table().delete().eq("id", id),
            f"deleting fare {id}",
        )
        deleted = bool(self._rows(response))
        if deleted:
            logger.info(f"Fare deleted: {id}")
        return deleted
