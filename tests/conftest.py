"""
Shared test fixtures.

Fixtures here are available to every test module.
"""
import os

os.environ.setdefault("FARE_STORE_BACKEND", "memory")
os.environ.setdefault("FARE_SCHEDULER_ENABLED", "false")

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock

from distribution_service.repositories.fare import Fare, FareStatus
from distribution_service.repositories.memory import InMemoryFareRepository
from distribution_service.services.fares.lifecycle import FareLifecycleEngine
from distribution_service.services.fares.scheduler import FareTransitionScheduler


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# MOCK FACTORIES
# =============================================================================


def make_mock_supabase(rows: list[dict[str, Any]] | None = None) -> MagicMock:
    """
    Supabase client mock with the query chain wired up.

    Example:
        mock = make_mock_supabase([{"id": "123"}])
        mock.table("fares").select("*").execute().data  # -> rows
    """
    mock = MagicMock()
    for method in (
        "table", "select", "insert", "update", "delete", "eq", "neq",
        "like", "order", "limit", "range",
    ):
        getattr(mock, method).return_value = mock

    response = MagicMock()
    response.data = rows if rows is not None else []
    mock.execute.return_value = response
    return mock


def make_http_response(status_code: int = 200, json_data: Any = None) -> MagicMock:
    """httpx.Response stand-in."""
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = json_data if json_data is not None else {}
    return mock


def make_fare(
    fare_id: str,
    organization_id: str = "org-a",
    status: FareStatus = FareStatus.ACTIVE,
    effective_date: datetime | None = None,
    fare_code: str | None = None,
    amount: str = "10.00",
) -> Fare:
    return Fare(
        id=fare_id,
        organization_id=organization_id,
        fare_code=fare_code or f"TAR-{fare_id}",
        fare_name=f"Fare {fare_id}",
        fare_type="MONTHLY",
        fare_amount=Decimal(amount),
        status=status,
        created_at=NOW - timedelta(days=30),
        effective_date=effective_date,
    )


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fare_factory():
    return make_fare


@pytest.fixture
def store():
    return InMemoryFareRepository()


@pytest.fixture
def engine(store):
    return FareLifecycleEngine(store, clock=lambda: NOW)


@pytest.fixture
def scheduler(engine):
    return FareTransitionScheduler(engine, clock=lambda: NOW, timezone_name="UTC")


@pytest.fixture
def mock_supabase_factory():
    """
    Factory for Supabase mocks returning specific rows.

    Usage:
        def test_something(mock_supabase_factory):
            mock = mock_supabase_factory([{"id": "123"}])
    """
    return make_mock_supabase


@pytest.fixture
def http_response_factory():
    return make_http_response
