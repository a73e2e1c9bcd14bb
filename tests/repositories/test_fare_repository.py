"""
Tests for the Fare entity and SupabaseFareRepository.
"""
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

from postgrest.exceptions import APIError

from distribution_service.core.exceptions import DuplicateCodeError, NotFoundError, StoreError
from distribution_service.repositories.fare import Fare, FareStatus, SupabaseFareRepository
from distribution_service.repositories.deps import create_fare_repo


ROW = {
    "id": "uuid-1",
    "organization_id": "org-a",
    "fare_code": "TAR004",
    "fare_name": "Monthly residential",
    "fare_type": "MONTHLY",
    "fare_amount": "15.50",
    "status": "ACTIVE",
    "created_at": "2025-05-01T10:00:00+00:00",
    "effective_date": "2025-06-01T00:00:00Z",
}


class MockTable:
    """Supabase table chain that records calls."""

    def __init__(self, data=None, should_fail=False, insert_error=None):
        self.data = data or []
        self.should_fail = should_fail
        self.insert_error = insert_error
        self.calls = []
        self.pending = []

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            self.pending.append(name)
            return self
        return method

    def execute(self):
        pending, self.pending = self.pending, []
        if self.should_fail:
            raise Exception("Database error")
        if self.insert_error and "insert" in pending:
            raise self.insert_error
        response = MagicMock()
        response.data = self.data
        return response


class MockDatabase:
    """Supabase client stand-in."""

    def __init__(self, table_data=None, should_fail=False, insert_error=None):
        self.last_table = MockTable(table_data, should_fail, insert_error)
        self.table_names = []

    def table(self, name):
        self.table_names.append(name)
        return self.last_table


class TestFareFromDict:

    def test_parses_full_row(self):
        fare = Fare.from_dict(ROW)

        assert fare.id == "uuid-1"
        assert fare.fare_amount == Decimal("15.50")
        assert fare.status == FareStatus.ACTIVE
        assert fare.effective_date == datetime(2025, 6, 1, tzinfo=timezone.utc)
        assert fare.created_at.tzinfo is not None

    def test_null_effective_date(self):
        fare = Fare.from_dict({**ROW, "effective_date": None})
        assert fare.effective_date is None

    def test_to_dict_serializes_for_database(self):
        data = Fare.from_dict(ROW).to_dict()

        assert data["fare_amount"] == "15.50"
        assert data["status"] == "ACTIVE"
        assert data["effective_date"] == "2025-06-01T00:00:00+00:00"
        assert data["id"] == "uuid-1"

    def test_to_dict_omits_missing_id(self):
        fare = Fare.from_dict(ROW).copy(id=None)
        assert "id" not in fare.to_dict()


class TestFareRecency:

    def test_undated_fare_ranks_oldest(self):
        undated = Fare.from_dict({**ROW, "id": "a", "effective_date": None})
        dated = Fare.from_dict({**ROW, "id": "b"})
        assert max([undated, dated], key=Fare.recency_key) is dated

    def test_is_due(self):
        fare = Fare.from_dict(ROW)
        assert fare.is_due(datetime(2025, 6, 1, tzinfo=timezone.utc)) is True
        assert fare.is_due(datetime(2025, 5, 31, tzinfo=timezone.utc)) is False
        assert fare.copy(effective_date=None).is_due(datetime(2030, 1, 1, tzinfo=timezone.utc)) is False


class TestSupabaseFareRepository:

    @pytest.mark.asyncio
    async def test_find_by_id_found(self):
        repo = SupabaseFareRepository(MockDatabase(table_data=[ROW]))

        fare = await repo.find_by_id("uuid-1")

        assert fare is not None
        assert fare.fare_code == "TAR004"

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self):
        repo = SupabaseFareRepository(MockDatabase(table_data=[]))
        assert await repo.find_by_id("nope") is None

    @pytest.mark.asyncio
    async def test_errors_become_store_error(self):
        repo = SupabaseFareRepository(MockDatabase(should_fail=True))

        with pytest.raises(StoreError) as exc_info:
            await repo.find_all()

        assert exc_info.value.original_error is not None

    @pytest.mark.asyncio
    async def test_uses_configured_table(self):
        db = MockDatabase(table_data=[ROW])
        repo = create_fare_repo(db, table_name="tarifas")

        await repo.find_all()

        assert db.table_names == ["tarifas"]

    @pytest.mark.asyncio
    async def test_find_by_organization_and_status_orders_by_effective_date(self):
        db = MockDatabase(table_data=[ROW])
        repo = SupabaseFareRepository(db)

        await repo.find_by_organization_and_status("org-a", FareStatus.ACTIVE)

        calls = db.last_table.calls
        assert ("eq", ("organization_id", "org-a"), {}) in calls
        assert ("eq", ("status", "ACTIVE"), {}) in calls
        assert ("order", ("effective_date",), {"desc": True}) in calls

    @pytest.mark.asyncio
    async def test_find_last_by_code_filters_prefix(self):
        db = MockDatabase(table_data=[ROW])
        repo = SupabaseFareRepository(db)

        fare = await repo.find_last_by_code("TAR")

        assert fare.fare_code == "TAR004"
        calls = db.last_table.calls
        assert ("like", ("fare_code", "TAR%"), {}) in calls
        assert ("order", ("fare_code",), {"desc": True}) in calls

    @pytest.mark.asyncio
    async def test_exists_by_code(self):
        assert await SupabaseFareRepository(MockDatabase(table_data=[{"id": "x"}])).exists_by_code("TAR001")
        assert not await SupabaseFareRepository(MockDatabase(table_data=[])).exists_by_code("TAR001")

    @pytest.mark.asyncio
    async def test_save_new_fare_inserts(self):
        db = MockDatabase(table_data=[ROW])
        repo = SupabaseFareRepository(db)

        saved = await repo.save(Fare.from_dict(ROW).copy(id=None))

        assert saved.id == "uuid-1"
        assert db.last_table.calls[0][0] == "insert"

    @pytest.mark.asyncio
    async def test_save_existing_fare_updates(self):
        db = MockDatabase(table_data=[{**ROW, "status": "INACTIVE"}])
        repo = SupabaseFareRepository(db)

        saved = await repo.save(Fare.from_dict(ROW).copy(status=FareStatus.INACTIVE))

        assert saved.status == FareStatus.INACTIVE
        update_call = db.last_table.calls[0]
        assert update_call[0] == "update"
        assert "id" not in update_call[1][0]
        assert ("eq", ("id", "uuid-1"), {}) in db.last_table.calls

    @pytest.mark.asyncio
    async def test_save_missing_fare_raises_not_found(self):
        repo = SupabaseFareRepository(MockDatabase(table_data=[]))

        with pytest.raises(NotFoundError):
            await repo.save(Fare.from_dict(ROW))

    @pytest.mark.asyncio
    async def test_delete(self):
        assert await SupabaseFareRepository(MockDatabase(table_data=[ROW])).delete("uuid-1") is True
        assert await SupabaseFareRepository(MockDatabase(table_data=[])).delete("uuid-1") is False


class TestSupabaseFareRepositoryErrors:

    @pytest.mark.asyncio
    async def test_unique_violation_on_insert_is_duplicate_code(self):
        error = APIError({"code": "23505", "message": "duplicate key value violates unique constraint"})
        repo = SupabaseFareRepository(MockDatabase(insert_error=error))

        with pytest.raises(DuplicateCodeError) as exc_info:
            await repo.save(Fare.from_dict(ROW).copy(id=None))

        assert exc_info.value.details == {"fare_code": "TAR004"}

    @pytest.mark.asyncio
    async def test_other_insert_errors_stay_store_errors(self):
        error = APIError({"code": "08006", "message": "connection failure"})
        repo = SupabaseFareRepository(MockDatabase(insert_error=error))

        with pytest.raises(StoreError):
            await repo.save(Fare.from_dict(ROW).copy(id=None))

    @pytest.mark.asyncio
    async def test_concurrent_writer_collision_surfaces_from_create(self):
        from distribution_service.services.fares.lifecycle import FareLifecycleEngine

        error = APIError({"code": "23505", "message": "duplicate key value violates unique constraint"})
        engine = FareLifecycleEngine(SupabaseFareRepository(MockDatabase(insert_error=error)))

        with pytest.raises(DuplicateCodeError) as exc_info:
            await engine.create_fare("org-1", "Basic", "MONTHLY", 10)

        assert exc_info.value.code == "TAR001"

    @pytest.mark.asyncio
    async def test_store_error_names_status_value(self):
        repo = SupabaseFareRepository(MockDatabase(should_fail=True))

        with pytest.raises(StoreError) as exc_info:
            await repo.find_by_status(FareStatus.ACTIVE)

        assert "listing ACTIVE fares" in exc_info.value.message
        assert "FareStatus." not in exc_info.value.message
