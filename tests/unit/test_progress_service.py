"""Tests for progress, remaining, and batch queries."""

import pytest

from src.core.errors import BatchSizeError, TaskNotFoundError, UnsupportedTaskTypeError
from src.services import progress_service
from tests.unit.conftest import TODAY, YESTERDAY, check_in_record, todo_record
from tests.unit.mocks import InMemoryTaskStore


@pytest.fixture
def seeded_store() -> InMemoryTaskStore:
    return InMemoryTaskStore(
        [
            todo_record("a", estimatedDuration=1500, dailyTimeStats={YESTERDAY: 900}),
            todo_record("b", estimatedDuration=600, dailyTimeStats={TODAY: 300}, status="in_progress"),
            check_in_record("c"),
            {"_id": "broken", "type": "todo", "status": "nonsense"},
        ]
    )


@pytest.mark.unit
class TestSingleTask:
    async def test_progress(self, seeded_store: InMemoryTaskStore) -> None:
        progress = await progress_service.get_task_progress(seeded_store, "b", today=TODAY)

        assert progress.total_executed_time == 300
        assert progress.progress_percentage == 50
        assert progress.is_completed is False

    async def test_remaining_on_logged_day(self, seeded_store: InMemoryTaskStore) -> None:
        remaining = await progress_service.get_task_remaining(seeded_store, "a", today=YESTERDAY)

        assert remaining.executed_minutes == 15
        assert remaining.remaining_minutes == 10
        assert remaining.progress_percentage == 60

    async def test_not_found(self, seeded_store: InMemoryTaskStore) -> None:
        with pytest.raises(TaskNotFoundError):
            await progress_service.get_task_progress(seeded_store, "zzz", today=TODAY)

    async def test_check_in_has_no_progress(self, seeded_store: InMemoryTaskStore) -> None:
        with pytest.raises(UnsupportedTaskTypeError, match="Only TODO tasks have progress"):
            await progress_service.get_task_progress(seeded_store, "c", today=TODAY)

    async def test_check_in_has_no_remaining(self, seeded_store: InMemoryTaskStore) -> None:
        with pytest.raises(UnsupportedTaskTypeError, match="Only TODO tasks have remaining time"):
            await progress_service.get_task_remaining(seeded_store, "c", today=TODAY)


@pytest.mark.unit
class TestValidateBatch:
    def test_empty(self) -> None:
        with pytest.raises(BatchSizeError, match="non-empty"):
            progress_service.validate_batch([])

    def test_limit_is_inclusive(self) -> None:
        progress_service.validate_batch([f"t{i}" for i in range(50)])

    def test_over_limit(self) -> None:
        with pytest.raises(BatchSizeError, match="Maximum 50 tasks per batch request"):
            progress_service.validate_batch([f"t{i}" for i in range(51)])


@pytest.mark.unit
class TestGetBatch:
    async def test_oversized_batch_reads_nothing(self, seeded_store: InMemoryTaskStore) -> None:
        with pytest.raises(BatchSizeError):
            await progress_service.get_batch(seeded_store, ["a"] * 51, kind="progress", today=TODAY)

        assert seeded_store.read_count == 0

    async def test_partial_success(self, seeded_store: InMemoryTaskStore) -> None:
        result = await progress_service.get_batch(
            seeded_store, ["a", "b", "c", "missing", "broken"], kind="remaining", today=TODAY
        )

        assert set(result.success) == {"a", "b"}
        assert result.success["b"]["remainingMinutes"] == 5
        assert result.success["a"]["executedMinutes"] == 0
        assert result.errors == {
            "c": "Only TODO tasks have remaining time",
            "missing": "Task not found",
            "broken": "Internal processing error",
        }
        assert result.count.requested == 5
        assert result.count.successful == 2
        assert result.count.failed == 3
        assert seeded_store.read_count == 1

    async def test_progress_entries(self, seeded_store: InMemoryTaskStore) -> None:
        result = await progress_service.get_batch(seeded_store, ["b"], kind="progress", today=TODAY)

        assert result.success["b"]["progressPercentage"] == 50
        assert result.success["b"]["todayOnly"] is True

    async def test_info_includes_progress_for_todos_only(self, seeded_store: InMemoryTaskStore) -> None:
        result = await progress_service.get_batch(seeded_store, ["b", "c"], kind="info", today=TODAY)

        todo = result.success["b"]
        assert todo["type"] == "todo"
        assert todo["status"] == "in_progress"
        assert todo["progress"]["progressPercentage"] == 50
        assert "dailyProgress" not in todo["progress"]
        assert todo["remaining"]["remainingSeconds"] == 300
        check = result.success["c"]
        assert check["type"] == "check-in"
        assert "progress" not in check

    async def test_duplicate_ids_answered_once(self, seeded_store: InMemoryTaskStore) -> None:
        result = await progress_service.get_batch(seeded_store, ["b", "b"], kind="progress", today=TODAY)

        assert list(result.success) == ["b"]
        assert result.count.requested == 2
