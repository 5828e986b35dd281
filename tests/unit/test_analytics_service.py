"""Tests for weekly, monthly, and date-range statistics."""

from datetime import date

import pytest

from src.core.errors import InvalidTaskInputError
from src.domain.task import parse_task
from src.services import analytics_service
from tests.unit.conftest import TODAY, YESTERDAY, check_in_record, todo_record
from tests.unit.mocks import InMemoryTaskStore


@pytest.fixture
def history_store() -> InMemoryTaskStore:
    return InMemoryTaskStore(
        [
            todo_record("a", dailyTimeStats={YESTERDAY: 1530, TODAY: 90}, completedAt=[YESTERDAY]),
            todo_record("b", dailyTimeStats={YESTERDAY: 29}, dueDate=f"{TODAY}T00:00:00.000Z"),
            check_in_record("c", checkInHistory=[{"date": TODAY}], completedAt=[TODAY]),
            todo_record("other", userId="user_002", dailyTimeStats={TODAY: 6000}),
        ]
    )


@pytest.mark.unit
class TestIsRelevantOn:
    def test_todo_with_time(self) -> None:
        task = parse_task(todo_record(dailyTimeStats={TODAY: 10}))

        assert analytics_service.is_relevant_on(task, date(2024, 1, 2))
        assert not analytics_service.is_relevant_on(task, date(2024, 1, 1))

    def test_todo_due_that_day(self) -> None:
        task = parse_task(todo_record(dueDate="2024-01-05"))

        assert analytics_service.is_relevant_on(task, date(2024, 1, 5))

    def test_weekly_check_in(self) -> None:
        task = parse_task(check_in_record(recurrence={"frequency": "weekly", "daysOfWeek": [1]}))

        # 2024-01-01 is a Monday
        assert analytics_service.is_relevant_on(task, date(2024, 1, 1))
        assert not analytics_service.is_relevant_on(task, date(2024, 1, 2))

    def test_check_in_without_recurrence_needs_history(self) -> None:
        task = parse_task(check_in_record(recurrence=None, checkInHistory=[{"date": TODAY}]))

        assert analytics_service.is_relevant_on(task, date(2024, 1, 2))
        assert not analytics_service.is_relevant_on(task, date(2024, 1, 3))


@pytest.mark.unit
class TestWeeklyStats:
    async def test_two_day_window(self, history_store: InMemoryTaskStore) -> None:
        stats = await analytics_service.get_weekly_stats(history_store, days=2, today=TODAY)

        assert stats.start_date == YESTERDAY
        assert stats.end_date == TODAY
        yesterday, today = stats.daily_stats
        # 1530 + 29 seconds = 25.98 minutes
        assert yesterday.total_duration == 26
        assert yesterday.completed_count == 1
        assert yesterday.task_count == 3
        assert yesterday.is_today is False
        assert today.total_duration == 2
        assert today.is_today is True
        assert today.day_label == "1/2"
        assert stats.summary.total_duration == 28
        assert stats.summary.average_daily_time == 14
        assert stats.summary.most_productive_day == "1/1"

    async def test_explicit_end_date(self, history_store: InMemoryTaskStore) -> None:
        stats = await analytics_service.get_weekly_stats(history_store, days=7, end_date="2023-12-31", today=TODAY)

        assert stats.start_date == "2023-12-25"
        assert stats.summary.total_duration == 0
        assert stats.summary.most_productive_day is None

    @pytest.mark.parametrize("days", [0, 31])
    async def test_days_out_of_range(self, history_store: InMemoryTaskStore, days: int) -> None:
        with pytest.raises(InvalidTaskInputError):
            await analytics_service.get_weekly_stats(history_store, days=days, today=TODAY)

    async def test_bad_end_date(self, history_store: InMemoryTaskStore) -> None:
        with pytest.raises(InvalidTaskInputError, match="endDate"):
            await analytics_service.get_weekly_stats(history_store, end_date="yesterday", today=TODAY)


@pytest.mark.unit
class TestMonthlyStats:
    async def test_calendar_month(self, history_store: InMemoryTaskStore) -> None:
        stats = await analytics_service.get_monthly_stats(history_store, year=2024, month=1, today=TODAY)

        assert stats.start_date == "2024-01-01"
        assert stats.end_date == "2024-01-31"
        assert len(stats.daily_stats) == 31
        first, second = stats.daily_stats[:2]
        # per-task rounding: 26 + 0 minutes
        assert first.total_duration == 26
        assert first.task_count == 2
        assert second.total_duration == 2
        # the checked-in habit counts as a task on the day it was done
        assert second.task_count == 2
        assert second.completed_count == 1

    async def test_defaults_to_current_month(self, history_store: InMemoryTaskStore) -> None:
        stats = await analytics_service.get_monthly_stats(history_store, today=TODAY)

        assert (stats.year, stats.month) == (2024, 1)

    async def test_explicit_range_overrides_month(self, history_store: InMemoryTaskStore) -> None:
        stats = await analytics_service.get_monthly_stats(
            history_store, year=2024, month=1, start_date="2023-12-25", end_date="2024-02-04", today=TODAY
        )

        assert len(stats.daily_stats) == 42

    async def test_invalid_month(self, history_store: InMemoryTaskStore) -> None:
        with pytest.raises(InvalidTaskInputError):
            await analytics_service.get_monthly_stats(history_store, year=2024, month=13, today=TODAY)

    async def test_reversed_range(self, history_store: InMemoryTaskStore) -> None:
        with pytest.raises(InvalidTaskInputError):
            await analytics_service.get_monthly_stats(
                history_store, start_date="2024-02-01", end_date="2024-01-01", today=TODAY
            )


@pytest.mark.unit
class TestTasksByDate:
    async def test_groups_relevant_tasks(self, history_store: InMemoryTaskStore) -> None:
        result = await analytics_service.get_tasks_by_date(history_store, start_date=YESTERDAY, end_date=TODAY)

        assert [t["_id"] for t in result.tasks_by_date[YESTERDAY]] == ["a", "b", "c"]
        assert [t["_id"] for t in result.tasks_by_date[TODAY]] == ["a", "b", "c"]
        assert result.total_tasks == 3

    async def test_range_too_long(self, history_store: InMemoryTaskStore) -> None:
        with pytest.raises(InvalidTaskInputError):
            await analytics_service.get_tasks_by_date(history_store, start_date="2023-01-01", end_date="2024-01-02")
