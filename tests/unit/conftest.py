"""Pytest configuration and fixtures for unit tests."""

from collections.abc import Callable
from typing import Any

import pytest

from tests.unit.mocks import InMemoryTaskStore


TODAY = "2024-01-02"
YESTERDAY = "2024-01-01"


def todo_record(task_id: str = "todo_1", **overrides: Any) -> dict[str, Any]:
    """Stored TODO record with sensible defaults."""
    record: dict[str, Any] = {
        "_id": task_id,
        "userId": "user_001",
        "type": "todo",
        "title": f"Task {task_id}",
        "content": [],
        "status": "pending",
        "priority": "medium",
        "tags": [],
        "createdAt": "2023-12-01T08:00:00.000Z",
        "updatedAt": "2023-12-01T08:00:00.000Z",
        "completedAt": [],
        "plannedTime": None,
        "dueDate": None,
        "estimatedDuration": 1500,
        "dailyTimeStats": {},
    }
    record.update(overrides)
    return record


def check_in_record(task_id: str = "check_1", **overrides: Any) -> dict[str, Any]:
    """Stored check-in record with sensible defaults."""
    record: dict[str, Any] = {
        "_id": task_id,
        "userId": "user_001",
        "type": "check-in",
        "title": f"Habit {task_id}",
        "content": [],
        "status": "pending",
        "priority": "medium",
        "tags": [],
        "createdAt": "2023-12-01T08:00:00.000Z",
        "updatedAt": "2023-12-01T08:00:00.000Z",
        "completedAt": [],
        "plannedTime": None,
        "checkInHistory": [],
        "recurrence": {"frequency": "daily", "daysOfWeek": []},
    }
    record.update(overrides)
    return record


def project_record(project_id: str = "1-1700000000000", **overrides: Any) -> dict[str, Any]:
    """Stored project record scheduled for TODAY."""
    record: dict[str, Any] = {
        "id": project_id,
        "userId": "user_001",
        "date": TODAY,
        "time": "09:00",
        "title": f"Project {project_id}",
        "durationMinutes": 30,
        "icon": "book",
        "iconColor": "#ff9900",
        "category": "focus",
        "completed": False,
    }
    record.update(overrides)
    return record


@pytest.fixture
def make_todo() -> Callable[..., dict[str, Any]]:
    """Factory for stored TODO records."""
    return todo_record


@pytest.fixture
def make_check_in() -> Callable[..., dict[str, Any]]:
    """Factory for stored check-in records."""
    return check_in_record


@pytest.fixture
def store() -> InMemoryTaskStore:
    """Provides a fresh, empty InMemoryTaskStore for each test."""
    return InMemoryTaskStore()
