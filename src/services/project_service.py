"""Project service for the calendar's dated time blocks.

Projects live in their own collection next to the tasks and use the same
guarded store, so every mutation is one read-modify-write cycle through
TaskStore.update(). Unlike tasks, an empty project collection is a normal
state: a fresh install has no projects yet.
"""

import logging
import time
from typing import Any

from pydantic import ValidationError

from src.core.config import settings
from src.core.dates import format_date, parse_query_date
from src.core.errors import InvalidTaskInputError, ProjectNotFoundError
from src.core.logging import log_event, span
from src.core.task_store import TaskRecords, TaskStore
from src.domain.create_models import ProjectCreate
from src.domain.project import Project, dump_project, parse_project
from src.domain.update_models import BulkProjectUpdate, ProjectUpdate


logger = logging.getLogger(__name__)


def generate_project_id(projects: TaskRecords) -> str:
    """Return the next project ID: highest sequence number plus one, then a millisecond timestamp."""
    highest = 0
    for raw in projects:
        prefix = str(raw.get("id", "")).split("-", 1)[0] if isinstance(raw, dict) else ""
        if prefix.isdigit():
            highest = max(highest, int(prefix))
    return f"{highest + 1}-{int(time.time() * 1000)}"


def parse_projects(projects: TaskRecords, *, user_id: str | None = None) -> list[Project]:
    """Parse raw records, skipping ones that are not valid projects."""
    parsed: list[Project] = []
    for raw in projects:
        if not isinstance(raw, dict):
            continue
        if user_id is not None and raw.get("userId") != user_id:
            continue
        try:
            parsed.append(parse_project(raw))
        except ValidationError as e:
            logger.warning("skipping_invalid_project_record", extra={"project_id": raw.get("id"), "error": str(e)})
    return parsed


def _locate(projects: TaskRecords, project_id: str) -> int:
    for index, raw in enumerate(projects):
        if isinstance(raw, dict) and raw.get("id") == project_id:
            return index
    raise ProjectNotFoundError(project_id)


def _apply_update(raw: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    try:
        return dump_project(parse_project({**raw, **changes}))
    except ValidationError as e:
        raise InvalidTaskInputError(str(e)) from e


async def list_projects(
    store: TaskStore, *, user_id: str | None = None, date: str | None = None
) -> list[dict[str, Any]]:
    """List a user's projects, optionally for one day, ordered by start time.

    Raises:
        InvalidTaskInputError: If date is not a valid date
    """
    day = format_date(parse_query_date(date, "date")) if date else None
    owner = user_id or settings.default_user_id

    with span("project_service.list_projects"):
        projects = parse_projects(await store.read_tasks(), user_id=owner)

    if day is not None:
        projects = [project for project in projects if project.date == day]
    projects.sort(key=lambda project: project.time)
    return [dump_project(project) for project in projects]


async def get_project(store: TaskStore, project_id: str) -> dict[str, Any]:
    """Fetch one project.

    Raises:
        ProjectNotFoundError: If no project has the ID
    """
    for raw in await store.read_tasks():
        if isinstance(raw, dict) and raw.get("id") == project_id:
            try:
                return dump_project(parse_project(raw))
            except ValidationError as e:
                raise InvalidTaskInputError(f"Stored project {project_id} is invalid: {e}") from e
    raise ProjectNotFoundError(project_id)


async def create_project(store: TaskStore, payload: ProjectCreate) -> dict[str, Any]:
    """Create a project and return the stored record."""
    with span("project_service.create_project"):

        def _append(projects: TaskRecords) -> dict[str, Any]:
            record = payload.to_record(project_id=generate_project_id(projects), user_id=settings.default_user_id)
            projects.append(record)
            return record

        record = await store.update(_append)

    log_event(logger, "info", "project_created", user_id=record["userId"], project_id=record["id"])
    return record


async def update_project(store: TaskStore, project_id: str, payload: ProjectUpdate) -> dict[str, Any]:
    """Apply a partial update to one project and return the stored result.

    Raises:
        ProjectNotFoundError: If no project has the ID
    """
    changes = payload.changes()

    with span("project_service.update_project"):

        def _mutate(projects: TaskRecords) -> dict[str, Any]:
            index = _locate(projects, project_id)
            projects[index] = _apply_update(projects[index], changes)
            return projects[index]

        return await store.update(_mutate)


async def bulk_update_projects(store: TaskStore, updates: list[BulkProjectUpdate]) -> int:
    """Apply several partial updates in one cycle; unknown IDs are skipped.

    Returns:
        Number of projects updated
    """
    with span("project_service.bulk_update_projects"):

        def _mutate(projects: TaskRecords) -> int:
            positions = {raw.get("id"): i for i, raw in enumerate(projects) if isinstance(raw, dict)}
            updated = 0
            for update in updates:
                index = positions.get(update.id)
                if index is None:
                    logger.warning("bulk_update_unknown_project", extra={"project_id": update.id})
                    continue
                projects[index] = _apply_update(projects[index], update.changes())
                updated += 1
            return updated

        return await store.update(_mutate)


async def delete_project(store: TaskStore, project_id: str) -> dict[str, Any]:
    """Remove a project and return the removed record.

    Removing the last project leaves an empty collection, which is allowed.
    """
    with span("project_service.delete_project"):

        def _mutate(projects: TaskRecords) -> dict[str, Any]:
            return projects.pop(_locate(projects, project_id))

        removed = await store.update(_mutate, allow_empty=True)

    logger.info("project_deleted", extra={"project_id": project_id})
    return removed
