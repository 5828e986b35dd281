"""REST endpoints for calendar projects."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from src.core.task_store import TaskStore
from src.domain.create_models import ProjectCreate
from src.domain.update_models import BulkProjectUpdate, ProjectUpdate
from src.interface.dependencies import get_projects, raise_http_error
from src.services import project_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("")
async def list_projects(
    user_id: str | None = Query(default=None, alias="userId"),
    date: str | None = Query(default=None, description="Only this day (YYYY-MM-DD)"),
    store: TaskStore = Depends(get_projects),
) -> list[dict[str, Any]]:
    """List a user's projects ordered by start time."""
    try:
        return await project_service.list_projects(store, user_id=user_id, date=date)
    except Exception as e:
        raise_http_error(e)


@router.post("")
async def create_project(payload: ProjectCreate, store: TaskStore = Depends(get_projects)) -> dict[str, Any]:
    """Create a project and return it with its new ID."""
    try:
        return await project_service.create_project(store, payload)
    except Exception as e:
        raise_http_error(e)


@router.put("")
async def bulk_update_projects(
    updates: list[BulkProjectUpdate], store: TaskStore = Depends(get_projects)
) -> dict[str, Any]:
    """Apply partial updates to several projects at once."""
    try:
        updated = await project_service.bulk_update_projects(store, updates)
    except Exception as e:
        raise_http_error(e)
    return {"success": True, "updated": updated}


@router.get("/{project_id}")
async def get_project(project_id: str, store: TaskStore = Depends(get_projects)) -> dict[str, Any]:
    try:
        return await project_service.get_project(store, project_id)
    except Exception as e:
        raise_http_error(e)


@router.put("/{project_id}")
async def update_project(
    project_id: str, payload: ProjectUpdate, store: TaskStore = Depends(get_projects)
) -> dict[str, Any]:
    """Apply a partial update to one project."""
    try:
        return await project_service.update_project(store, project_id, payload)
    except Exception as e:
        raise_http_error(e)


@router.delete("/{project_id}")
async def delete_project(project_id: str, store: TaskStore = Depends(get_projects)) -> dict[str, Any]:
    """Delete a project and return the removed record."""
    try:
        removed = await project_service.delete_project(store, project_id)
    except Exception as e:
        raise_http_error(e)
    return {"success": True, "project": removed}
