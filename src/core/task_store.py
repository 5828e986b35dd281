"""Guarded access to the persisted task and project documents.

Every store keeps one whole collection (tasks or projects) as a list of raw
records. All writes run through a KeyedOperationQueue keyed by the backing
resource, so a read-modify-write cycle performed with update() can never
interleave with another one on the same file or table.
"""

import copy
import logging
from collections.abc import Callable
from functools import lru_cache
from typing import Any, TypeVar

from src.core.config import settings
from src.core.errors import EmptyWriteRefusedError
from src.core.exclusive_access import KeyedOperationQueue


logger = logging.getLogger(__name__)

T = TypeVar("T")

TaskRecords = list[dict[str, Any]]


class TaskStore:
    """Base class for task document stores.

    Subclasses implement _load() and _save(); callers use read_tasks(),
    write_tasks() and update().
    """

    def __init__(self, *, resource_key: str, queue: KeyedOperationQueue | None = None) -> None:
        self.resource_key = resource_key
        self.queue = queue or KeyedOperationQueue()

    async def initialize(self) -> None:
        """Prepare the backing resource (directories, tables)."""

    async def _load(self) -> TaskRecords:
        raise NotImplementedError

    async def _save(self, tasks: TaskRecords) -> None:
        raise NotImplementedError

    async def read_tasks(self) -> TaskRecords:
        """Read the current task list.

        Use update() instead when the result will be written back.

        Raises:
            StoreUnavailableError: If the backing resource cannot be read
            MalformedStoreError: If the stored document is not a list of records
        """
        return await self._load()

    async def write_tasks(self, tasks: TaskRecords, *, allow_empty: bool = False) -> None:
        """Replace the whole task list.

        Args:
            tasks: Records to persist
            allow_empty: Set when the caller really means to store an empty list

        Raises:
            EmptyWriteRefusedError: If tasks is empty and allow_empty is False
        """

        async def _write() -> None:
            await self._checked_save(tasks, allow_empty=allow_empty)

        await self.queue.with_exclusive_access(self.resource_key, _write)

    async def update(self, mutate: Callable[[TaskRecords], T], *, allow_empty: bool = False) -> T:
        """Read, mutate, and write back the task list as one exclusive operation.

        The mutate callback edits the list in place and may return a value that
        is passed back to the caller. Nothing is written when the list did not
        change or when mutate raises.

        Args:
            mutate: Callback receiving the current records
            allow_empty: Permit the result to be an empty list (e.g. deleting the last task)

        Returns:
            The value returned by mutate
        """

        async def _cycle() -> T:
            tasks = await self._load()
            before = copy.deepcopy(tasks)
            result = mutate(tasks)
            if tasks != before:
                await self._checked_save(tasks, allow_empty=allow_empty)
            else:
                logger.debug("task_store_update_noop", extra={"resource": self.resource_key})
            return result

        return await self.queue.with_exclusive_access(self.resource_key, _cycle)

    async def _checked_save(self, tasks: TaskRecords, *, allow_empty: bool) -> None:
        if not tasks and not allow_empty:
            logger.warning("task_store_empty_write_refused", extra={"resource": self.resource_key})
            raise EmptyWriteRefusedError(f"Refusing to overwrite {self.resource_key} with an empty task list")
        await self._save(tasks)
        logger.info("task_store_saved", extra={"resource": self.resource_key, "count": len(tasks)})


@lru_cache(maxsize=1)
def get_task_store() -> TaskStore:
    """Return the configured task store (shared for the whole process)."""
    if settings.storage_backend == "sqlite":
        from src.core.db_client import SqliteTaskStore  # noqa: PLC0415

        return SqliteTaskStore(settings.sqlite_db_path)

    from src.core.json_store import JsonFileTaskStore  # noqa: PLC0415

    return JsonFileTaskStore(settings.tasks_file_path)


@lru_cache(maxsize=1)
def get_project_store() -> TaskStore:
    """Return the configured project store, kept apart from the tasks."""
    if settings.storage_backend == "sqlite":
        from src.core.db_client import SqliteTaskStore  # noqa: PLC0415

        return SqliteTaskStore(settings.sqlite_db_path, table="projects")

    from src.core.json_store import JsonFileTaskStore  # noqa: PLC0415

    return JsonFileTaskStore(settings.projects_file_path)
