"""In-memory task store for unit testing."""

import asyncio
import copy
from typing import Any

from src.core.errors import StoreUnavailableError
from src.core.exclusive_access import KeyedOperationQueue
from src.core.task_store import TaskRecords, TaskStore


class InMemoryTaskStore(TaskStore):
    """Task store that keeps records in a list.

    Reads and writes yield to the event loop so concurrent operations get a
    chance to interleave, like real file I/O would.
    """

    def __init__(self, tasks: list[dict[str, Any]] | None = None, *, queue: KeyedOperationQueue | None = None):
        super().__init__(resource_key="memory:tasks", queue=queue)
        self.tasks: TaskRecords = copy.deepcopy(tasks or [])
        self.read_count = 0
        self.write_count = 0
        self.fail_reads = False
        self.fail_writes = False

    async def _load(self) -> TaskRecords:
        self.read_count += 1
        await asyncio.sleep(0)
        if self.fail_reads:
            raise StoreUnavailableError("simulated read failure")
        return copy.deepcopy(self.tasks)

    async def _save(self, tasks: TaskRecords) -> None:
        await asyncio.sleep(0)
        if self.fail_writes:
            raise StoreUnavailableError("simulated write failure")
        self.write_count += 1
        self.tasks = copy.deepcopy(tasks)

    def get(self, task_id: str) -> dict[str, Any]:
        """Return the stored record with task_id."""
        return next(t for t in self.tasks if t.get("_id") == task_id)
