"""Task store backed by a single JSON array file."""

import asyncio
import json
import logging
import os
from pathlib import Path

from src.core.errors import MalformedStoreError, StoreUnavailableError
from src.core.exclusive_access import KeyedOperationQueue
from src.core.task_store import TaskRecords, TaskStore


logger = logging.getLogger(__name__)


class JsonFileTaskStore(TaskStore):
    """Keep all tasks in one JSON file, rewritten in full on every save."""

    def __init__(self, file_path: str | Path, *, queue: KeyedOperationQueue | None = None) -> None:
        self.file_path = Path(file_path)
        super().__init__(resource_key=str(self.file_path.resolve()), queue=queue)

    async def initialize(self) -> None:
        await asyncio.to_thread(self.file_path.parent.mkdir, parents=True, exist_ok=True)

    async def _load(self) -> TaskRecords:
        return await asyncio.to_thread(self._read_sync)

    async def _save(self, tasks: TaskRecords) -> None:
        await asyncio.to_thread(self._write_sync, tasks)

    def _read_sync(self) -> TaskRecords:
        try:
            text = self.file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("Task file %s does not exist yet, starting empty", self.file_path)
            return []
        except OSError as e:
            logger.error("task_file_read_failed", extra={"path": str(self.file_path), "error": str(e)})
            raise StoreUnavailableError(f"Cannot read task file {self.file_path}: {e}") from e

        if not text.strip():
            return []

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("task_file_invalid_json", extra={"path": str(self.file_path), "error": str(e)})
            raise MalformedStoreError(f"Task file {self.file_path} is not valid JSON: {e}") from e

        if not isinstance(data, list):
            logger.error("task_file_not_array", extra={"path": str(self.file_path), "kind": type(data).__name__})
            raise MalformedStoreError(f"Task file {self.file_path} must contain a JSON array")
        return data

    def _write_sync(self, tasks: TaskRecords) -> None:
        payload = json.dumps(tasks, indent=2, ensure_ascii=False)
        tmp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            logger.error("task_file_write_failed", extra={"path": str(self.file_path), "error": str(e)})
            raise StoreUnavailableError(f"Cannot write task file {self.file_path}: {e}") from e
