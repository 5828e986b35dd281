"""SQLite-backed document store using aiosqlite.

Records are kept as JSON documents in one table per collection (tasks,
projects), in their list order. Saving replaces the whole collection inside
one transaction, the same way the JSON file store rewrites the whole file.
"""

import json
import logging
from pathlib import Path

import aiosqlite

from src.core.errors import MalformedStoreError, StoreUnavailableError
from src.core.exclusive_access import KeyedOperationQueue
from src.core.task_store import TaskRecords, TaskStore


logger = logging.getLogger(__name__)

COLLECTION_TABLES = frozenset({"tasks", "projects"})

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    position INTEGER PRIMARY KEY,
    id TEXT,
    user_id TEXT,
    document TEXT NOT NULL
)
"""


def get_db_path(db_path: str | Path) -> Path:
    """Get the resolved SQLite database file path."""
    return Path(db_path).resolve()


def _record_id(record: object) -> str | None:
    if not isinstance(record, dict):
        return None
    return record.get("_id", record.get("id"))


class SqliteTaskStore(TaskStore):
    """Keep one collection of records as JSON documents in a SQLite table."""

    def __init__(
        self, db_path: str | Path, *, table: str = "tasks", queue: KeyedOperationQueue | None = None
    ) -> None:
        if table not in COLLECTION_TABLES:
            msg = f"Unknown collection table: {table}"
            raise ValueError(msg)
        self.db_path = get_db_path(db_path)
        self.table = table
        self._create_table = _CREATE_TABLE.format(table=table)
        super().__init__(resource_key=f"sqlite:{self.db_path}:{table}", queue=queue)

    async def initialize(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self.db_path)) as conn:
                await conn.execute("PRAGMA journal_mode = WAL")
                await conn.execute(self._create_table)
                await conn.commit()
        except (aiosqlite.Error, OSError) as e:
            logger.error("sqlite_init_failed", extra={"db_path": str(self.db_path), "error": str(e)})
            raise StoreUnavailableError(f"Cannot initialize database {self.db_path}: {e}") from e
        logger.info("SQLite store ready", extra={"db_path": str(self.db_path), "table": self.table})

    async def _load(self) -> TaskRecords:
        try:
            async with aiosqlite.connect(str(self.db_path)) as conn:
                await conn.execute(self._create_table)
                cursor = await conn.execute(f"SELECT id, document FROM {self.table} ORDER BY position")  # noqa: S608
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error("sqlite_read_failed", extra={"db_path": str(self.db_path), "error": str(e)})
            raise StoreUnavailableError(f"Cannot read {self.table} from {self.db_path}: {e}") from e

        records: TaskRecords = []
        for record_id, document in rows:
            try:
                record = json.loads(document)
            except json.JSONDecodeError as e:
                raise MalformedStoreError(f"Stored record {record_id} is not valid JSON: {e}") from e
            if not isinstance(record, dict):
                raise MalformedStoreError(f"Stored record {record_id} is not a JSON object")
            records.append(record)
        return records

    async def _save(self, tasks: TaskRecords) -> None:
        rows = [
            (
                position,
                _record_id(record),
                record.get("userId") if isinstance(record, dict) else None,
                json.dumps(record, ensure_ascii=False),
            )
            for position, record in enumerate(tasks)
        ]
        try:
            async with aiosqlite.connect(str(self.db_path)) as conn:
                await conn.execute(self._create_table)
                await conn.execute(f"DELETE FROM {self.table}")  # noqa: S608
                await conn.executemany(
                    f"INSERT INTO {self.table} (position, id, user_id, document) VALUES (?, ?, ?, ?)",  # noqa: S608
                    rows,
                )
                await conn.commit()
        except aiosqlite.Error as e:
            logger.error("sqlite_write_failed", extra={"db_path": str(self.db_path), "error": str(e)})
            raise StoreUnavailableError(f"Cannot write {self.table} to {self.db_path}: {e}") from e
