"""Migration script: build dailyTimeStats for TODO tasks from their legacy timeLog.

Old records kept time as a list of sessions ({startTime, endTime, duration}).
This script sums each task's sessions per start date into the dailyTimeStats
ledger and removes the session list. Tasks that already have dailyTimeStats
are left alone, so the migration is safe to re-run.

A timestamped backup of the task file is written before anything changes.
"""

import argparse
import asyncio
import logging
import shutil
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from src.core.config import settings
from src.core.json_store import JsonFileTaskStore
from src.domain.task import normalize_time_data


logger = logging.getLogger(__name__)


def create_backup(*, file_path: Path) -> Path:
    """Copy the task file next to itself with a timestamp suffix."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = file_path.parent / f"{file_path.stem}.backup_{timestamp}{file_path.suffix}"
    shutil.copy2(file_path, backup_path)
    logger.info("Created backup at: %s", backup_path)
    return backup_path


def migrate_records(tasks: list[dict[str, Any]]) -> dict[str, int]:
    """Migrate records in place.

    Returns:
        Counts of total tasks, TODO tasks, migrated and skipped tasks
    """
    results = {"total_tasks": len(tasks), "todo_tasks": 0, "migrated": 0, "skipped": 0}
    for index, raw in enumerate(tasks):
        if not isinstance(raw, dict) or raw.get("type") != "todo":
            continue
        results["todo_tasks"] += 1
        if raw.get("dailyTimeStats") is not None:
            results["skipped"] += 1
            continue

        migrated = normalize_time_data(raw)
        if "dailyTimeStats" not in migrated or migrated["dailyTimeStats"] is None:
            migrated = {**raw, "dailyTimeStats": {}}
        migrated.pop("timeLog", None)
        tasks[index] = migrated
        results["migrated"] += 1
        logger.info(
            "Migrated task %s (%d days of data)", raw.get("title"), len(migrated["dailyTimeStats"])
        )
    return results


async def run_migration(*, file_path: Path, backup: bool = True) -> dict[str, int]:
    """Run the migration against a JSON task file.

    Raises:
        FileNotFoundError: If the task file does not exist
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Task file not found: {file_path}")
    if backup:
        create_backup(file_path=file_path)

    store = JsonFileTaskStore(file_path)
    return await store.update(migrate_records)


def main() -> None:
    """Main entry point for the migration script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Build dailyTimeStats from legacy timeLog entries")
    parser.add_argument(
        "--file",
        type=str,
        default=None,
        help="Path to the task JSON file (default: uses settings.tasks_file_path)",
    )
    parser.add_argument("--no-backup", action="store_true", help="Skip the backup copy")
    args = parser.parse_args()

    file_path = Path(args.file or settings.tasks_file_path).resolve()
    try:
        results = asyncio.run(run_migration(file_path=file_path, backup=not args.no_backup))
    except FileNotFoundError as e:
        logger.error("%s", e)
        sys.exit(1)

    logger.info("Migration Summary:")
    for key, value in results.items():
        logger.info("  %s: %s", key, value)


if __name__ == "__main__":
    main()
