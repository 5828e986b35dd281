"""Migration script: copy tasks and projects from the JSON file stores into SQLite.

Both collections land in the same database file, in their own tables. The
documents are stored unchanged, so this is a straight copy. Running it again
replaces the database contents with the current file contents.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from src.core.config import settings
from src.core.db_client import SqliteTaskStore
from src.core.errors import TaskStoreError
from src.core.json_store import JsonFileTaskStore


logger = logging.getLogger(__name__)


async def run_migration(*, json_path: Path, db_path: Path, projects_path: Path | None = None) -> dict[str, int]:
    """Copy every record from json_path (and projects_path) into the database at db_path.

    A missing or empty projects file is skipped; a fresh install has no
    projects yet.

    Returns:
        Counts of records read and stored, per collection

    Raises:
        TaskStoreError: If either store fails, or the JSON file holds no tasks
    """
    source = JsonFileTaskStore(json_path)
    target = SqliteTaskStore(db_path)
    await target.initialize()

    tasks = await source.read_tasks()
    await target.write_tasks(tasks)
    stored = await target.read_tasks()
    logger.info("Copied %d tasks into %s", len(stored), db_path)

    results = {"read": len(tasks), "stored": len(stored), "projects_read": 0, "projects_stored": 0}
    if projects_path is None:
        return results

    projects = await JsonFileTaskStore(projects_path).read_tasks()
    if not projects:
        logger.info("No projects in %s, skipping", projects_path)
        return results

    project_target = SqliteTaskStore(db_path, table="projects")
    await project_target.initialize()
    await project_target.write_tasks(projects)
    results["projects_read"] = len(projects)
    results["projects_stored"] = len(await project_target.read_tasks())
    logger.info("Copied %d projects into %s", results["projects_stored"], db_path)
    return results


def main() -> None:
    """Main entry point for the migration script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Copy tasks and projects from the JSON files into SQLite")
    parser.add_argument("--json-path", type=str, default=None, help="Task file (default: settings.tasks_file_path)")
    parser.add_argument(
        "--projects-path", type=str, default=None, help="Project file (default: settings.projects_file_path)"
    )
    parser.add_argument("--db-path", type=str, default=None, help="Target database (default: settings.sqlite_db_path)")
    args = parser.parse_args()

    json_path = Path(args.json_path or settings.tasks_file_path).resolve()
    projects_path = Path(args.projects_path or settings.projects_file_path).resolve()
    db_path = Path(args.db_path or settings.sqlite_db_path).resolve()

    try:
        results = asyncio.run(run_migration(json_path=json_path, db_path=db_path, projects_path=projects_path))
    except TaskStoreError as e:
        logger.error("Migration failed: %s", e)
        sys.exit(1)

    if results["read"] != results["stored"] or results["projects_read"] != results["projects_stored"]:
        logger.error(
            "Stored %d of %d tasks and %d of %d projects",
            results["stored"],
            results["read"],
            results["projects_stored"],
            results["projects_read"],
        )
        sys.exit(1)
    logger.info("Migration complete: %d tasks, %d projects", results["stored"], results["projects_stored"])


if __name__ == "__main__":
    main()
