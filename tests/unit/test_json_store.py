"""Tests for the JSON file task store."""

import json
from pathlib import Path

import pytest

from src.core.errors import EmptyWriteRefusedError, MalformedStoreError, StoreUnavailableError
from src.core.exclusive_access import KeyedOperationQueue
from src.core.json_store import JsonFileTaskStore
from tests.unit.conftest import todo_record


@pytest.fixture
def tasks_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "tasks.json"


@pytest.mark.unit
async def test_missing_file_reads_as_empty(tasks_file: Path) -> None:
    store = JsonFileTaskStore(tasks_file)

    assert await store.read_tasks() == []


@pytest.mark.unit
async def test_blank_file_reads_as_empty(tasks_file: Path) -> None:
    tasks_file.parent.mkdir(parents=True)
    tasks_file.write_text("  \n", encoding="utf-8")

    assert await JsonFileTaskStore(tasks_file).read_tasks() == []


@pytest.mark.unit
async def test_invalid_json_is_malformed(tasks_file: Path) -> None:
    tasks_file.parent.mkdir(parents=True)
    tasks_file.write_text("[{not json", encoding="utf-8")

    with pytest.raises(MalformedStoreError):
        await JsonFileTaskStore(tasks_file).read_tasks()


@pytest.mark.unit
async def test_non_array_document_is_malformed(tasks_file: Path) -> None:
    tasks_file.parent.mkdir(parents=True)
    tasks_file.write_text('{"tasks": []}', encoding="utf-8")

    with pytest.raises(MalformedStoreError):
        await JsonFileTaskStore(tasks_file).read_tasks()


@pytest.mark.unit
async def test_unreadable_path_is_unavailable(tmp_path: Path) -> None:
    # A directory where the file should be cannot be read as text
    directory = tmp_path / "tasks.json"
    directory.mkdir()

    with pytest.raises(StoreUnavailableError):
        await JsonFileTaskStore(directory).read_tasks()


@pytest.mark.unit
async def test_write_creates_parent_and_pretty_prints(tasks_file: Path) -> None:
    store = JsonFileTaskStore(tasks_file)
    await store.initialize()

    await store.write_tasks([todo_record(title="Écrire le rapport")])

    text = tasks_file.read_text(encoding="utf-8")
    assert "Écrire le rapport" in text
    assert text.startswith("[\n  {")
    assert not tasks_file.with_name("tasks.json.tmp").exists()
    assert await store.read_tasks() == [todo_record(title="Écrire le rapport")]


@pytest.mark.unit
async def test_write_refuses_empty_list(tasks_file: Path) -> None:
    store = JsonFileTaskStore(tasks_file)
    await store.write_tasks([todo_record()])

    with pytest.raises(EmptyWriteRefusedError):
        await store.write_tasks([])

    assert len(json.loads(tasks_file.read_text(encoding="utf-8"))) == 1


@pytest.mark.unit
async def test_write_allows_empty_list_when_requested(tasks_file: Path) -> None:
    store = JsonFileTaskStore(tasks_file)
    await store.write_tasks([todo_record()])

    await store.write_tasks([], allow_empty=True)

    assert json.loads(tasks_file.read_text(encoding="utf-8")) == []


@pytest.mark.unit
async def test_update_returns_mutator_result_and_persists(tasks_file: Path) -> None:
    store = JsonFileTaskStore(tasks_file)
    await store.write_tasks([todo_record("a"), todo_record("b")])

    def rename(tasks: list[dict]) -> int:
        for task in tasks:
            task["title"] = task["title"].upper()
        return len(tasks)

    assert await store.update(rename) == 2
    titles = [t["title"] for t in json.loads(tasks_file.read_text(encoding="utf-8"))]
    assert titles == ["TASK A", "TASK B"]


@pytest.mark.unit
async def test_update_without_changes_does_not_write(tasks_file: Path) -> None:
    store = JsonFileTaskStore(tasks_file)
    await store.write_tasks([todo_record()])
    tasks_file.write_text(tasks_file.read_text(encoding="utf-8") + "\n", encoding="utf-8")
    marker = tasks_file.read_text(encoding="utf-8")

    await store.update(lambda tasks: None)

    assert tasks_file.read_text(encoding="utf-8") == marker


@pytest.mark.unit
async def test_update_on_missing_file_without_changes_creates_nothing(tasks_file: Path) -> None:
    store = JsonFileTaskStore(tasks_file)

    assert await store.update(len) == 0
    assert not tasks_file.exists()


@pytest.mark.unit
async def test_stores_on_same_path_share_queue_key(tasks_file: Path) -> None:
    queue = KeyedOperationQueue()
    first = JsonFileTaskStore(tasks_file, queue=queue)
    second = JsonFileTaskStore(tasks_file.parent / ".." / "data" / "tasks.json", queue=queue)

    assert first.resource_key == second.resource_key
