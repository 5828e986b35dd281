"""Tests for per-key serialization of async operations."""

import asyncio

import pytest

from src.core.exclusive_access import KeyedOperationQueue
from tests.unit.mocks import InMemoryTaskStore


@pytest.fixture
def queue() -> KeyedOperationQueue:
    return KeyedOperationQueue()


@pytest.mark.unit
async def test_same_key_runs_in_submission_order_without_overlap(queue: KeyedOperationQueue) -> None:
    """Operations on one key never overlap and finish in the order they were submitted."""
    events: list[str] = []

    def make_op(name: str, delay: float):
        async def op() -> str:
            events.append(f"start:{name}")
            await asyncio.sleep(delay)
            events.append(f"end:{name}")
            return name

        return op

    results = await asyncio.gather(
        queue.with_exclusive_access("tasks.json", make_op("a", 0.03)),
        queue.with_exclusive_access("tasks.json", make_op("b", 0.01)),
        queue.with_exclusive_access("tasks.json", make_op("c", 0)),
    )

    assert results == ["a", "b", "c"]
    assert events == ["start:a", "end:a", "start:b", "end:b", "start:c", "end:c"]


@pytest.mark.unit
async def test_different_keys_run_concurrently(queue: KeyedOperationQueue) -> None:
    """An operation on one key can wait for an operation on another key."""
    other_started = asyncio.Event()

    async def waits_for_other() -> str:
        await other_started.wait()
        return "first"

    async def signals() -> str:
        other_started.set()
        return "second"

    results = await asyncio.wait_for(
        asyncio.gather(
            queue.with_exclusive_access("a.json", waits_for_other),
            queue.with_exclusive_access("b.json", signals),
        ),
        timeout=1,
    )

    assert results == ["first", "second"]


@pytest.mark.unit
async def test_failed_operation_does_not_block_queue(queue: KeyedOperationQueue) -> None:
    """A raising operation releases the key for the next one."""

    async def boom() -> None:
        raise RuntimeError("write failed")

    async def ok() -> str:
        return "ok"

    results = await asyncio.gather(
        queue.with_exclusive_access("tasks.json", boom),
        queue.with_exclusive_access("tasks.json", ok),
        return_exceptions=True,
    )

    assert isinstance(results[0], RuntimeError)
    assert results[1] == "ok"
    assert not queue.is_locked("tasks.json")


@pytest.mark.unit
async def test_key_is_released_when_queue_drains(queue: KeyedOperationQueue) -> None:
    """The key disappears once its last operation finishes."""
    gate = asyncio.Event()

    async def hold() -> None:
        await gate.wait()

    task = asyncio.create_task(queue.with_exclusive_access("tasks.json", hold))
    await asyncio.sleep(0)
    assert queue.is_locked("tasks.json")
    assert queue.pending_keys() == ["tasks.json"]

    gate.set()
    await task

    assert not queue.is_locked("tasks.json")
    assert queue.pending_keys() == []


@pytest.mark.unit
async def test_cancelled_waiter_keeps_later_operations_queued(queue: KeyedOperationQueue) -> None:
    """Cancelling a queued operation must not let the next one start early."""
    gate = asyncio.Event()
    started: list[str] = []

    async def first() -> None:
        started.append("first")
        await gate.wait()

    async def second() -> None:
        started.append("second")

    async def third() -> None:
        started.append("third")

    task1 = asyncio.create_task(queue.with_exclusive_access("tasks.json", first))
    await asyncio.sleep(0)
    task2 = asyncio.create_task(queue.with_exclusive_access("tasks.json", second))
    await asyncio.sleep(0)
    task3 = asyncio.create_task(queue.with_exclusive_access("tasks.json", third))
    await asyncio.sleep(0)

    task2.cancel()
    for _ in range(5):
        await asyncio.sleep(0)

    assert started == ["first"]

    gate.set()
    await task1
    await task3

    assert task2.cancelled()
    assert started == ["first", "third"]
    assert not queue.is_locked("tasks.json")


@pytest.mark.unit
async def test_concurrent_store_updates_lose_nothing() -> None:
    """Two concurrent read-modify-write cycles both land in the store."""
    store = InMemoryTaskStore([{"_id": "seed"}])

    def append(task_id: str):
        def _mutate(tasks: list[dict]) -> None:
            tasks.append({"_id": task_id})

        return _mutate

    await asyncio.gather(store.update(append("a")), store.update(append("b")))

    assert sorted(t["_id"] for t in store.tasks) == ["a", "b", "seed"]


@pytest.mark.unit
async def test_separate_queues_are_independent() -> None:
    """Queues are plain objects; one queue's locks do not leak into another."""
    first = KeyedOperationQueue()
    second = KeyedOperationQueue()
    gate = asyncio.Event()

    async def hold() -> None:
        await gate.wait()

    async def quick() -> str:
        return "done"

    held = asyncio.create_task(first.with_exclusive_access("tasks.json", hold))
    await asyncio.sleep(0)

    assert await asyncio.wait_for(second.with_exclusive_access("tasks.json", quick), timeout=1) == "done"

    gate.set()
    await held
