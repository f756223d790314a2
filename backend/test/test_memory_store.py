"""인메모리 룸 스토어 및 스토어 공통 함수 테스트."""

import logging

import pytest

from modules.database import SERVER_TIMESTAMP, ChildEvent, StoreError
from modules.database.store import (
    PushIdGenerator,
    merge_record,
    resolve_server_values,
    sort_children,
    split_path,
)


def test_push_ids_sort_in_creation_order():
    generate = PushIdGenerator()
    same_ms = [generate(1_700_000_000_000) for _ in range(50)]
    later = generate(1_700_000_000_001)

    assert all(len(push_id) == 20 for push_id in same_ms)
    assert sorted(same_ms) == same_ms
    assert len(set(same_ms)) == 50
    assert later > same_ms[-1]


def test_push_ids_stay_ordered_when_clock_goes_back():
    generate = PushIdGenerator()
    first = generate(2_000)
    second = generate(1_000)
    assert second > first


def test_split_path():
    assert split_path("messages/room1/msg1") == ("messages/room1", "msg1")
    assert split_path("/rooms/abc/") == ("rooms", "abc")
    with pytest.raises(StoreError):
        split_path("rooms")


def test_resolve_server_values_and_merge():
    record = resolve_server_values({"a": 1, "timestamp": SERVER_TIMESTAMP}, 42)
    assert record == {"a": 1, "timestamp": 42}

    merged = merge_record(
        {"translations": {"en": "Hi"}, "status": "pending"},
        {"translations": {"fr": "Salut"}, "status": "translated"},
    )
    assert merged == {"translations": {"en": "Hi", "fr": "Salut"}, "status": "translated"}


def test_sort_children_by_field_then_id():
    records = [
        {"id": "b", "timestamp": 2},
        {"id": "a", "timestamp": 2},
        {"id": "c", "timestamp": 1},
        {"id": "d"},
    ]
    assert [r["id"] for r in sort_children(records, "timestamp")] == ["d", "c", "a", "b"]
    assert [r["id"] for r in sort_children(records)] == ["a", "b", "c", "d"]


async def test_set_fires_added_then_changed(memory_store):
    added, changed = [], []
    await memory_store.subscribe("messages/r1", ChildEvent.CHILD_ADDED, added.append)
    await memory_store.subscribe("messages/r1", ChildEvent.CHILD_CHANGED, changed.append)

    await memory_store.set("messages/r1/m1", {"id": "m1", "text": "a"})
    await memory_store.set("messages/r1/m1", {"id": "m1", "text": "b"})

    assert [r["text"] for r in added] == ["a"]
    assert [r["text"] for r in changed] == ["b"]


async def test_push_assigns_id_and_server_timestamp(memory_store):
    key = await memory_store.push("messages/r1", {"text": "hi", "timestamp": SERVER_TIMESTAMP})
    record = await memory_store.get(f"messages/r1/{key}")

    assert record["id"] == key
    assert isinstance(record["timestamp"], int)


async def test_update_merges_and_returns_record(memory_store):
    await memory_store.set("messages/r1/m1", {"id": "m1", "translations": {}, "status": "pending"})
    changed = []
    await memory_store.subscribe("messages/r1", ChildEvent.CHILD_CHANGED, changed.append)

    merged = await memory_store.update(
        "messages/r1/m1", {"translations": {"en": "Hi"}, "status": "translated"}
    )

    assert merged == {"id": "m1", "translations": {"en": "Hi"}, "status": "translated"}
    assert changed == [merged]


async def test_create_if_absent(memory_store):
    assert await memory_store.create_if_absent("room_names/lobby", {"id": "r1"}) is True
    assert await memory_store.create_if_absent("room_names/lobby", {"id": "r2"}) is False
    assert await memory_store.get("room_names/lobby") == {"id": "r1"}


async def test_records_are_copied(memory_store):
    value = {"id": "m1", "translations": {}}
    await memory_store.set("messages/r1/m1", value)
    value["translations"]["en"] = "mutated"

    record = await memory_store.get("messages/r1/m1")
    assert record["translations"] == {}


async def test_subscription_close_is_idempotent(memory_store):
    received = []
    subscription = await memory_store.subscribe("participants/r1", ChildEvent.CHILD_ADDED, received.append)
    assert memory_store.listener_count("participants/r1") == 1

    await subscription.close()
    await subscription.close()
    assert subscription.closed
    assert memory_store.listener_count() == 0

    await memory_store.push("participants/r1", {"name": "Ana"})
    assert received == []


async def test_failing_callback_does_not_break_write(memory_store, caplog):
    def _boom(record):
        raise RuntimeError("listener failed")

    received = []
    await memory_store.subscribe("participants/r1", ChildEvent.CHILD_ADDED, _boom)
    await memory_store.subscribe("participants/r1", ChildEvent.CHILD_ADDED, received.append)

    with caplog.at_level(logging.ERROR):
        await memory_store.push("participants/r1", {"name": "Ana"})

    assert len(received) == 1
    assert "listener failed" in caplog.text


async def test_async_callbacks_are_awaited(memory_store):
    received = []

    async def _collect(record):
        received.append(record["name"])

    await memory_store.subscribe("participants/r1", ChildEvent.CHILD_ADDED, _collect)
    await memory_store.push("participants/r1", {"name": "Ana"})
    assert received == ["Ana"]
