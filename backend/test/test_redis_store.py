"""Redis 룸 스토어 테스트 (fakeredis)."""

import asyncio

import pytest
from redis import exceptions as redis_exceptions

from modules.database import (
    SERVER_TIMESTAMP,
    ChildEvent,
    MessageRepository,
    RedisRoomStore,
    StoreUnavailableError,
)
from modules.room import RoomSession
from modules.shared import MessageStatus

from fakes import FakeTranslator


async def _wait_for(predicate, timeout: float = 5.0):
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(_poll(), timeout)


async def test_set_get_and_hash_layout(redis_store, redis_client):
    await redis_store.set("rooms/r1", {"id": "r1", "name": "lobby"})

    assert await redis_store.get("rooms/r1") == {"id": "r1", "name": "lobby"}
    assert await redis_store.get("rooms/missing") is None
    assert await redis_client.hexists("test:rooms", "r1")


async def test_server_timestamp_uses_redis_time(redis_store):
    key = await redis_store.push("messages/r1", {"text": "hi", "timestamp": SERVER_TIMESTAMP})
    record = await redis_store.get(f"messages/r1/{key}")

    assert record["id"] == key
    assert isinstance(record["timestamp"], int)
    assert record["timestamp"] > 1_600_000_000_000


async def test_update_merges_translations(redis_store):
    await redis_store.set("messages/r1/m1", {"id": "m1", "translations": {"en": "Hi"}, "status": "pending"})

    merged = await redis_store.update(
        "messages/r1/m1", {"translations": {"fr": "Salut"}, "status": "translated"}
    )

    assert merged["translations"] == {"en": "Hi", "fr": "Salut"}
    assert (await redis_store.get("messages/r1/m1"))["status"] == "translated"


async def test_create_if_absent(redis_store):
    assert await redis_store.create_if_absent("room_names/lobby", {"id": "r1"})
    assert not await redis_store.create_if_absent("room_names/lobby", {"id": "r2"})
    assert (await redis_store.get("room_names/lobby"))["id"] == "r1"


async def test_children_ordered_by_timestamp(redis_store):
    await redis_store.set("messages/r1/b", {"id": "b", "timestamp": 2})
    await redis_store.set("messages/r1/a", {"id": "a", "timestamp": 3})
    await redis_store.set("messages/r1/c", {"id": "c", "timestamp": 1})

    records = await redis_store.children("messages/r1", order_by="timestamp")
    assert [r["id"] for r in records] == ["c", "b", "a"]
    assert await redis_store.children("messages/empty") == []


async def test_subscribe_delivers_added_and_changed(redis_store):
    added, changed = [], []
    await redis_store.subscribe("messages/r1", ChildEvent.CHILD_ADDED, added.append)
    await redis_store.subscribe("messages/r1", ChildEvent.CHILD_CHANGED, changed.append)

    await redis_store.set("messages/r1/m1", {"id": "m1", "status": "pending"})
    await redis_store.update("messages/r1/m1", {"status": "translated"})

    await _wait_for(lambda: added and changed)
    assert added == [{"id": "m1", "status": "pending"}]
    assert changed == [{"id": "m1", "status": "translated"}]


async def test_closed_subscription_stops_delivery(redis_store):
    received = []
    subscription = await redis_store.subscribe("participants/r1", ChildEvent.CHILD_ADDED, received.append)
    await subscription.close()
    await subscription.close()

    await redis_store.push("participants/r1", {"name": "Ana"})
    await asyncio.sleep(0.1)
    assert received == []


class _DownClient:
    """모든 명령이 연결 오류를 내는 클라이언트."""

    async def time(self):
        raise redis_exceptions.ConnectionError("connection refused")

    async def hget(self, *args):
        raise redis_exceptions.ConnectionError("connection refused")

    async def hgetall(self, *args):
        raise redis_exceptions.TimeoutError("timed out")

    async def ping(self):
        raise redis_exceptions.ConnectionError("connection refused")


async def test_connection_errors_become_store_unavailable():
    store = RedisRoomStore(_DownClient())

    with pytest.raises(StoreUnavailableError):
        await store.get("rooms/r1")
    with pytest.raises(StoreUnavailableError):
        await store.set("rooms/r1", {"id": "r1"})
    with pytest.raises(StoreUnavailableError):
        await store.children("rooms")
    assert await store.ping() is False


async def test_session_round_trip_over_redis(redis_store):
    translator = FakeTranslator()
    ana = RoomSession(redis_store, translator)
    ben = RoomSession(redis_store, translator)
    room_id = await ana.join("Ana", "es", "Lobby")
    assert await ben.join("Ben", "en", "lobby") == room_id

    await ana.enter()
    message_id = await ana.send_message("Hola")
    await ana.wait_pending()

    stored = await MessageRepository(redis_store).get(room_id, message_id)
    assert stored.status == MessageStatus.TRANSLATED
    assert stored.translations == {"en": "en:Hola"}

    await _wait_for(lambda: message_id in ana.messages and ana.messages[message_id].is_translated)
    await ana.leave()
    assert len(ana.listeners) == 0
