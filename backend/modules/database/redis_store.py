"""Redis 룸 스토어.

redis-py(asyncio)로 룸/참가자/메시지를 저장하고 Pub/Sub 채널로 변경
이벤트를 전달합니다.

Key Layout:
    - {prefix}:{parent}          Hash, field=자식 키, value=JSON 레코드
    - {prefix}:events:{parent}   Pub/Sub 채널, {"event", "key", "value"} JSON

서버 시각은 Redis TIME 명령으로 얻으므로 여러 백엔드 인스턴스가 같은
시계를 공유합니다.

Examples:
    >>> from modules.database import get_redis_manager, RedisRoomStore
    >>> redis_mgr = get_redis_manager()
    >>> await redis_mgr.initialize()
    >>> store = RedisRoomStore(redis_mgr.client)
    >>> await store.set("rooms/abc", {"id": "abc", "name": "lobby"})
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager, suppress
from typing import Any, Dict, List, Optional

from redis import exceptions as redis_exceptions

from .store import (
    ChildEvent,
    RoomStore,
    StoreCallback,
    StoreUnavailableError,
    Subscription,
    invoke_callback,
    merge_record,
    resolve_server_values,
    sort_children,
    split_path,
)

logger = logging.getLogger(__name__)

# Pub/Sub 메시지 대기 타임아웃 (초)
LISTEN_POLL_TIMEOUT = 1.0


class RedisRoomStore(RoomStore):
    """Redis Hash + Pub/Sub 기반 룸 스토어.

    Attributes:
        client: redis.asyncio 클라이언트 (decode_responses=True 권장)
        key_prefix: 모든 키/채널 앞에 붙는 접두사
    """

    backend = "redis"

    def __init__(self, client, key_prefix: str = "polyglot"):
        self.client = client
        self.key_prefix = key_prefix
        self._subscriptions: List[Subscription] = []

    def _hash_key(self, parent: str) -> str:
        return f"{self.key_prefix}:{parent}"

    def _channel(self, parent: str) -> str:
        return f"{self.key_prefix}:events:{parent}"

    @asynccontextmanager
    async def _guard(self, operation: str):
        """연결 오류를 StoreUnavailableError로 변환합니다."""
        try:
            yield
        except (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError) as e:
            logger.error(f"[Store] Redis {operation} 실패: {e}")
            raise StoreUnavailableError(f"redis unavailable during {operation}: {e}") from e

    async def _server_time_ms(self) -> int:
        seconds, micros = await self.client.time()
        return int(seconds) * 1000 + int(micros) // 1000

    @staticmethod
    def _decode(raw) -> Optional[Dict[str, Any]]:
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)

    async def _publish(self, parent: str, event: ChildEvent, key: str, record: Dict[str, Any]) -> None:
        payload = json.dumps(
            {"event": event.value, "key": key, "value": record},
            ensure_ascii=False,
        )
        await self.client.publish(self._channel(parent), payload)

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        parent, key = split_path(path)
        async with self._guard("get"):
            raw = await self.client.hget(self._hash_key(parent), key)
        return self._decode(raw)

    async def set(self, path: str, value: Dict[str, Any]) -> None:
        parent, key = split_path(path)
        async with self._guard("set"):
            record = resolve_server_values(value, await self._server_time_ms())
            added = await self.client.hset(
                self._hash_key(parent), key, json.dumps(record, ensure_ascii=False)
            )
            event = ChildEvent.CHILD_ADDED if added else ChildEvent.CHILD_CHANGED
            await self._publish(parent, event, key, record)

    async def update(self, path: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        parent, key = split_path(path)
        hash_key = self._hash_key(parent)
        async with self._guard("update"):
            resolved = resolve_server_values(patch, await self._server_time_ms())
            async with self.client.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(hash_key)
                        current = self._decode(await pipe.hget(hash_key, key))
                        merged = merge_record(current, resolved)
                        pipe.multi()
                        pipe.hset(hash_key, key, json.dumps(merged, ensure_ascii=False))
                        await pipe.execute()
                        break
                    except redis_exceptions.WatchError:
                        logger.debug(f"[Store] 동시 수정 감지, 재시도: {path}")
                        continue
            event = ChildEvent.CHILD_CHANGED if current is not None else ChildEvent.CHILD_ADDED
            await self._publish(parent, event, key, merged)
        return merged

    async def create_if_absent(self, path: str, value: Dict[str, Any]) -> bool:
        parent, key = split_path(path)
        async with self._guard("create_if_absent"):
            record = resolve_server_values(value, await self._server_time_ms())
            created = await self.client.hsetnx(
                self._hash_key(parent), key, json.dumps(record, ensure_ascii=False)
            )
            if created:
                await self._publish(parent, ChildEvent.CHILD_ADDED, key, record)
        return bool(created)

    async def children(self, parent: str, order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        parent = parent.strip("/")
        async with self._guard("children"):
            raw_map = await self.client.hgetall(self._hash_key(parent))
        records = [self._decode(raw) for raw in raw_map.values()]
        return sort_children([r for r in records if r is not None], order_by)

    async def subscribe(self, parent: str, event: ChildEvent, callback: StoreCallback) -> Subscription:
        parent = parent.strip("/")
        event = ChildEvent(event)
        channel = self._channel(parent)

        async with self._guard("subscribe"):
            pubsub = self.client.pubsub()
            await pubsub.subscribe(channel)
            # 구독 확인 응답을 소비해 이후 발행 메시지를 놓치지 않도록 함
            await pubsub.get_message(timeout=LISTEN_POLL_TIMEOUT)

        task = asyncio.create_task(self._listen(pubsub, event, callback))

        async def _close():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            try:
                await pubsub.unsubscribe(channel)
                await pubsub.aclose()
            except redis_exceptions.RedisError as e:
                logger.warning(f"[Store] 구독 해제 중 오류 (무시): {e}")
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
            logger.debug(f"[Store] 구독 해제: {parent} ({event.value})")

        subscription = Subscription(_close, description=f"{parent}:{event.value}")
        self._subscriptions.append(subscription)
        logger.debug(f"[Store] 구독 등록: {parent} ({event.value})")
        return subscription

    async def _listen(self, pubsub, event: ChildEvent, callback: StoreCallback) -> None:
        """Pub/Sub 메시지를 읽어 이벤트 종류가 맞는 것만 콜백에 전달합니다."""
        while True:
            try:
                message = await pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=LISTEN_POLL_TIMEOUT
                )
            except (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError) as e:
                logger.error(f"[Store] Pub/Sub 수신 실패: {e}")
                await asyncio.sleep(LISTEN_POLL_TIMEOUT)
                continue

            if message is None or message.get("type") != "message":
                continue

            try:
                payload = json.loads(message["data"])
            except (TypeError, ValueError) as e:
                logger.warning(f"[Store] 잘못된 이벤트 페이로드 무시: {e}")
                continue

            if payload.get("event") != event.value:
                continue
            await invoke_callback(callback, payload.get("value") or {})

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except redis_exceptions.RedisError:
            return False

    async def close(self) -> None:
        """열린 구독을 모두 해제합니다. 클라이언트 연결은 RedisManager가 관리합니다."""
        for subscription in list(self._subscriptions):
            await subscription.close()
