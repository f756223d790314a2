"""룸 스토어 공통 정의.

룸/참가자/메시지 레코드를 경로 기반 키-값으로 저장하고, 자식 추가/변경
이벤트를 구독자에게 밀어주는 스토어의 추상 인터페이스입니다.

경로 규칙:
    - rooms/{roomId}
    - room_names/{quotedName}
    - participants/{roomId}/{participantId}
    - messages/{roomId}/{messageId}

마지막 세그먼트가 자식 키, 그 앞이 부모(컬렉션) 경로입니다.

Classes:
    RoomStore: 스토어 추상 클래스 (memory_store, redis_store 구현)
    Subscription: 구독 해제 핸들
    ChildEvent: 구독 이벤트 종류
    PushIdGenerator: 시간 순 정렬되는 push ID 생성기
"""

import inspect
import logging
import secrets
import threading
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# 스토어가 저장 시점에 서버 시각(ms)으로 치환하는 값
SERVER_TIMESTAMP: Dict[str, str] = {".sv": "timestamp"}

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"

StoreCallback = Callable[[Dict[str, Any]], Union[Awaitable[None], None]]


class StoreError(Exception):
    """스토어 작업 실패."""


class StoreUnavailableError(StoreError):
    """스토어에 연결할 수 없음 (읽기/쓰기 불가)."""


class ChildEvent(str, Enum):
    """부모 경로에 대한 자식 이벤트 종류."""

    CHILD_ADDED = "child_added"
    CHILD_CHANGED = "child_changed"


class PushIdGenerator:
    """시간 순으로 정렬되는 20자 식별자 생성기.

    앞 8자는 밀리초 타임스탬프, 뒤 12자는 난수입니다. 같은 밀리초 안에서는
    난수부를 1씩 증가시켜 사전순 정렬이 생성 순서와 같도록 유지합니다.
    """

    def __init__(self):
        self._last_time = 0
        self._last_rand: List[int] = [0] * 12
        self._lock = threading.Lock()

    def __call__(self, now_ms: Optional[int] = None) -> str:
        now = int(time.time() * 1000) if now_ms is None else now_ms
        with self._lock:
            # 시계가 뒤로 가도 정렬 순서는 유지
            now = max(now, self._last_time)
            duplicate = now == self._last_time
            self._last_time = now

            time_chars = []
            remaining = now
            for _ in range(8):
                time_chars.append(PUSH_CHARS[remaining % 64])
                remaining //= 64
            time_part = "".join(reversed(time_chars))

            if not duplicate:
                self._last_rand = [secrets.randbelow(64) for _ in range(12)]
            else:
                i = 11
                while i > 0 and self._last_rand[i] == 63:
                    self._last_rand[i] = 0
                    i -= 1
                self._last_rand[i] = (self._last_rand[i] + 1) % 64

            return time_part + "".join(PUSH_CHARS[r] for r in self._last_rand)


generate_push_id = PushIdGenerator()


def split_path(path: str) -> Tuple[str, str]:
    """경로를 (부모 경로, 자식 키)로 나눕니다.

    Raises:
        StoreError: 자식 키가 없는 경로
    """
    parent, sep, key = path.strip("/").rpartition("/")
    if not sep or not parent or not key:
        raise StoreError(f"invalid child path: {path!r}")
    return parent, key


def resolve_server_values(value: Dict[str, Any], now_ms: int) -> Dict[str, Any]:
    """SERVER_TIMESTAMP 값을 서버 시각으로 치환한 사본을 반환합니다."""
    return {
        k: (now_ms if v == SERVER_TIMESTAMP else v)
        for k, v in value.items()
    }


def merge_record(current: Optional[Dict[str, Any]], patch: Dict[str, Any]) -> Dict[str, Any]:
    """레코드에 패치를 병합합니다. dict 값(예: translations)은 한 단계 더 병합."""
    merged = dict(current or {})
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def sort_children(records: List[Dict[str, Any]], order_by: Optional[str] = None) -> List[Dict[str, Any]]:
    """자식 레코드를 정렬합니다. 기본은 id(push ID) 순."""
    if order_by is None:
        return sorted(records, key=lambda r: str(r.get("id", "")))
    # 정렬 필드가 없는 레코드가 먼저 오고, 같은 값이면 id 순
    return sorted(
        records,
        key=lambda r: (r.get(order_by) is not None, r.get(order_by) or 0, str(r.get("id", ""))),
    )


async def invoke_callback(callback: StoreCallback, record: Dict[str, Any]) -> None:
    """동기/비동기 콜백을 모두 호출합니다. 콜백 오류는 로그만 남깁니다."""
    try:
        result = callback(record)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.error(f"[Store] 구독 콜백 실행 실패: {e}", exc_info=True)


class Subscription:
    """구독 해제 핸들.

    ``close()``는 여러 번 호출해도 한 번만 해제합니다.
    """

    def __init__(self, closer: Callable[[], Awaitable[None]], description: str = ""):
        self._closer = closer
        self._closed = False
        self.description = description

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._closer()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Subscription {self.description} {state}>"


class RoomStore(ABC):
    """경로 기반 키-값 스토어 + 자식 이벤트 구독.

    모든 쓰기는 자식 키가 새로 생기면 CHILD_ADDED, 기존 키면 CHILD_CHANGED
    이벤트를 해당 부모 경로의 구독자에게 전체 레코드와 함께 전달합니다.
    """

    backend: str = "abstract"

    @abstractmethod
    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        """단일 레코드를 조회합니다. 없으면 None."""

    @abstractmethod
    async def set(self, path: str, value: Dict[str, Any]) -> None:
        """레코드를 통째로 저장합니다."""

    @abstractmethod
    async def update(self, path: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """레코드에 패치를 병합하고 병합된 레코드를 반환합니다."""

    @abstractmethod
    async def create_if_absent(self, path: str, value: Dict[str, Any]) -> bool:
        """키가 없을 때만 저장합니다 (compare-and-set). 저장했으면 True."""

    @abstractmethod
    async def children(self, parent: str, order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        """부모 경로의 모든 자식 레코드를 정렬해 반환합니다."""

    @abstractmethod
    async def subscribe(self, parent: str, event: ChildEvent, callback: StoreCallback) -> Subscription:
        """부모 경로의 자식 이벤트를 구독합니다. 구독 이후 이벤트만 전달됩니다."""

    async def push(self, parent: str, value: Dict[str, Any]) -> str:
        """새 push ID로 자식 레코드를 추가하고 ID를 반환합니다.

        레코드의 ``id`` 필드에도 같은 ID를 기록합니다.
        """
        key = generate_push_id()
        await self.set(f"{parent}/{key}", {**value, "id": key})
        return key

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        """스토어가 소유한 리소스를 정리합니다."""


__all__ = [
    "SERVER_TIMESTAMP",
    "StoreError",
    "StoreUnavailableError",
    "ChildEvent",
    "PushIdGenerator",
    "generate_push_id",
    "split_path",
    "resolve_server_values",
    "merge_record",
    "sort_children",
    "invoke_callback",
    "Subscription",
    "RoomStore",
]
