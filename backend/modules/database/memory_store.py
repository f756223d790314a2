"""인메모리 룸 스토어.

Redis를 사용할 수 없을 때의 대체 백엔드이자 테스트용 백엔드입니다.
프로세스가 종료되면 데이터가 사라집니다.

구독 콜백은 쓰기 작업 안에서 순서대로 await 되므로, 쓰기가 끝나면 모든
구독자가 이벤트를 처리한 상태입니다.
"""

import copy
import logging
import time
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from .store import (
    ChildEvent,
    RoomStore,
    StoreCallback,
    Subscription,
    invoke_callback,
    merge_record,
    resolve_server_values,
    sort_children,
    split_path,
)

logger = logging.getLogger(__name__)


class MemoryRoomStore(RoomStore):
    """dict 기반 룸 스토어.

    Attributes:
        _data: 부모 경로 → {자식 키: 레코드}
        _listeners: (부모 경로, 이벤트) → 콜백 리스트
    """

    backend = "memory"

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self._listeners: Dict[Tuple[str, ChildEvent], List[StoreCallback]] = defaultdict(list)

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    def listener_count(self, parent: Optional[str] = None) -> int:
        """등록된 콜백 수. parent를 주면 해당 경로만 셉니다."""
        return sum(
            len(callbacks)
            for (path, _), callbacks in self._listeners.items()
            if parent is None or path == parent
        )

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        parent, key = split_path(path)
        record = self._data.get(parent, {}).get(key)
        return copy.deepcopy(record) if record is not None else None

    async def set(self, path: str, value: Dict[str, Any]) -> None:
        parent, key = split_path(path)
        record = resolve_server_values(value, self._now_ms())
        existed = key in self._data[parent]
        self._data[parent][key] = copy.deepcopy(record)
        event = ChildEvent.CHILD_CHANGED if existed else ChildEvent.CHILD_ADDED
        await self._emit(parent, event, record)

    async def update(self, path: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        parent, key = split_path(path)
        current = self._data[parent].get(key)
        merged = merge_record(current, resolve_server_values(patch, self._now_ms()))
        self._data[parent][key] = copy.deepcopy(merged)
        event = ChildEvent.CHILD_CHANGED if current is not None else ChildEvent.CHILD_ADDED
        await self._emit(parent, event, merged)
        return copy.deepcopy(merged)

    async def create_if_absent(self, path: str, value: Dict[str, Any]) -> bool:
        parent, key = split_path(path)
        # 검사와 저장 사이에 await가 없으므로 이벤트 루프 안에서 원자적
        if key in self._data[parent]:
            return False
        record = resolve_server_values(value, self._now_ms())
        self._data[parent][key] = copy.deepcopy(record)
        await self._emit(parent, ChildEvent.CHILD_ADDED, record)
        return True

    async def children(self, parent: str, order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        records = [copy.deepcopy(r) for r in self._data.get(parent.strip("/"), {}).values()]
        return sort_children(records, order_by)

    async def subscribe(self, parent: str, event: ChildEvent, callback: StoreCallback) -> Subscription:
        listener_key = (parent.strip("/"), ChildEvent(event))
        self._listeners[listener_key].append(callback)
        logger.debug(f"[Store] 구독 등록: {listener_key[0]} ({listener_key[1].value})")

        async def _close():
            callbacks = self._listeners.get(listener_key, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._listeners.pop(listener_key, None)
            logger.debug(f"[Store] 구독 해제: {listener_key[0]} ({listener_key[1].value})")

        return Subscription(_close, description=f"{listener_key[0]}:{listener_key[1].value}")

    async def _emit(self, parent: str, event: ChildEvent, record: Dict[str, Any]) -> None:
        for callback in list(self._listeners.get((parent, event), [])):
            await invoke_callback(callback, copy.deepcopy(record))

    async def close(self) -> None:
        self._listeners.clear()
