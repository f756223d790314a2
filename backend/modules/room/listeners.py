"""세션별 구독 핸들 레지스트리.

(roomId, EventKind) 키마다 구독 해제 핸들 하나를 보관합니다. 이미 등록된
키를 다시 등록하면 아무 일도 하지 않으며, 룸 단위로 한 번에 해제합니다.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Tuple

from modules.database import Subscription

from .state import EventKind

logger = logging.getLogger(__name__)

ListenerKey = Tuple[str, EventKind]


class ListenerRegistry:
    """구독 핸들 저장소."""

    def __init__(self):
        self._handles: Dict[ListenerKey, Subscription] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, key: ListenerKey) -> bool:
        return key in self._handles

    def has(self, room_id: str, kind: EventKind) -> bool:
        return (room_id, kind) in self._handles

    def keys(self) -> List[ListenerKey]:
        return list(self._handles)

    async def add(
        self,
        room_id: str,
        kind: EventKind,
        factory: Callable[[], Awaitable[Subscription]],
    ) -> bool:
        """키가 없을 때만 factory로 구독을 만들어 등록합니다.

        Returns:
            bool: 새로 등록했으면 True, 이미 있었으면 False
        """
        key = (room_id, kind)
        if key in self._handles:
            logger.debug(f"[Session] 이미 등록된 리스너: {room_id}_{kind.value}")
            return False

        subscription = await factory()
        # factory를 기다리는 동안 같은 키가 등록됐으면 새 구독을 버림
        if key in self._handles:
            await subscription.close()
            return False

        self._handles[key] = subscription
        return True

    async def release(self, room_id: str) -> int:
        """룸의 모든 핸들을 해제하고 해제한 개수를 반환합니다."""
        keys = [key for key in self._handles if key[0] == room_id]
        for key in keys:
            subscription = self._handles.pop(key)
            await subscription.close()
        if keys:
            logger.debug(f"[Session] 리스너 해제: room {room_id} ({len(keys)}개)")
        return len(keys)

    async def release_all(self) -> int:
        count = 0
        for room_id in {key[0] for key in self._handles}:
            count += await self.release(room_id)
        return count
