"""룸 스토어 모듈.

룸/참가자/메시지를 경로 기반으로 저장하고 자식 추가/변경 이벤트를
구독자에게 전달합니다. Redis(redis-py asyncio) 백엔드와 인메모리 백엔드를
제공합니다.

주요 기능:
    - Redis 연결 관리
    - RoomStore 인터페이스 (get/set/update/push/create_if_absent/children/subscribe)
    - 시간 순 push ID 및 서버 타임스탬프
    - 룸/참가자/메시지 레포지토리
"""

from .config import StoreConfig, get_store_config
from .store import (
    SERVER_TIMESTAMP,
    StoreError,
    StoreUnavailableError,
    ChildEvent,
    Subscription,
    RoomStore,
    generate_push_id,
)
from .memory_store import MemoryRoomStore
from .redis_connection import RedisManager, get_redis_manager
from .redis_store import RedisRoomStore
from .repository import (
    RoomRepository,
    ParticipantRepository,
    MessageRepository,
    normalize_room_name,
)

__all__ = [
    "StoreConfig",
    "get_store_config",
    "SERVER_TIMESTAMP",
    "StoreError",
    "StoreUnavailableError",
    "ChildEvent",
    "Subscription",
    "RoomStore",
    "generate_push_id",
    "MemoryRoomStore",
    "RedisManager",
    "get_redis_manager",
    "RedisRoomStore",
    "RoomRepository",
    "ParticipantRepository",
    "MessageRepository",
    "normalize_room_name",
]
