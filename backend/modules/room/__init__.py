"""룸 모듈.

룸 입장, 구독 수명 주기, 메시지 전송/번역 패치, 접속 피어 관리를 담당합니다.

Classes:
    RoomSession: 참가자 한 명의 룸 세션
    ListenerRegistry: (roomId, EventKind) → 구독 핸들
    RoomManager: 룸별 접속 피어 레지스트리
"""

from .state import EventKind, room_languages, fanout_targets, translation_patch
from .listeners import ListenerRegistry
from .session import RoomSession, TRANSLATING_PLACEHOLDER
from .manager import Peer, RoomManager

__all__ = [
    "EventKind",
    "room_languages",
    "fanout_targets",
    "translation_patch",
    "ListenerRegistry",
    "RoomSession",
    "TRANSLATING_PLACEHOLDER",
    "Peer",
    "RoomManager",
]
