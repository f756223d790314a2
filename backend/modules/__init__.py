"""Backend modules package.

다국어 자동 번역 채팅 서비스의 핵심 모듈을 포함합니다.

Modules:
    shared: 지원 언어 테이블, Room/Participant/Message DTO
    database: 룸 스토어 (Redis / 인메모리) 및 레포지토리
    translation: LangChain 기반 번역 어댑터
    stt: OpenAI Whisper 음성 인식
    room: 룸 세션, 구독 레지스트리, 접속 피어 관리
"""

from .shared import Room, Participant, Message, MessageStatus, SUPPORTED_LANGUAGES
from .database import (
    RoomStore,
    MemoryRoomStore,
    RedisRoomStore,
    RedisManager,
    get_redis_manager,
    StoreError,
    StoreUnavailableError,
)
from .translation import TranslationService, get_translation_service
from .stt import TranscriptionService, get_transcription_service
from .room import RoomSession, RoomManager, ListenerRegistry

__all__ = [
    # Shared DTOs
    "Room",
    "Participant",
    "Message",
    "MessageStatus",
    "SUPPORTED_LANGUAGES",
    # Store
    "RoomStore",
    "MemoryRoomStore",
    "RedisRoomStore",
    "RedisManager",
    "get_redis_manager",
    "StoreError",
    "StoreUnavailableError",
    # Services
    "TranslationService",
    "get_translation_service",
    "TranscriptionService",
    "get_transcription_service",
    # Room
    "RoomSession",
    "RoomManager",
    "ListenerRegistry",
]
