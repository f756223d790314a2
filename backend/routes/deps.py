"""공유 의존성 모듈.

라우터들이 공통으로 사용하는 서비스 인스턴스를 정의합니다.
서비스 인스턴스는 app.py의 lifespan에서 init_services()로 설정됩니다.
"""

import logging
from typing import Optional, TYPE_CHECKING

from fastapi import HTTPException

if TYPE_CHECKING:
    from modules.database import RoomStore
    from modules.room import RoomManager
    from modules.stt import TranscriptionService
    from modules.translation import TranslationService

logger = logging.getLogger(__name__)

# 글로벌 서비스 참조 (app.py에서 설정됨)
_store: Optional["RoomStore"] = None
_translator: Optional["TranslationService"] = None
_transcriber: Optional["TranscriptionService"] = None
_room_manager: Optional["RoomManager"] = None


def init_services(
    store: "RoomStore",
    translator: "TranslationService",
    transcriber: "TranscriptionService",
    room_manager: "RoomManager",
):
    """서비스 인스턴스를 초기화합니다.

    Args:
        store: 룸 스토어
        translator: 번역 서비스
        transcriber: 음성 인식 서비스
        room_manager: 접속 피어 레지스트리
    """
    global _store, _translator, _transcriber, _room_manager
    _store = store
    _translator = translator
    _transcriber = transcriber
    _room_manager = room_manager
    logger.info(f"라우터 서비스 초기화 완료 (store={store.backend})")


def services_ready() -> bool:
    return _store is not None and _translator is not None and _room_manager is not None


def get_store() -> "RoomStore":
    if _store is None:
        raise HTTPException(status_code=503, detail="Store not initialized")
    return _store


def get_translator() -> "TranslationService":
    if _translator is None:
        raise HTTPException(status_code=503, detail="Translation service not initialized")
    return _translator


def get_transcriber() -> "TranscriptionService":
    if _transcriber is None:
        raise HTTPException(status_code=503, detail="Transcription service not initialized")
    return _transcriber


def get_room_manager() -> "RoomManager":
    if _room_manager is None:
        raise HTTPException(status_code=503, detail="Room manager not initialized")
    return _room_manager
