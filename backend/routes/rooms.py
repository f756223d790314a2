"""룸 REST API 라우터.

룸 입장, 룸/참가자/메시지 조회, 지원 언어 목록, 음성 인식 엔드포인트를
제공합니다. 실시간 이벤트는 chat.py의 WebSocket으로 전달됩니다.
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from modules.database import (
    MessageRepository,
    ParticipantRepository,
    RoomRepository,
    StoreUnavailableError,
)
from modules.room import RoomSession
from modules.shared import AUTO_DETECT, SUPPORTED_LANGUAGES, is_supported_language
from .deps import (
    get_room_manager,
    get_store,
    get_transcriber,
    get_translator,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["rooms"])


class JoinRoomRequest(BaseModel):
    """룸 입장 요청 모델."""
    name: str = Field(..., description="표시 이름")
    language: str = Field(..., description="참가자 언어 코드")
    room: str = Field(..., description="룸 이름")


@router.get("/languages")
async def get_languages():
    """지원 언어 목록을 반환합니다."""
    return {
        "languages": [
            {"code": code, "name": name} for code, name in SUPPORTED_LANGUAGES.items()
        ]
    }


@router.post("/rooms/join")
async def join_room(
    request: JoinRoomRequest,
    store=Depends(get_store),
    translator=Depends(get_translator),
):
    """룸에 입장합니다. 같은 이름의 룸이 없으면 생성합니다.

    반환된 roomId/participantId로 /ws/rooms/{roomId} WebSocket에 접속합니다.

    Returns:
        dict: {"roomId", "participantId", "room"}

    Raises:
        HTTPException: 422 (잘못된 입력), 503 (스토어 사용 불가)
    """
    session = RoomSession(store, translator)
    try:
        room_id = await session.join(request.name, request.language, request.room)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreUnavailableError as e:
        logger.error(f"[Rooms] 입장 실패 (스토어 사용 불가): {e}")
        raise HTTPException(status_code=503, detail="Room store unavailable")

    return {
        "roomId": room_id,
        "participantId": session.participant.id,
        "room": session.room.to_record(),
    }


@router.get("/rooms")
async def get_rooms(
    room_manager=Depends(get_room_manager),
):
    """접속 중인 피어가 있는 룸 목록을 조회합니다."""
    return {"rooms": room_manager.get_room_list()}


@router.get("/rooms/{room_id}")
async def get_room(
    room_id: str,
    store=Depends(get_store),
    room_manager=Depends(get_room_manager),
):
    """룸 정보를 조회합니다."""
    try:
        room = await RoomRepository(store).get_room(room_id)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="Room store unavailable")
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return {"room": room.to_record(), "online": room_manager.get_room_count(room_id)}


@router.get("/rooms/{room_id}/participants")
async def get_participants(
    room_id: str,
    store=Depends(get_store),
):
    """룸의 참가자 목록을 조회합니다 (입장 기록 전체)."""
    try:
        participants = await ParticipantRepository(store).list(room_id)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="Room store unavailable")
    return {
        "participants": [p.to_record() for p in participants],
        "count": len(participants),
    }


@router.get("/rooms/{room_id}/messages")
async def get_messages(
    room_id: str,
    store=Depends(get_store),
):
    """룸의 메시지를 시간 순으로 조회합니다."""
    try:
        messages = await MessageRepository(store).list(room_id)
    except StoreUnavailableError:
        raise HTTPException(status_code=503, detail="Room store unavailable")
    return {
        "messages": [m.to_record() for m in messages],
        "count": len(messages),
    }


@router.post("/transcribe")
async def transcribe_audio(
    audio: UploadFile = File(...),
    language: str = Form(AUTO_DETECT),
    transcriber=Depends(get_transcriber),
):
    """녹음된 발화를 텍스트로 변환합니다.

    Args:
        audio: 오디오 파일 (multipart)
        language: 언어 힌트 ("auto"면 자동 감지)

    Returns:
        dict: {"text": 인식 결과} (실패 시 빈 문자열)
    """
    if language != AUTO_DETECT and not is_supported_language(language):
        raise HTTPException(status_code=422, detail=f"Unsupported language: {language}")
    data = await audio.read()
    text = await transcriber.transcribe(data, language)
    return {"text": text}
