"""룸 채팅 WebSocket 라우터.

REST로 입장한 참가자가 룸 이벤트를 실시간으로 받고 메시지/음성을 보내는
WebSocket 엔드포인트를 제공합니다.

서버 → 클라이언트:
    participants, messages          입장 직후 스냅샷 (한 번)
    participant_added               새 참가자
    message_added, message_changed  새 메시지 / 번역 완료
    message_sent                    내가 보낸 메시지 저장 완료
    state                           get_state 응답
    user_joined, user_left          다른 피어 접속/종료
    error                           요청 처리 실패

클라이언트 → 서버:
    send_message {text}
    voice {audio (base64), language?}
    get_state
"""

import base64
import binascii
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from starlette.websockets import WebSocketState

from modules.database import StoreUnavailableError
from modules.room import RoomSession
from . import deps

logger = logging.getLogger(__name__)

router = APIRouter()


async def broadcast_to_room(room_id: str, message: dict, exclude: list = None):
    """룸에 접속 중인 피어들에게 메시지를 보냅니다.

    전송에 실패한 피어는 레지스트리에서 제거합니다.

    Args:
        room_id: 룸 ID
        message: 전송할 메시지 딕셔너리
        exclude: 메시지를 받지 않을 peer_id 리스트
    """
    room_manager = deps._room_manager
    if room_manager is None:
        logger.error("룸 매니저가 초기화되지 않음")
        return

    exclude = exclude or []
    disconnected = []

    for peer in room_manager.get_room_peers(room_id):
        if peer.peer_id in exclude:
            continue
        try:
            await peer.websocket.send_json(message)
        except Exception as e:
            logger.error(f"피어 {peer.peer_id}에 브로드캐스트 중 오류: {e}")
            disconnected.append(peer.peer_id)

    for peer_id in disconnected:
        room_manager.leave_room(peer_id)


async def _send_error(websocket: WebSocket, message: str):
    await websocket.send_json({"type": "error", "data": {"message": message}})


@router.websocket("/ws/rooms/{room_id}")
async def room_websocket(
    websocket: WebSocket,
    room_id: str,
    participant_id: str = Query(...),
):
    """룸 채팅 WebSocket 엔드포인트.

    Args:
        websocket: FastAPI WebSocket 연결 객체
        room_id: 룸 ID
        participant_id: /api/rooms/join 응답의 participantId
    """
    if not deps.services_ready():
        logger.error("서비스가 초기화되지 않음")
        await websocket.close(code=1011, reason="Server not ready")
        return

    room_manager = deps._room_manager
    session = RoomSession(
        deps._store,
        deps._translator,
        deps._transcriber,
        on_event=websocket.send_json,
    )

    try:
        participant = await session.resume(room_id, participant_id)
    except LookupError as e:
        logger.warning(f"알 수 없는 참가자 접속 시도: {e}")
        await websocket.close(code=4004, reason="Unknown room or participant")
        return
    except StoreUnavailableError:
        await websocket.close(code=1011, reason="Room store unavailable")
        return

    await websocket.accept()
    logger.info(f"피어 {participant.name} ({participant.id}) 연결됨 → room {room_id}")

    room_manager.join_room(
        room_id, participant.id, participant.name, participant.lang,
        websocket, session=session, room_name=session.room.name,
    )

    try:
        await session.enter()
        await broadcast_to_room(
            room_id,
            {
                "type": "user_joined",
                "data": {
                    "peer_id": participant.id,
                    "nickname": participant.name,
                    "lang": participant.lang,
                    "peer_count": room_manager.get_room_count(room_id),
                }
            },
            exclude=[participant.id]
        )

        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                await _send_error(websocket, "Message must be a JSON object")
                continue
            message_type = data.get("type")
            payload = data.get("data") or {}
            if not isinstance(payload, dict):
                await _send_error(websocket, "Message data must be a JSON object")
                continue

            try:
                if message_type == "send_message":
                    text = payload.get("text", "")
                    if not isinstance(text, str):
                        await _send_error(websocket, "Message text must be a string")
                        continue
                    message_id = await session.send_message(text)
                    if message_id:
                        await websocket.send_json({
                            "type": "message_sent",
                            "data": {"messageId": message_id}
                        })

                elif message_type == "voice":
                    await _handle_voice(websocket, session, payload)

                elif message_type == "get_state":
                    await websocket.send_json({"type": "state", "data": session.state()})

                else:
                    logger.warning(f"알 수 없는 메시지 타입: {message_type}")
                    await _send_error(websocket, f"Unknown message type: {message_type}")

            except StoreUnavailableError as e:
                logger.error(f"피어 {participant.id} 요청 처리 실패 (스토어 사용 불가): {e}")
                await _send_error(websocket, "Room store unavailable")

    except WebSocketDisconnect:
        logger.info(f"피어 {participant.id} 연결 끊김")
    except Exception as e:
        logger.error(f"피어 {participant.id}의 WebSocket 연결 중 오류: {e}", exc_info=True)
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close(code=1011, reason="Internal error")
    finally:
        await session.leave()
        room_manager.leave_room(participant.id)
        await broadcast_to_room(
            room_id,
            {
                "type": "user_left",
                "data": {
                    "peer_id": participant.id,
                    "nickname": participant.name,
                    "peer_count": room_manager.get_room_count(room_id),
                }
            },
            exclude=[participant.id]
        )
        logger.info(f"피어 {participant.id} 정리 완료")


async def _handle_voice(websocket: WebSocket, session: RoomSession, payload: dict):
    """음성 메시지 처리."""
    try:
        audio = base64.b64decode(payload.get("audio") or "", validate=True)
    except (binascii.Error, TypeError, ValueError):
        await _send_error(websocket, "Invalid audio encoding")
        return

    message_id = await session.send_voice(audio, payload.get("language"))
    if message_id:
        await websocket.send_json({
            "type": "message_sent",
            "data": {"messageId": message_id}
        })
    else:
        await _send_error(websocket, "No speech recognized")
