"""룸 스토어 레포지토리 모듈.

스토어 경로 규칙을 감추고 룸/참가자/메시지 레코드에 대한 작업을 제공합니다.

Classes:
    RoomRepository: 룸 조회/생성 (이름 기준 유일)
    ParticipantRepository: 참가자 추가/조회
    MessageRepository: 메시지 추가, 번역 패치, 목록 조회
"""

import logging
from typing import Dict, List, Optional
from urllib.parse import quote

from modules.shared import Message, MessageStatus, Participant, Room

from .store import SERVER_TIMESTAMP, RoomStore, generate_push_id

logger = logging.getLogger(__name__)

ROOMS = "rooms"
ROOM_NAMES = "room_names"
PARTICIPANTS = "participants"
MESSAGES = "messages"


def normalize_room_name(name: str) -> str:
    """룸 이름 정규화 (앞뒤 공백 제거 + 소문자)."""
    return (name or "").strip().lower()


def participants_path(room_id: str) -> str:
    return f"{PARTICIPANTS}/{room_id}"


def messages_path(room_id: str) -> str:
    return f"{MESSAGES}/{room_id}"


class RoomRepository:
    """룸 레코드 저장소."""

    def __init__(self, store: RoomStore):
        self.store = store

    async def get_room(self, room_id: str) -> Optional[Room]:
        record = await self.store.get(f"{ROOMS}/{room_id}")
        return Room.from_record(record) if record else None

    async def find_room_id(self, name: str) -> Optional[str]:
        """정규화된 이름으로 룸 ID를 찾습니다."""
        normalized = normalize_room_name(name)
        if not normalized:
            return None
        record = await self.store.get(f"{ROOM_NAMES}/{quote(normalized, safe='')}")
        return record.get("id") if record else None

    async def get_or_create_room(self, name: str) -> Room:
        """이름에 해당하는 룸을 반환하고, 없으면 생성합니다.

        이름 인덱스를 compare-and-set으로 선점합니다. 동시에 같은 이름으로
        생성하려는 쪽은 선점에 실패하고 먼저 생성된 룸 ID를 사용합니다.

        Args:
            name: 룸 이름 (대소문자/앞뒤 공백 무시)

        Returns:
            Room: 기존 또는 새로 만든 룸

        Raises:
            ValueError: 빈 룸 이름
        """
        normalized = normalize_room_name(name)
        if not normalized:
            raise ValueError("room name must not be empty")

        index_path = f"{ROOM_NAMES}/{quote(normalized, safe='')}"
        existing = await self.store.get(index_path)
        if existing:
            room = await self.get_room(existing["id"])
            if room is not None:
                return room
            room_id = existing["id"]
        else:
            candidate_id = generate_push_id()
            created = await self.store.create_if_absent(index_path, {"id": candidate_id})
            if created:
                room_id = candidate_id
                logger.info(f"[Store] 룸 생성: '{normalized}' (id: {room_id})")
            else:
                winner = await self.store.get(index_path)
                room_id = winner["id"]
                logger.info(f"[Store] 동시 생성 감지, 기존 룸 사용: '{normalized}' (id: {room_id})")

        room = Room(
            id=room_id,
            name=normalized,
            participants_ref=participants_path(room_id),
            messages_ref=messages_path(room_id),
        )
        # 같은 내용이므로 경쟁하는 쪽이 다시 써도 결과는 동일
        await self.store.set(f"{ROOMS}/{room_id}", room.to_record())
        return room


class ParticipantRepository:
    """참가자 레코드 저장소."""

    def __init__(self, store: RoomStore):
        self.store = store

    async def add(self, room_id: str, name: str, lang: str) -> Participant:
        """참가자를 추가합니다. 같은 이름이어도 매번 새 레코드가 생깁니다."""
        participant_id = await self.store.push(
            participants_path(room_id),
            {"name": name, "lang": lang, "joinedAt": SERVER_TIMESTAMP},
        )
        record = await self.store.get(f"{participants_path(room_id)}/{participant_id}")
        logger.info(f"[Store] 참가자 추가: {name} ({lang}) → room {room_id}")
        return Participant.from_record(record)

    async def get(self, room_id: str, participant_id: str) -> Optional[Participant]:
        record = await self.store.get(f"{participants_path(room_id)}/{participant_id}")
        return Participant.from_record(record) if record else None

    async def list(self, room_id: str) -> List[Participant]:
        records = await self.store.children(participants_path(room_id))
        return [Participant.from_record(r) for r in records]


class MessageRepository:
    """메시지 레코드 저장소."""

    def __init__(self, store: RoomStore):
        self.store = store

    async def add(self, room_id: str, text: str, source_language: str, sender_id: str) -> str:
        """번역 전(PENDING) 메시지를 저장하고 ID를 반환합니다."""
        return await self.store.push(
            messages_path(room_id),
            {
                "originalText": text,
                "sourceLanguage": source_language,
                "senderId": sender_id,
                "translations": {},
                "timestamp": SERVER_TIMESTAMP,
                "status": MessageStatus.PENDING.value,
            },
        )

    async def update_translations(
        self, room_id: str, message_id: str, translations: Dict[str, str]
    ) -> Message:
        """번역 결과를 패치하고 TRANSLATED 상태로 바꿉니다."""
        record = await self.store.update(
            f"{messages_path(room_id)}/{message_id}",
            {"translations": dict(translations), "status": MessageStatus.TRANSLATED.value},
        )
        return Message.from_record(record)

    async def get(self, room_id: str, message_id: str) -> Optional[Message]:
        record = await self.store.get(f"{messages_path(room_id)}/{message_id}")
        return Message.from_record(record) if record else None

    async def list(self, room_id: str) -> List[Message]:
        """타임스탬프 순으로 정렬된 메시지 목록."""
        records = await self.store.children(messages_path(room_id), order_by="timestamp")
        return [Message.from_record(r) for r in records]
