"""룸 세션 관리 모듈.

한 참가자가 룸에 입장해 메시지를 주고받는 흐름 전체를 담당합니다.

주요 기능:
    - 룸 입장/생성 (이름 기준 유일, 입장마다 참가자 레코드 생성)
    - 구독 등록/해제 (참가자/메시지 스냅샷 + 추가/변경 이벤트)
    - 메시지 전송: 번역 전 상태로 먼저 저장 후, 백그라운드 번역 결과를 패치
    - 음성 전송: 음성 인식 결과를 텍스트 메시지로 전송
    - 룸 언어 집합 유지 (참가자 이벤트마다 재계산)

Message Lifecycle:
    1. 빈 입력 (공백만)         → 저장하지 않음
    2. 저장 (status=pending)   → translations = {}
    3. 번역 (백그라운드 태스크) → 보낸 사람 언어 → 룸의 다른 언어들
    4. 패치 (status=translated) → 이후 변경 없음

Examples:
    >>> session = RoomSession(store, translator, transcriber, on_event=print)
    >>> room_id = await session.join("Ana", "es", "Lobby")
    >>> async with session:
    ...     await session.send_message("Hola a todos")
    ...     await session.wait_pending()
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Set

from pydantic import ValidationError

from modules.database import (
    ChildEvent,
    MessageRepository,
    ParticipantRepository,
    RoomRepository,
    RoomStore,
    StoreError,
    Subscription,
)
from modules.database.repository import messages_path, participants_path
from modules.shared import Message, Participant, Room, is_supported_language

from .listeners import ListenerRegistry
from .state import EventKind, fanout_targets, room_languages, translation_patch

logger = logging.getLogger(__name__)

# 보는 사람 언어의 번역이 아직 없을 때 표시하는 문구
TRANSLATING_PLACEHOLDER = "translating…"

EventHandler = Callable[[Dict[str, Any]], Any]


async def _noop() -> None:
    return None


class RoomSession:
    """참가자 한 명의 룸 세션.

    Attributes:
        store: 룸 스토어
        translator: ``translate(text, source, targets)`` 를 제공하는 번역 서비스
        transcriber: ``transcribe(audio, language)`` 를 제공하는 음성 인식 서비스
        room: 입장한 룸
        participant: 이 세션의 참가자
        participants: 참가자 ID → Participant (구독으로 유지되는 미러)
        messages: 메시지 ID → Message (구독으로 유지되는 미러)
        listeners: (roomId, EventKind) → 구독 핸들
    """

    def __init__(
        self,
        store: RoomStore,
        translator,
        transcriber=None,
        on_event: Optional[EventHandler] = None,
    ):
        self.store = store
        self.translator = translator
        self.transcriber = transcriber
        self.on_event = on_event

        self.room_repo = RoomRepository(store)
        self.participant_repo = ParticipantRepository(store)
        self.message_repo = MessageRepository(store)

        self.room: Optional[Room] = None
        self.participant: Optional[Participant] = None
        self.participants: Dict[str, Participant] = {}
        self.messages: Dict[str, Message] = {}
        self.listeners = ListenerRegistry()

        self._languages: FrozenSet[str] = frozenset()
        self._pending: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # 입장
    # ------------------------------------------------------------------

    async def join(self, display_name: str, language: str, room_name: str) -> str:
        """룸에 입장합니다. 룸이 없으면 생성합니다.

        Args:
            display_name: 표시 이름
            language: 참가자 언어 코드 (지원 언어)
            room_name: 룸 이름 (대소문자 무시)

        Returns:
            str: 룸 ID

        Raises:
            ValueError: 빈 이름/룸 이름 또는 미지원 언어
            StoreUnavailableError: 스토어 연결 불가
        """
        name = (display_name or "").strip()
        if not name:
            raise ValueError("display name must not be empty")
        if not (room_name or "").strip():
            raise ValueError("room name must not be empty")
        if not is_supported_language(language):
            raise ValueError(f"unsupported language: {language!r}")

        room = await self.room_repo.get_or_create_room(room_name)
        participant = await self.participant_repo.add(room.id, name, language)

        await self._bind(room, participant)
        logger.info(f"[Session] 입장: {name} ({language}) → '{room.name}' ({room.id})")
        return room.id

    async def resume(self, room_id: str, participant_id: str) -> Participant:
        """이미 생성된 참가자로 세션을 연결합니다.

        Raises:
            LookupError: 룸 또는 참가자가 없음
        """
        room = await self.room_repo.get_room(room_id)
        if room is None:
            raise LookupError(f"room not found: {room_id}")
        participant = await self.participant_repo.get(room_id, participant_id)
        if participant is None:
            raise LookupError(f"participant not found: {participant_id}")

        await self._bind(room, participant)
        return participant

    # ------------------------------------------------------------------
    # 구독
    # ------------------------------------------------------------------

    async def enter(self) -> None:
        """입장한 룸의 이벤트 구독을 등록하고 스냅샷을 불러옵니다.

        추가/변경 리스너를 먼저 등록한 뒤 스냅샷을 읽습니다. 미러가 ID
        기준이므로 그 사이에 쓰인 레코드도 빠지지 않습니다. 이미 등록된
        (roomId, EventKind)는 건너뜁니다.

        Raises:
            RuntimeError: 입장하지 않은 세션
        """
        room_id = self._require_room().id

        await self._listen(room_id, EventKind.PARTICIPANT_ADDED,
                           participants_path(room_id), ChildEvent.CHILD_ADDED,
                           self._on_participant_added)
        await self._listen(room_id, EventKind.MESSAGE_ADDED,
                           messages_path(room_id), ChildEvent.CHILD_ADDED,
                           self._on_message_added)
        await self._listen(room_id, EventKind.MESSAGE_CHANGED,
                           messages_path(room_id), ChildEvent.CHILD_CHANGED,
                           self._on_message_changed)

        if not self.listeners.has(room_id, EventKind.PARTICIPANTS):
            await self.listeners.add(room_id, EventKind.PARTICIPANTS, self._snapshot_handle)
            for participant in await self.participant_repo.list(room_id):
                self.participants.setdefault(participant.id, participant)
            self._refresh_languages()
            await self._emit(EventKind.PARTICIPANTS.value, self.participant_payloads())

        if not self.listeners.has(room_id, EventKind.MESSAGES):
            await self.listeners.add(room_id, EventKind.MESSAGES, self._snapshot_handle)
            for message in await self.message_repo.list(room_id):
                self._merge_message(message)
            await self._emit(EventKind.MESSAGES.value, self.message_payloads())

        logger.debug(f"[Session] 구독 등록 완료: room {room_id} (리스너 {len(self.listeners)}개)")

    async def leave(self) -> None:
        """등록된 모든 구독을 해제합니다. 진행 중인 번역은 취소하지 않습니다."""
        await self.listeners.release_all()

    @property
    def entered(self) -> bool:
        return self.room is not None and self.listeners.has(self.room.id, EventKind.PARTICIPANTS)

    async def _bind(self, room: Room, participant: Participant) -> None:
        # 다른 룸으로 옮기면 이전 룸의 구독과 미러를 비움
        if self.room is not None and self.room.id != room.id:
            await self.leave()
            self.participants.clear()
            self.messages.clear()
            self._languages = frozenset()
        self.room = room
        self.participant = participant

    async def __aenter__(self) -> "RoomSession":
        await self.enter()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.leave()

    async def _listen(self, room_id: str, kind: EventKind, parent: str,
                      event: ChildEvent, callback) -> None:
        async def _subscribe() -> Subscription:
            return await self.store.subscribe(parent, event, callback)

        await self.listeners.add(room_id, kind, _subscribe)

    @staticmethod
    async def _snapshot_handle() -> Subscription:
        # 스냅샷은 한 번만 읽으므로 해제할 대상이 없음
        return Subscription(_noop, description="snapshot")

    async def _on_participant_added(self, record: Dict[str, Any]) -> None:
        try:
            participant = Participant.from_record(record)
        except ValidationError as e:
            logger.warning(f"[Session] 잘못된 참가자 레코드 무시: {e}")
            return
        if participant.id in self.participants:
            return
        self.participants[participant.id] = participant
        self._refresh_languages()
        await self._emit(EventKind.PARTICIPANT_ADDED.value, participant.to_record())

    async def _on_message_added(self, record: Dict[str, Any]) -> None:
        message = self._parse_message(record)
        if message is None or message.id in self.messages:
            return
        self.messages[message.id] = message
        await self._emit(EventKind.MESSAGE_ADDED.value, self.message_payload(message))

    async def _on_message_changed(self, record: Dict[str, Any]) -> None:
        message = self._parse_message(record)
        if message is None:
            return
        # 추가/변경 채널은 순서가 보장되지 않으므로 변경이 먼저 오면 추가로 알림
        is_new = message.id not in self.messages
        self._merge_message(message)
        if is_new:
            await self._emit(EventKind.MESSAGE_ADDED.value, self.message_payload(self.messages[message.id]))
        await self._emit(EventKind.MESSAGE_CHANGED.value, self.message_payload(self.messages[message.id]))

    @staticmethod
    def _parse_message(record: Dict[str, Any]) -> Optional[Message]:
        try:
            return Message.from_record(record)
        except ValidationError as e:
            logger.warning(f"[Session] 잘못된 메시지 레코드 무시: {e}")
            return None

    def _merge_message(self, message: Message) -> None:
        current = self.messages.get(message.id)
        # 이미 번역된 버전을 받았다면 더 오래된 스냅샷으로 덮지 않음
        if current is not None and current.is_translated and not message.is_translated:
            return
        self.messages[message.id] = message

    def _refresh_languages(self) -> None:
        self._languages = room_languages(self.participants.values())

    # ------------------------------------------------------------------
    # 전송
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> Optional[str]:
        """메시지를 저장하고 백그라운드 번역을 시작합니다.

        공백만 있는 입력은 저장하지 않습니다. 번역이 끝나기 전에 반환하므로
        이전 메시지가 번역 중이어도 계속 보낼 수 있습니다.

        Args:
            text: 보낼 텍스트 (보낸 사람 언어)

        Returns:
            Optional[str]: 저장된 메시지 ID. 빈 입력이면 None

        Raises:
            RuntimeError: 입장하지 않은 세션
            StoreUnavailableError: 스토어 연결 불가
        """
        room = self._require_room()
        participant = self._require_participant()

        text = (text or "").strip()
        if not text:
            return None

        source_language = participant.lang
        message_id = await self.message_repo.add(room.id, text, source_language, participant.id)
        targets = fanout_targets(await self._current_languages(room.id), source_language)
        logger.info(f"[Session] 메시지 저장: {message_id} ({source_language} → {targets})")

        task = asyncio.create_task(
            self._translate_and_patch(room.id, message_id, text, source_language, targets)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return message_id

    async def _current_languages(self, room_id: str) -> FrozenSet[str]:
        """전송 시점의 룸 언어 집합. 구독 전이면 스토어의 참가자 목록에서 계산."""
        if self.entered:
            return self.languages
        return room_languages(await self.participant_repo.list(room_id))

    async def _translate_and_patch(
        self,
        room_id: str,
        message_id: str,
        text: str,
        source_language: str,
        targets: List[str],
    ) -> None:
        translations = await self.translator.translate(text, source_language, targets)
        patch = translation_patch(source_language, translations)
        try:
            await self.message_repo.update_translations(room_id, message_id, patch["translations"])
        except StoreError as e:
            logger.error(f"[Session] 번역 결과 저장 실패 {message_id}: {e}", exc_info=True)
            return
        logger.info(f"[Session] 번역 패치: {message_id} → {sorted(patch['translations'])}")

    async def send_voice(self, audio: bytes, language: Optional[str] = None) -> Optional[str]:
        """음성을 인식해 메시지로 보냅니다.

        Args:
            audio: 녹음된 발화 오디오
            language: 인식 언어 힌트. 생략하면 참가자 언어, "auto"면 자동 감지

        Returns:
            Optional[str]: 저장된 메시지 ID. 인식 결과가 비면 None
        """
        participant = self._require_participant()
        if self.transcriber is None:
            raise RuntimeError("transcription service is not configured")

        transcript = await self.transcriber.transcribe(audio, language or participant.lang)
        if not (transcript or "").strip():
            logger.info("[Session] 인식 결과 없음, 전송 생략")
            return None
        return await self.send_message(transcript)

    async def wait_pending(self) -> None:
        """진행 중인 번역 태스크가 모두 끝날 때까지 기다립니다."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # 조회/표시
    # ------------------------------------------------------------------

    @property
    def languages(self) -> FrozenSet[str]:
        """현재 룸 언어 집합."""
        return self._languages

    def display_text(self, message: Message, lang: Optional[str] = None) -> str:
        """보는 사람 언어로 표시할 텍스트. 번역이 없으면 자리표시 문구."""
        if lang is None:
            lang = self.participant.lang if self.participant else message.source_language
        text = message.text_for(lang)
        return text if text is not None else TRANSLATING_PLACEHOLDER

    def message_payload(self, message: Message) -> Dict[str, Any]:
        return {**message.to_record(), "displayText": self.display_text(message)}

    def message_payloads(self) -> List[Dict[str, Any]]:
        ordered = sorted(
            self.messages.values(),
            key=lambda m: (m.timestamp is not None, m.timestamp or 0, m.id),
        )
        return [self.message_payload(m) for m in ordered]

    def participant_payloads(self) -> List[Dict[str, Any]]:
        return [p.to_record() for p in sorted(self.participants.values(), key=lambda p: p.id)]

    def state(self) -> Dict[str, Any]:
        """현재 미러 상태 (get_state 응답용)."""
        return {
            "room": self.room.to_record() if self.room else None,
            "participant": self.participant.to_record() if self.participant else None,
            "languages": sorted(self.languages),
            "participants": self.participant_payloads(),
            "messages": self.message_payloads(),
        }

    async def _emit(self, event_type: str, data: Any) -> None:
        if self.on_event is None:
            return
        result = self.on_event({"type": event_type, "data": data})
        if inspect.isawaitable(result):
            await result

    def _require_room(self) -> Room:
        if self.room is None:
            raise RuntimeError("session has not joined a room")
        return self.room

    def _require_participant(self) -> Participant:
        if self.participant is None:
            raise RuntimeError("session has no participant")
        return self.participant
