"""룸 상태 계산 함수.

참가자 목록에서 룸 언어 집합을 구하고, 번역 결과를 메시지 패치로 바꾸는
순수 함수들입니다. 스토어나 세션 상태에 의존하지 않습니다.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List

from modules.shared import MessageStatus, Participant, is_supported_language


class EventKind(str, Enum):
    """세션이 구독하는 이벤트 종류. 값은 프레젠테이션 이벤트 이름으로도 쓰입니다."""

    PARTICIPANTS = "participants"
    MESSAGES = "messages"
    PARTICIPANT_ADDED = "participant_added"
    MESSAGE_ADDED = "message_added"
    MESSAGE_CHANGED = "message_changed"

    @property
    def is_snapshot(self) -> bool:
        return self in (EventKind.PARTICIPANTS, EventKind.MESSAGES)


def room_languages(participants: Iterable[Participant]) -> FrozenSet[str]:
    """참가자들의 언어 집합 (미지원 코드 제외)."""
    return frozenset(p.lang for p in participants if is_supported_language(p.lang))


def fanout_targets(languages: Iterable[str], source_language: str) -> List[str]:
    """번역 대상 언어: 룸 언어 집합에서 보낸 사람의 언어를 뺀 것 (정렬)."""
    return sorted(set(languages) - {source_language})


def translation_patch(source_language: str, translations: Dict[str, str]) -> Dict[str, object]:
    """번역 결과를 메시지 패치로 변환합니다.

    대상 언어 번역이 하나라도 있으면 원문 언어 항목은 뺍니다. 원문 항목만
    있으면(번역 실패 또는 대상 없음) 그대로 저장합니다.

    Examples:
        >>> translation_patch("es", {"es": "Hola", "en": "Hello"})
        {'translations': {'en': 'Hello'}, 'status': 'translated'}
        >>> translation_patch("es", {"es": "Hola"})
        {'translations': {'es': 'Hola'}, 'status': 'translated'}
    """
    targets = {k: v for k, v in translations.items() if k != source_language}
    return {
        "translations": targets if targets else dict(translations),
        "status": MessageStatus.TRANSLATED.value,
    }
