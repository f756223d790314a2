"""Lightweight shared DTOs for rooms, participants and messages.

Records are persisted with camelCase keys (``originalText``,
``sourceLanguage``...) so every client reading the store sees the same
shape. Use ``to_record()`` / ``from_record()`` at the store boundary.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .languages import is_supported_language


class MessageStatus(str, Enum):
    """메시지 번역 상태."""

    PENDING = "pending"
    TRANSLATED = "translated"


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_record(cls, record: Dict[str, Any]):
        return cls.model_validate(record)


class Room(_Record):
    """채팅 룸 메타데이터 (생성 후 변경되지 않음)."""

    id: str = Field(..., description="룸 식별자 (push ID)")
    name: str = Field(..., description="소문자로 정규화된 룸 이름")
    participants_ref: str = Field(..., description="참가자 컬렉션 경로")
    messages_ref: str = Field(..., description="메시지 컬렉션 경로")


class Participant(_Record):
    """룸 참가자. 입장할 때마다 새 레코드가 생성됩니다."""

    id: str = Field(..., description="참가자 식별자 (push ID)")
    name: str = Field(..., description="표시 이름")
    lang: str = Field(..., description="참가자 언어 코드")
    joined_at: Optional[int] = Field(default=None, description="서버 입장 시각 (ms)")

    @field_validator("lang")
    @classmethod
    def _check_lang(cls, value: str) -> str:
        if not is_supported_language(value):
            raise ValueError(f"unsupported language code: {value!r}")
        return value


class Message(_Record):
    """채팅 메시지.

    ``translations``가 빈 상태(PENDING)로 저장된 뒤 번역 결과가 한 번
    패치되어 TRANSLATED 상태가 됩니다.
    """

    id: str = Field(..., description="메시지 식별자 (push ID)")
    original_text: str = Field(..., description="원문")
    source_language: str = Field(..., description="원문 언어 코드")
    sender_id: str = Field(..., description="보낸 참가자 ID")
    translations: Dict[str, str] = Field(default_factory=dict, description="언어 코드 → 번역문")
    timestamp: Optional[int] = Field(default=None, description="서버 저장 시각 (ms)")
    status: MessageStatus = Field(default=MessageStatus.PENDING, description="번역 상태")

    @property
    def is_translated(self) -> bool:
        return self.status == MessageStatus.TRANSLATED

    def text_for(self, lang: str) -> Optional[str]:
        """해당 언어 사용자에게 보여줄 텍스트. 아직 번역이 없으면 None."""
        if lang == self.source_language:
            return self.original_text
        return self.translations.get(lang) or None
