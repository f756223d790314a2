"""Shared DTOs and type definitions used across services.

Only lightweight, common data models should live here. Do not place
service-specific logic or heavy dependencies (e.g., redis, LangChain)
in this package.
"""

from .dto import Room, Participant, Message, MessageStatus
from .languages import (
    AUTO_DETECT,
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    is_supported_language,
    get_language_name,
    resolve_language_code,
    filter_languages,
)

__all__ = [
    "Room",
    "Participant",
    "Message",
    "MessageStatus",
    "AUTO_DETECT",
    "DEFAULT_LANGUAGE",
    "SUPPORTED_LANGUAGES",
    "is_supported_language",
    "get_language_name",
    "resolve_language_code",
    "filter_languages",
]
