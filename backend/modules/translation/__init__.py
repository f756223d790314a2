"""번역 모듈.

LangChain ChatOpenAI 기반 다국어 번역 어댑터와 응답 파서를 제공합니다.

Classes:
    TranslationService: 원문 → 여러 대상 언어 번역

Config:
    translation_settings: 모델/온도/타임아웃 설정
"""

from .config import TranslationSettings, translation_settings, get_translation_settings
from .parser import extract_translations, clean_block
from .prompts import SYSTEM_PROMPT, build_translation_prompt
from .service import TranslationService, get_translation_service, translation_targets

__all__ = [
    "TranslationSettings",
    "translation_settings",
    "get_translation_settings",
    "extract_translations",
    "clean_block",
    "SYSTEM_PROMPT",
    "build_translation_prompt",
    "TranslationService",
    "get_translation_service",
    "translation_targets",
]
