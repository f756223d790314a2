"""번역 응답 파서.

LLM 응답을 `Label:` 로 시작하는 블록 단위로 나누고, 요청한 언어의 블록만
번역문으로 채택합니다. 라벨은 언어 코드(`es`)나 표시 이름(`Spanish`) 모두
허용합니다.
"""

import logging
import re
from typing import Dict, Iterable

from modules.shared import resolve_language_code

logger = logging.getLogger(__name__)

_SECTION_SPLIT = re.compile(r"(?=^[A-Za-z]+:)", re.MULTILINE)
_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")
_PLACEHOLDER = re.compile(r"\[translation[^\]]*\]", re.IGNORECASE)
_END_MARKER = re.compile(r"\s*\bEND\s*$")
_SPACES = re.compile(r"[ \t]+")


def clean_block(body: str) -> str:
    """블록 본문 정리: 감싼 따옴표, 템플릿 자리표시자, END 표시, 중복 공백 제거."""
    content = body.strip()
    content = _SURROUNDING_QUOTES.sub("", content)
    content = _PLACEHOLDER.sub("", content)
    content = _END_MARKER.sub("", content)
    content = _SPACES.sub(" ", content)
    return content.strip()


def extract_translations(
    response: str,
    source_language: str,
    text: str,
    target_languages: Iterable[str],
) -> Dict[str, str]:
    """응답에서 언어별 번역문을 추출합니다.

    원문 언어 블록은 건너뛰고, 요청하지 않은 언어는 버립니다. 형식이 깨진
    응답이라도 인식한 블록은 유지합니다.

    Args:
        response: LLM 응답 원문
        source_language: 원문 언어 코드
        text: 원문
        target_languages: 요청한 대상 언어 코드

    Returns:
        Dict[str, str]: 항상 {source_language: text}를 포함하는 번역 맵

    Examples:
        >>> extract_translations("es:\\nHola\\n\\nfr:\\nBonjour", "en", "Hello", ["es", "fr"])
        {'en': 'Hello', 'es': 'Hola', 'fr': 'Bonjour'}
    """
    translations = {source_language: text}
    requested = set(target_languages)

    sections = [s.strip() for s in _SECTION_SPLIT.split(response or "")]
    for section in sections:
        if not section:
            continue
        header, _, remainder = section.partition(":")
        code = resolve_language_code(header.strip())
        if code is None or code == source_language or code not in requested:
            continue

        content = clean_block(remainder)
        if content:
            translations[code] = content

    missing = requested - set(translations)
    if missing:
        logger.debug(f"[Translate] 응답에 없는 언어: {sorted(missing)}")
    return translations
