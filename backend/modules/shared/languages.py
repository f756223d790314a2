"""지원 언어 테이블.

참가자 언어 선택, 입장 시 언어 검증, 번역 대상(fan-out) 필터링에 공통으로
사용되는 고정 언어 코드 → 표시 이름 매핑입니다.

Examples:
    >>> is_supported_language("es")
    True
    >>> get_language_name("fr")
    'French'
    >>> filter_languages(["en", "xx"])
    {'en': 'English'}
"""

from typing import Dict, Iterable, Optional

# 음성 인식 자동 감지를 뜻하는 언어 힌트
AUTO_DETECT = "auto"

DEFAULT_LANGUAGE = "en"

SUPPORTED_LANGUAGES: Dict[str, str] = {
    "af": "Afrikaans",
    "ar": "Arabic",
    "bg": "Bulgarian",
    "bn": "Bengali",
    "ca": "Catalan",
    "cs": "Czech",
    "cy": "Welsh",
    "da": "Danish",
    "de": "German",
    "el": "Greek",
    "en": "English",
    "es": "Spanish",
    "et": "Estonian",
    "fa": "Persian",
    "fi": "Finnish",
    "fr": "French",
    "gl": "Galician",
    "he": "Hebrew",
    "hi": "Hindi",
    "hr": "Croatian",
    "hu": "Hungarian",
    "id": "Indonesian",
    "is": "Icelandic",
    "it": "Italian",
    "ja": "Japanese",
    "kk": "Kazakh",
    "ko": "Korean",
    "lt": "Lithuanian",
    "lv": "Latvian",
    "mk": "Macedonian",
    "mr": "Marathi",
    "ms": "Malay",
    "ne": "Nepali",
    "nl": "Dutch",
    "no": "Norwegian",
    "pa": "Punjabi",
    "pl": "Polish",
    "pt": "Portuguese",
    "ro": "Romanian",
    "ru": "Russian",
    "sk": "Slovak",
    "sl": "Slovenian",
    "sr": "Serbian",
    "sv": "Swedish",
    "sw": "Swahili",
    "ta": "Tamil",
    "th": "Thai",
    "tl": "Tagalog",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "ur": "Urdu",
    "vi": "Vietnamese",
    "zh": "Chinese",
}

# 표시 이름(소문자) → 코드 역방향 조회
_NAME_TO_CODE: Dict[str, str] = {
    name.lower(): code for code, name in SUPPORTED_LANGUAGES.items()
}


def is_supported_language(code: Optional[str]) -> bool:
    """지원 언어 코드인지 확인합니다."""
    return bool(code) and code in SUPPORTED_LANGUAGES


def get_language_name(code: str) -> str:
    """언어 코드의 표시 이름을 반환합니다. 모르는 코드는 대문자 코드 그대로."""
    return SUPPORTED_LANGUAGES.get(code, code.upper())


def resolve_language_code(label: str) -> Optional[str]:
    """코드 또는 표시 이름을 언어 코드로 변환합니다.

    번역 응답의 블록 헤더(`es:` 또는 `Spanish:`)를 요청 언어와 맞출 때
    사용합니다.

    Args:
        label: 언어 코드 또는 표시 이름 (대소문자 무관)

    Returns:
        Optional[str]: 지원 언어 코드 또는 None
    """
    if not label:
        return None
    candidate = label.strip()
    if candidate in SUPPORTED_LANGUAGES:
        return candidate
    lowered = candidate.lower()
    if lowered in SUPPORTED_LANGUAGES:
        return lowered
    return _NAME_TO_CODE.get(lowered)


def filter_languages(codes: Iterable[str]) -> Dict[str, str]:
    """주어진 코드 중 지원 언어만 골라 코드 → 이름 매핑으로 반환합니다."""
    wanted = set(codes)
    return {
        code: name for code, name in SUPPORTED_LANGUAGES.items() if code in wanted
    }
