"""번역 프롬프트.

입력이 로마자 음차(예: "kaise ho", "ni hao")로 쓰였을 수 있음을 알려주고,
대상 언어마다 `code:` 헤더로 시작하는 블록 하나씩을 요구합니다.
"""

from typing import List

from modules.shared import get_language_name

SYSTEM_PROMPT = (
    "You are a precise translator with expertise in phonetic/transliterated text. "
    "You can understand text written in roman script but meant to be read in other languages "
    '(like "kya hal hai" for Urdu or "wo hen hao" for Chinese). '
    "Always translate into proper script of the target language."
)


def _target_line(code: str) -> str:
    return f"{code} ({get_language_name(code)})"


def build_translation_prompt(text: str, source_language: str, target_languages: List[str]) -> str:
    """사용자 프롬프트를 만듭니다.

    Args:
        text: 원문
        source_language: 원문 언어 코드
        target_languages: 대상 언어 코드 (원문 언어 제외, 중복 없음)

    Returns:
        str: 응답 형식 예시가 포함된 프롬프트
    """
    targets = "\n".join(_target_line(code) for code in target_languages)
    response_blocks = "\n\n".join(
        f"{code}:\n[translation in proper script]" for code in target_languages
    )

    return f"""TRANSLATION TASK

SOURCE TEXT ({_target_line(source_language)}):
{text}

NOTE: The source text might be written phonetically/transliterated (like "kaise ho" for Hindi/Urdu or "ni hao" for Chinese).
Identify and understand such phonetic writings in the source language.

TRANSLATE TO ONLY:
{targets}

INSTRUCTIONS:
1. First understand the source text:
   - If it's phonetically written (like roman urdu, pinyin, etc.), interpret it correctly
   - Consider common phonetic spellings and variations
   - Understand informal transliterations

2. Then translate while:
   - Keeping the same tone and intention
   - Maintaining any informal style
   - Preserving formatting and punctuation
   - Keeping emojis and special characters

3. For each target language:
   - Translate into proper script (not phonetic)
   - Keep names and borrowed words as they should appear
   - Maintain equivalent level of formality

RESPONSE FORMAT:
{source_language}:
{text}

{response_blocks}

IMPORTANT:
- Start every block with the language code followed by a colon
- Only translate to the requested languages
- Use proper script for translations (not phonetic)
- Don't add explanations or notes
- Don't add any other languages"""
