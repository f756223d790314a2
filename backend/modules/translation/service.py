"""번역 서비스 어댑터.

LangChain ChatOpenAI로 한 번의 요청에서 여러 대상 언어 번역을 받아옵니다.
어떤 실패가 나도 예외를 올리지 않고 원문만 담긴 맵을 반환합니다.

Examples:
    >>> from modules.translation import get_translation_service
    >>> translator = get_translation_service()
    >>> await translator.translate("Hola", "es", ["en", "fr"])
    {'es': 'Hola', 'en': 'Hello', 'fr': 'Bonjour'}
"""

import asyncio
import logging
import time
from typing import Dict, Iterable, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from modules.shared import is_supported_language

from .config import TranslationSettings, translation_settings
from .parser import extract_translations
from .prompts import SYSTEM_PROMPT, build_translation_prompt

logger = logging.getLogger(__name__)


def translation_targets(source_language: str, target_languages: Iterable[str]) -> List[str]:
    """번역 대상 정리: 중복, 원문 언어, 미지원 언어 제거 (입력 순서 유지)."""
    targets: List[str] = []
    for code in target_languages:
        if code == source_language or code in targets:
            continue
        if not is_supported_language(code):
            logger.debug(f"[Translate] 미지원 언어 제외: {code}")
            continue
        targets.append(code)
    return targets


class TranslationService:
    """다국어 번역 서비스.

    Attributes:
        settings: 번역 설정
        _llm: 지연 생성되는 채팅 모델 (테스트에서는 주입)
    """

    def __init__(
        self,
        settings: Optional[TranslationSettings] = None,
        llm: Optional[BaseChatModel] = None,
    ):
        self.settings = settings or translation_settings
        self._llm = llm
        self._prompt = ChatPromptTemplate.from_messages([
            ("system", "{system}"),
            ("human", "{prompt}"),
        ])

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            if not self.settings.is_configured:
                raise RuntimeError("OPENAI_API_KEY가 설정되지 않았습니다")
            self._llm = ChatOpenAI(
                model=self.settings.MODEL,
                api_key=self.settings.OPENAI_API_KEY,
                temperature=self.settings.TEMPERATURE,
                timeout=self.settings.TIMEOUT,
                streaming=False,
            )
        return self._llm

    async def translate(
        self,
        text: str,
        source_language: str,
        target_languages: Iterable[str],
    ) -> Dict[str, str]:
        """원문을 대상 언어들로 번역합니다.

        Args:
            text: 원문
            source_language: 원문 언어 코드
            target_languages: 대상 언어 코드 (중복/원문 언어 허용, 내부에서 정리)

        Returns:
            Dict[str, str]: {source_language: text, target: 번역문, ...}.
                실패 시 {source_language: text}만 반환합니다.
        """
        identity = {source_language: text}
        targets = translation_targets(source_language, target_languages)
        if not targets or not (text or "").strip():
            return identity

        start_time = time.perf_counter()
        try:
            chain = self._prompt | self._get_llm() | StrOutputParser()
            response = await chain.ainvoke({
                "system": SYSTEM_PROMPT,
                "prompt": build_translation_prompt(text, source_language, targets),
            })
            if not response or not response.strip():
                raise ValueError("empty response from translation model")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[Translate] 번역 실패 ({source_language} → {targets}): {e}")
            return identity

        translations = extract_translations(response, source_language, text, targets)
        duration = time.perf_counter() - start_time
        logger.info(
            f"[Translate] 완료 {source_language} → {sorted(set(translations) - {source_language})} "
            f"({duration:.3f}초)"
        )
        return translations


_translation_service: Optional[TranslationService] = None


def get_translation_service() -> TranslationService:
    """TranslationService 싱글톤 인스턴스를 반환합니다."""
    global _translation_service
    if _translation_service is None:
        _translation_service = TranslationService()
    return _translation_service
