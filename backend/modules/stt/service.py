"""OpenAI Whisper 음성 인식 서비스 모듈.

녹음된 발화 하나(오디오 바이트)를 텍스트로 변환합니다. 인식 실패나 빈
오디오는 빈 문자열로 돌려주며, 호출 측은 빈 결과를 "보낼 메시지 없음"으로
처리합니다.

Examples:
    >>> from modules.stt import TranscriptionService
    >>> service = TranscriptionService()
    >>> text = await service.transcribe(wav_bytes, language="es")

    언어 자동 감지:
        >>> text = await service.transcribe(wav_bytes, language="auto")
"""

import asyncio
import logging
import time
from typing import Optional

from openai import AsyncOpenAI

from modules.shared import AUTO_DETECT

from .config import TranscriptionConfig, transcription_config

logger = logging.getLogger(__name__)


class TranscriptionService:
    """Whisper 기반 음성 인식 서비스.

    Attributes:
        config: 인식 설정
        _client: 지연 생성되는 AsyncOpenAI 클라이언트 (테스트에서는 주입)
    """

    def __init__(self, config: Optional[TranscriptionConfig] = None, client=None):
        self.config = config or transcription_config
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.config.is_configured:
                raise RuntimeError("OPENAI_API_KEY가 설정되지 않았습니다")
            self._client = AsyncOpenAI(api_key=self.config.API_KEY)
        return self._client

    async def transcribe(self, audio: bytes, language: Optional[str] = AUTO_DETECT) -> str:
        """오디오를 텍스트로 변환합니다.

        Args:
            audio: 녹음된 오디오 바이트 (wav/webm 등 Whisper 지원 형식)
            language: 언어 힌트. "auto" 또는 None이면 자동 감지

        Returns:
            str: 인식된 텍스트. 실패하거나 오디오가 비어 있으면 ""
        """
        if not audio:
            logger.debug("[STT] 빈 오디오, 인식 생략")
            return ""

        params = {
            "model": self.config.MODEL,
            "file": (self.config.FILENAME, audio, self.config.CONTENT_TYPE),
            "temperature": self.config.TEMPERATURE,
        }
        if language and language != AUTO_DETECT:
            params["language"] = language

        start_time = time.perf_counter()
        try:
            result = await self._get_client().audio.transcriptions.create(**params)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[STT] 인식 실패 (language={language}): {e}")
            return ""

        text = (getattr(result, "text", "") or "").strip()
        duration = time.perf_counter() - start_time
        logger.info(f"[STT] 인식 완료 ({len(audio)} bytes, {duration:.3f}초): '{text[:50]}'")
        return text


_transcription_service: Optional[TranscriptionService] = None


def get_transcription_service() -> TranscriptionService:
    """TranscriptionService 싱글톤 인스턴스를 반환합니다."""
    global _transcription_service
    if _transcription_service is None:
        _transcription_service = TranscriptionService()
    return _transcription_service
