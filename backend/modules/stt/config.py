"""STT 모듈 설정.

OpenAI Whisper 음성 인식 설정값.
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_env_path = Path(__file__).parent.parent.parent / "config" / ".env"
load_dotenv(_env_path)


@dataclass
class TranscriptionConfig:
    """음성 인식 설정."""

    # OpenAI API 키
    API_KEY: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY")
    )

    # 인식 모델
    MODEL: str = field(
        default_factory=lambda: os.getenv("STT_MODEL", "whisper-1")
    )

    # 샘플링 온도 (0 = 결정적)
    TEMPERATURE: float = field(
        default_factory=lambda: float(os.getenv("STT_TEMPERATURE", "0"))
    )

    # 업로드 파일 이름/타입
    FILENAME: str = "audio.wav"
    CONTENT_TYPE: str = "audio/wav"

    @property
    def is_configured(self) -> bool:
        """API 키 설정 여부."""
        return bool(self.API_KEY)


transcription_config = TranscriptionConfig()

logger.info(f"[STT] 설정 로드: .env={_env_path} (존재: {_env_path.exists()})")
logger.info(f"[STT] 모델: {transcription_config.MODEL}, 온도: {transcription_config.TEMPERATURE}")
