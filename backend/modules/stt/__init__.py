"""STT (Speech-to-Text) 모듈.

OpenAI Whisper API를 사용한 발화 단위 음성 인식 기능을 제공합니다.

Classes:
    TranscriptionService: 오디오 바이트 → 텍스트

Config:
    transcription_config: 모델/온도 설정
"""

from .service import TranscriptionService, get_transcription_service
from .config import TranscriptionConfig, transcription_config

__all__ = [
    "TranscriptionService",
    "get_transcription_service",
    "TranscriptionConfig",
    "transcription_config",
]
