"""번역 모듈 설정.

OpenAI API 키, 번역 모델, 온도, 타임아웃 설정.
"""

import logging
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# .env 파일 로드
_env_path = Path(__file__).parent.parent.parent / "config" / ".env"
load_dotenv(_env_path)


class TranslationSettings(BaseSettings):
    """번역 모듈 설정 클래스."""

    OPENAI_API_KEY: str = Field(
        default="",
        description="OpenAI API 키"
    )

    MODEL: str = Field(
        default="gpt-4o-mini",
        description="번역용 LLM 모델",
        validation_alias="TRANSLATION_MODEL"
    )

    TEMPERATURE: float = Field(
        default=0.1,
        description="번역 온도 (낮을수록 일관된 번역)",
        validation_alias="TRANSLATION_TEMPERATURE"
    )

    TIMEOUT: float = Field(
        default=30.0,
        description="번역 요청 타임아웃 (초)",
        validation_alias="TRANSLATION_TIMEOUT"
    )

    @field_validator("TEMPERATURE")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        """온도 범위 검증"""
        if not 0.0 <= v <= 2.0:
            raise ValueError("TRANSLATION_TEMPERATURE는 0.0 ~ 2.0 사이여야 합니다.")
        return v

    @property
    def is_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    class Config:
        """Pydantic 설정"""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_translation_settings() -> TranslationSettings:
    """설정 싱글톤 인스턴스 반환."""
    return TranslationSettings()


translation_settings = get_translation_settings()

logger.info(f"[Translate Config] .env 경로: {_env_path} (존재: {_env_path.exists()})")
logger.info(f"[Translate Config] 모델: {translation_settings.MODEL}, 온도: {translation_settings.TEMPERATURE}")
