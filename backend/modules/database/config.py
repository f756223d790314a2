"""룸 스토어 설정.

환경변수:
    STORE_BACKEND: "redis" 또는 "memory" (기본 redis, 연결 실패 시 memory로 대체)
    REDIS_URL: Redis 접속 URL
    STORE_KEY_PREFIX: Redis 키/채널 접두사
"""

import os
from dataclasses import dataclass, field


@dataclass
class StoreConfig:
    """룸 스토어 설정."""

    backend: str = field(
        default_factory=lambda: os.getenv("STORE_BACKEND", "redis").strip().lower()
    )
    redis_url: str = field(
        default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379")
    )
    key_prefix: str = field(
        default_factory=lambda: os.getenv("STORE_KEY_PREFIX", "polyglot")
    )

    @property
    def use_redis(self) -> bool:
        return self.backend == "redis"


def get_store_config() -> StoreConfig:
    """환경변수로부터 스토어 설정을 생성합니다."""
    return StoreConfig()
