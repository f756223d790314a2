"""Redis 연결 관리 모듈.

redis-py(asyncio) 클라이언트의 생성, 상태 확인, 종료를 담당합니다.
룸 데이터 읽기/쓰기는 RedisRoomStore가 이 클라이언트를 받아 수행합니다.

Examples:
    >>> from modules.database import get_redis_manager
    >>> redis_mgr = get_redis_manager()
    >>> await redis_mgr.initialize("redis://localhost:6379")
    >>> await redis_mgr.ping()
    >>> await redis_mgr.close()
"""

import os
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RedisManager:
    """Redis 연결을 관리하는 싱글톤 클래스.

    Attributes:
        client: redis 클라이언트
        url: 마지막으로 초기화에 사용한 접속 URL
        _initialized: 초기화 완료 여부
    """

    _instance: Optional["RedisManager"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.client = None
            cls._instance.url = None
            cls._instance._initialized = False
        return cls._instance

    @property
    def is_initialized(self) -> bool:
        """Redis 연결 초기화 완료 여부."""
        return self._initialized and self.client is not None

    async def initialize(self, redis_url: Optional[str] = None) -> bool:
        """Redis 연결을 초기화합니다.

        Args:
            redis_url: 접속 URL. 생략하면 REDIS_URL 환경변수를 사용합니다.

        Returns:
            bool: 초기화 성공 여부 (실패 시 호출 측에서 대체 백엔드 선택)
        """
        if self._initialized:
            logger.info("Redis already initialized")
            return True

        self.url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379")
        try:
            self.client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self._initialized = True
            logger.info(f"Redis connection initialized: {self.url}")
            return True
        except (RedisError, OSError) as e:
            logger.error(f"Failed to initialize Redis: {e}")
            if self.client is not None:
                await self.client.aclose()
            self.client = None
            self._initialized = False
            return False

    async def close(self):
        """Redis 연결을 종료합니다."""
        if self.client:
            await self.client.aclose()
            self.client = None
            self._initialized = False
            logger.info("Redis connection closed")

    async def ping(self) -> bool:
        """Redis 서버에 ping을 보냅니다.

        Returns:
            bool: ping 성공 여부
        """
        if not self.is_initialized:
            return False
        try:
            return bool(await self.client.ping())
        except RedisError:
            return False


def get_redis_manager() -> RedisManager:
    """RedisManager 싱글톤 인스턴스를 반환합니다."""
    return RedisManager()
