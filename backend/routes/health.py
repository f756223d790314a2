"""Health Check API 라우터.

룸 스토어와 Redis 연결 상태를 확인합니다.
"""

from fastapi import APIRouter

from modules.database import get_redis_manager
from . import deps

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    """전체 서비스 상태를 확인합니다.

    Returns:
        dict: 스토어 백엔드와 Redis 상태. 하나라도 문제가 있으면 "degraded"
    """
    redis_mgr = get_redis_manager()
    store = deps._store

    store_status = "not_initialized"
    if store is not None:
        store_status = "ok" if await store.ping() else "error"

    if not redis_mgr.is_initialized:
        redis_status = "not_initialized"
    else:
        redis_status = "ok" if await redis_mgr.ping() else "error"

    # 메모리 백엔드로 동작 중이면 Redis 상태는 판정에서 제외
    redis_required = store is not None and store.backend == "redis"
    healthy = store_status == "ok" and (redis_status == "ok" or not redis_required)

    return {
        "status": "ok" if healthy else "degraded",
        "services": {
            "store": store_status,
            "store_backend": store.backend if store is not None else None,
            "redis": redis_status,
        }
    }
