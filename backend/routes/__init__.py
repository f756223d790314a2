"""FastAPI 라우터 모듈.

app.py에서 등록하는 API / WebSocket 엔드포인트들을 제공합니다.
"""

from .health import router as health_router
from .rooms import router as rooms_router
from .chat import router as chat_router, broadcast_to_room
from .deps import init_services

__all__ = [
    "health_router",
    "rooms_router",
    "chat_router",
    "broadcast_to_room",
    "init_services",
]
