"""FastAPI 다국어 번역 채팅 서버.

참가자가 이름이 붙은 룸에 입장해 자기 언어로 말하거나 입력하면, 모든
메시지가 룸에 있는 다른 참가자들의 언어로 자동 번역됩니다.

주요 기능:
    - 룸 입장/생성 (이름 기준 유일)
    - 메시지 저장 후 백그라운드 번역 패치
    - 음성 발화 인식 후 메시지 전송
    - WebSocket으로 참가자/메시지 이벤트 실시간 전달

Architecture:
    - RoomStore: Redis(Hash + Pub/Sub) 또는 인메모리 룸 스토어
    - RoomSession: 참가자 한 명의 구독/전송 흐름
    - TranslationService: LangChain ChatOpenAI 번역
    - TranscriptionService: OpenAI Whisper 음성 인식
    - RoomManager: 룸별 접속 피어 관리
"""
import logging
from contextlib import asynccontextmanager
import os
from datetime import datetime, timedelta
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# config/.env 환경변수 로드
load_dotenv(Path(__file__).parent / "config" / ".env")

from modules.database import (  # noqa: E402
    MemoryRoomStore,
    RedisRoomStore,
    RoomStore,
    get_redis_manager,
    get_store_config,
)
from modules.room import RoomManager  # noqa: E402
from modules.stt import get_transcription_service  # noqa: E402
from modules.translation import get_translation_service  # noqa: E402
from routes import (  # noqa: E402
    health_router, rooms_router, chat_router, init_services,
)


# 로그 설정
os.makedirs("logs", exist_ok=True)
log_filename = f"logs/server_{datetime.now().strftime('%Y%m%d')}.log"

# 환경별 로그 레벨 설정 (환경변수로 제어)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENV = os.getenv("ENV", "development")

# 로그 보관 기간 (일) - 기본 60일
LOG_RETENTION_DAYS = int(os.getenv("LOG_RETENTION_DAYS", "60"))

SERVICE_NAME = "Polyglot Chat Server"


def cleanup_old_logs(log_dir: str = "logs", retention_days: int = LOG_RETENTION_DAYS) -> int:
    """오래된 로그 파일을 삭제합니다.

    Args:
        log_dir: 로그 디렉토리 경로
        retention_days: 보관 기간 (일)

    Returns:
        삭제된 파일 수
    """
    log_path = Path(log_dir)
    if not log_path.exists():
        return 0

    cutoff_date = datetime.now() - timedelta(days=retention_days)
    deleted_count = 0

    for log_file in log_path.glob("server_*.log"):
        try:
            date_str = log_file.stem.replace("server_", "")
            if datetime.strptime(date_str, "%Y%m%d") < cutoff_date:
                log_file.unlink()
                deleted_count += 1
        except (ValueError, OSError):
            continue

    return deleted_count


logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(),  # 콘솔 출력
        logging.FileHandler(log_filename, encoding="utf-8"),  # 파일 저장
    ]
)
logger = logging.getLogger(__name__)
logger.info(f"로깅 초기화 완료: level={LOG_LEVEL}, env={ENV}")


room_manager = RoomManager()
redis_manager = get_redis_manager()


async def create_store() -> RoomStore:
    """설정에 따라 룸 스토어를 생성합니다.

    Redis 연결에 실패하면 경고를 남기고 인메모리 스토어로 대체합니다.
    """
    config = get_store_config()
    if config.use_redis:
        if await redis_manager.initialize(config.redis_url):
            logger.info("Redis 룸 스토어 사용")
            return RedisRoomStore(redis_manager.client, key_prefix=config.key_prefix)
        logger.warning("Redis 사용 불가, 인메모리 룸 스토어로 실행 (재시작 시 데이터 유실)")
    else:
        logger.info("인메모리 룸 스토어 사용")
    return MemoryRoomStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI 앱의 생명주기를 관리하는 컨텍스트 매니저.

    Note:
        - 시작: 오래된 로그 정리, 룸 스토어 선택, 서비스 초기화
        - 종료: 스토어 구독 해제, Redis 연결 종료
    """
    logger.info(f"{SERVICE_NAME} 시작 중...")

    deleted_logs = cleanup_old_logs()
    if deleted_logs > 0:
        logger.info(f"오래된 로그 파일 {deleted_logs}개 정리 완료 ({LOG_RETENTION_DAYS}일 이상)")

    store = await create_store()
    init_services(
        store,
        get_translation_service(),
        get_transcription_service(),
        room_manager,
    )

    yield

    logger.info("서버 종료 중...")
    await store.close()

    if redis_manager.is_initialized:
        await redis_manager.close()
        logger.info("Redis 연결 종료됨")


app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)

# CORS - 개발 환경에서는 로컬 네트워크 허용
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^http://(localhost|127\.0\.0\.1|192\.168\.\d{1,3}\.\d{1,3}):\d+$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 라우터 등록
app.include_router(health_router)
app.include_router(rooms_router)
app.include_router(chat_router)


@app.get("/")
async def root():
    """서버 상태 확인 엔드포인트.

    Returns:
        dict: {"status": "ok", "service": 서비스 이름}
    """
    return {"status": "ok", "service": SERVICE_NAME}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")), log_level="info")
