"""공용 테스트 픽스처.

외부 서비스(OpenAI, Redis 서버) 없이 세션/라우터를 검증하기 위한 스토어,
가짜 번역기, 가짜 음성 인식기 픽스처를 제공합니다.
"""

from typing import List

import fakeredis
import pytest

from modules.database import MemoryRoomStore, RedisRoomStore
from modules.room import RoomSession

from fakes import FakeTranscriber, FakeTranslator, YieldingMemoryStore


@pytest.fixture
def memory_store():
    return MemoryRoomStore()


@pytest.fixture
def yielding_store():
    return YieldingMemoryStore()


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
async def redis_store(redis_client):
    store = RedisRoomStore(redis_client, key_prefix="test")
    yield store
    await store.close()


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def transcriber():
    return FakeTranscriber("hola a todos")


@pytest.fixture
def make_session(memory_store, translator, transcriber):
    """메모리 스토어를 공유하는 세션을 만들고 on_event 이벤트를 기록합니다."""

    def _make(store=None, translator_=None, transcriber_=None):
        events: List[dict] = []
        session = RoomSession(
            store or memory_store,
            translator_ or translator,
            transcriber_ or transcriber,
            on_event=events.append,
        )
        session.events = events
        return session

    return _make
