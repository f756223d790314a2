"""테스트용 가짜 번역기/음성 인식기/스토어."""

import asyncio
from typing import Dict, List, Optional, Tuple

from modules.database import MemoryRoomStore


class FakeTranslator:
    """대상 언어마다 "{code}:{text}" 를 돌려주는 번역기.

    ``gate``가 주어지면 set 될 때까지 번역을 끝내지 않습니다. ``fail``이면
    원문만 담긴 맵(실패 시 동작)을 돌려줍니다.
    """

    def __init__(self, gate: Optional[asyncio.Event] = None, fail: bool = False):
        self.gate = gate
        self.fail = fail
        self.calls: List[Tuple[str, str, List[str]]] = []

    async def translate(self, text: str, source_language: str, target_languages) -> Dict[str, str]:
        targets = list(target_languages)
        self.calls.append((text, source_language, targets))
        if self.gate is not None:
            await self.gate.wait()
        result = {source_language: text}
        if not self.fail:
            result.update({code: f"{code}:{text}" for code in targets})
        return result


class FakeTranscriber:
    def __init__(self, text: str = ""):
        self.text = text
        self.calls: List[Tuple[bytes, Optional[str]]] = []

    async def transcribe(self, audio: bytes, language: Optional[str] = "auto") -> str:
        self.calls.append((audio, language))
        return self.text


class YieldingMemoryStore(MemoryRoomStore):
    """읽기마다 이벤트 루프에 제어를 넘겨 동시 실행을 교차시키는 스토어."""

    async def get(self, path):
        await asyncio.sleep(0)
        return await super().get(path)
