"""TranscriptionService 테스트 (가짜 OpenAI 클라이언트)."""

from types import SimpleNamespace

from modules.stt import TranscriptionConfig, TranscriptionService


class _FakeTranscriptions:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def _service(text="hola", error=None):
    transcriptions = _FakeTranscriptions(text=text, error=error)
    client = SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))
    config = TranscriptionConfig(API_KEY="test-key", MODEL="whisper-1", TEMPERATURE=0.0)
    return TranscriptionService(config=config, client=client), transcriptions


async def test_transcribe_with_language_hint():
    service, transcriptions = _service(text=" hola ")

    assert await service.transcribe(b"wav", language="es") == "hola"
    call = transcriptions.calls[0]
    assert call["model"] == "whisper-1"
    assert call["temperature"] == 0.0
    assert call["language"] == "es"
    assert call["file"] == ("audio.wav", b"wav", "audio/wav")


async def test_transcribe_auto_detect_omits_language():
    service, transcriptions = _service()

    await service.transcribe(b"wav", language="auto")
    await service.transcribe(b"wav", language=None)
    assert all("language" not in call for call in transcriptions.calls)


async def test_transcribe_failure_returns_empty():
    service, _ = _service(error=RuntimeError("network down"))
    assert await service.transcribe(b"wav", language="es") == ""


async def test_transcribe_empty_audio_skips_request():
    service, transcriptions = _service()
    assert await service.transcribe(b"", language="es") == ""
    assert transcriptions.calls == []


async def test_transcribe_without_api_key_returns_empty():
    service = TranscriptionService(config=TranscriptionConfig(API_KEY=None))
    assert await service.transcribe(b"wav") == ""
