"""번역 응답 파서 및 TranslationService 테스트."""

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda

from modules.translation import (
    TranslationService,
    TranslationSettings,
    build_translation_prompt,
    extract_translations,
    translation_targets,
)


# ------------------------------------------------------------------
# 파서
# ------------------------------------------------------------------

def test_extract_translations_by_code():
    response = "es:\nHola\n\nen:\nHello there\n\nfr:\nBonjour"
    result = extract_translations(response, "es", "Hola", ["en", "fr"])
    assert result == {"es": "Hola", "en": "Hello there", "fr": "Bonjour"}


def test_extract_translations_by_display_name():
    response = "English: Good morning\nFrench:\nBonjour"
    result = extract_translations(response, "es", "Buenos dias", ["en", "fr"])
    assert result == {"es": "Buenos dias", "en": "Good morning", "fr": "Bonjour"}


def test_extract_translations_cleans_blocks():
    response = (
        'en:\n"Hello   world"\n\n'
        "fr:\n[translation in proper script] Bonjour\tle monde END\n"
    )
    result = extract_translations(response, "es", "Hola mundo", ["en", "fr"])
    assert result["en"] == "Hello world"
    assert result["fr"] == "Bonjour le monde"


def test_extract_translations_drops_unrequested_and_source():
    response = "es:\nOtra cosa\n\nde:\nHallo\n\nen:\nHi"
    result = extract_translations(response, "es", "Hola", ["en"])
    assert result == {"es": "Hola", "en": "Hi"}


def test_extract_translations_keeps_recognized_blocks_from_malformed_output():
    response = "Sure! Here you go\nen:\nHi\nNote: informal\nfr:"
    result = extract_translations(response, "es", "Hola", ["en", "fr"])
    assert result == {"es": "Hola", "en": "Hi"}


def test_extract_translations_empty_response():
    assert extract_translations("", "es", "Hola", ["en"]) == {"es": "Hola"}


def test_prompt_lists_targets_and_response_format():
    prompt = build_translation_prompt("kaise ho", "hi", ["en", "fr"])
    assert "SOURCE TEXT (hi (Hindi)):" in prompt
    assert "en (English)\nfr (French)" in prompt
    assert "en:\n[translation in proper script]" in prompt
    assert "phonetically" in prompt


# ------------------------------------------------------------------
# 서비스
# ------------------------------------------------------------------

def _settings(**kwargs):
    return TranslationSettings(OPENAI_API_KEY=kwargs.pop("OPENAI_API_KEY", "test-key"), **kwargs)


def _raising_llm():
    def _boom(_):
        raise RuntimeError("model unavailable")
    return RunnableLambda(_boom)


def test_translation_targets_dedup_and_filter():
    assert translation_targets("en", ["en", "en", "es"]) == ["es"]
    assert translation_targets("es", ["fr", "xx", "fr", "de"]) == ["fr", "de"]


async def test_translate_parses_model_response():
    llm = FakeListChatModel(responses=["es:\nHola\n\nen:\nHello\n\nfr:\nBonjour"])
    service = TranslationService(settings=_settings(), llm=llm)

    result = await service.translate("Hola", "es", ["en", "fr", "en"])
    assert result == {"es": "Hola", "en": "Hello", "fr": "Bonjour"}


async def test_translate_without_targets_skips_model():
    service = TranslationService(settings=_settings(), llm=_raising_llm())
    assert await service.translate("Hola", "es", ["es"]) == {"es": "Hola"}
    assert await service.translate("Hola", "es", []) == {"es": "Hola"}


async def test_translate_failure_returns_identity():
    service = TranslationService(settings=_settings(), llm=_raising_llm())
    assert await service.translate("Hola", "es", ["en"]) == {"es": "Hola"}


async def test_translate_empty_response_returns_identity():
    service = TranslationService(settings=_settings(), llm=FakeListChatModel(responses=["   "]))
    assert await service.translate("Hola", "es", ["en"]) == {"es": "Hola"}


async def test_translate_without_api_key_returns_identity():
    service = TranslationService(settings=_settings(OPENAI_API_KEY=""))
    assert await service.translate("Hola", "es", ["en"]) == {"es": "Hola"}
