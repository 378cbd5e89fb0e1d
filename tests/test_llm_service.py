"""LLM 服务层测试（不发起真实网络请求）。"""

import pytest

from vibematch.services.llm_service import (
    GeminiService,
    LLMService,
    LLMServiceError,
    OpenAIService,
    create_llm_service,
)


class TestCreateLLMService:

    def test_openai(self):
        assert isinstance(create_llm_service("openai"), OpenAIService)

    def test_gemini(self):
        assert isinstance(create_llm_service("gemini"), GeminiService)

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_llm_service("llama")


class TestMissingKeys:
    """测试缺少 API key 时抛 LLMServiceError。"""

    def test_openai_without_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(LLMServiceError):
            OpenAIService().call("hello")

    def test_gemini_without_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

        with pytest.raises(LLMServiceError):
            GeminiService().call("hello")


class TestLLMServiceFacade:

    def test_set_instance(self, mock_llm):
        LLMService.set_instance(mock_llm)
        try:
            assert LLMService.get_instance() is mock_llm
        finally:
            LLMService.reset()

    def test_suggestion_service_uses_facade(self, storage, mock_llm, builder, investor):
        from vibematch.services import SuggestionService

        LLMService.set_instance(mock_llm)
        try:
            SuggestionService(storage).suggest(builder)
        finally:
            LLMService.reset()

        assert mock_llm.call_count == 1
