"""LLM Service - Abstraction layer for AI model calls.

This module provides a unified interface for calling different LLM providers
(OpenAI, Gemini) with consistent error handling and response formatting.

Interface Contract:
- call() returns str (raw text); callers parse JSON themselves
- All methods raise LLMServiceError on failure
- Callers should not depend on specific LLM provider details
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod

import google.generativeai as genai
from openai import OpenAI

from config import DEFAULT_MODEL, LLM_PROVIDER, MATCH_MODEL, MATCH_TEMPERATURE


class LLMServiceError(Exception):
    """Raised when LLM call fails."""
    pass


class BaseLLMService(ABC):
    """Abstract base class for LLM services."""

    @abstractmethod
    def call(
        self,
        prompt: str,
        *,
        system: str | None = None,
        json_mode: bool = False,
    ) -> str:
        """Call the LLM with a prompt.

        Args:
            prompt: The user prompt to send to the LLM
            system: Optional fixed instruction sent ahead of the prompt
            json_mode: If True, expect JSON response

        Returns:
            str: The LLM response text

        Raises:
            LLMServiceError: If the call fails
        """
        pass


class OpenAIService(BaseLLMService):
    """OpenAI LLM service implementation."""

    def __init__(self, model: str = MATCH_MODEL, temperature: float = MATCH_TEMPERATURE):
        self.model = model
        self.temperature = temperature
        self._client: OpenAI | None = None

    def _get_client(self) -> OpenAI:
        """Get or create OpenAI client (lazy initialization)."""
        if self._client is None:
            api_key = os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise LLMServiceError("OPENAI_API_KEY environment variable not set")
            # OPENAI_BASE_URL lets the key point at a compatible gateway
            self._client = OpenAI(api_key=api_key, base_url=os.environ.get("OPENAI_BASE_URL") or None)
        return self._client

    def call(self, prompt: str, *, system: str | None = None, json_mode: bool = False) -> str:
        """Call OpenAI model."""
        try:
            client = self._get_client()
            messages = []
            if system:
                messages.append({"role": "system", "content": system})
            messages.append({"role": "user", "content": prompt})

            kwargs = {}
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}

            response = client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                **kwargs,
            )
            return response.choices[0].message.content or ""
        except LLMServiceError:
            raise
        except Exception as e:
            raise LLMServiceError(f"OpenAI call failed: {e}") from e


class GeminiService(BaseLLMService):
    """Google Gemini LLM service implementation."""

    def __init__(self, model: str = DEFAULT_MODEL, temperature: float = MATCH_TEMPERATURE):
        self.model = model
        self.temperature = temperature
        self._configured = False

    def _configure(self) -> None:
        """Configure Gemini API (lazy initialization)."""
        if self._configured:
            return
        api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
        if not api_key:
            raise LLMServiceError("GEMINI_API_KEY or GOOGLE_API_KEY environment variable not set")
        genai.configure(api_key=api_key)
        self._configured = True

    def call(self, prompt: str, *, system: str | None = None, json_mode: bool = False) -> str:
        """Call Gemini model."""
        self._configure()
        try:
            config_kwargs = {"temperature": self.temperature}
            if json_mode:
                config_kwargs["response_mime_type"] = "application/json"
            gen_config = genai.GenerationConfig(**config_kwargs)
            model = genai.GenerativeModel(self.model, system_instruction=system)
            response = model.generate_content(prompt, generation_config=gen_config)
            return response.text
        except Exception as e:
            raise LLMServiceError(f"Gemini call failed: {e}") from e


def create_llm_service(provider: str = LLM_PROVIDER) -> BaseLLMService:
    """Build the service for a provider name ("openai" or "gemini")."""
    if provider == "openai":
        return OpenAIService()
    if provider == "gemini":
        return GeminiService()
    raise ValueError(f"Unknown LLM provider: {provider}")


# Default service instance (can be swapped for testing)
class LLMService:
    """Facade for LLM services with provider switching."""

    _instance: BaseLLMService | None = None

    @classmethod
    def get_instance(cls) -> BaseLLMService:
        """Get the configured LLM service instance."""
        if cls._instance is None:
            cls._instance = create_llm_service()
        return cls._instance

    @classmethod
    def set_instance(cls, service: BaseLLMService) -> None:
        """Set a custom LLM service (useful for testing)."""
        cls._instance = service

    @classmethod
    def reset(cls) -> None:
        """Reset to default service."""
        cls._instance = None
