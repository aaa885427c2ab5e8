"""Generative-language collaborator backed by the Gemini SDK."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import google.generativeai as genai

logger = logging.getLogger("librarian.gemini")

ChatContents = list[dict[str, Any]]


class LanguageModel(Protocol):
    """The two call shapes the pipeline uses."""

    async def classify(self, prompt: str) -> str:
        ...

    async def chat(self, system_instruction: str, history: ChatContents, message: str) -> str:
        ...


class GeminiClient:
    """Thin async wrapper around the Gemini SDK with model caching.

    The SDK is configured on first call so the app can start (and refuse
    requests with a configuration error) without an API key.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        *,
        classify_temperature: float = 0.0,
        chat_temperature: float = 0.4,
    ) -> None:
        self._api_key = api_key
        self._model_name = _normalize_model_name(model)
        self._classify_temperature = classify_temperature
        self._chat_temperature = chat_temperature
        self._configured = False
        self._models: Dict[str, genai.GenerativeModel] = {}

    def _ensure_configured(self) -> None:
        if self._configured:
            return
        if not self._api_key:
            raise ValueError("Gemini API key is required")
        if not self._model_name:
            raise ValueError("Gemini model name is required")
        genai.configure(api_key=self._api_key)
        self._configured = True

    def _classifier(self) -> genai.GenerativeModel:
        self._ensure_configured()
        if self._model_name not in self._models:
            self._models[self._model_name] = genai.GenerativeModel(self._model_name)
        return self._models[self._model_name]

    async def classify(self, prompt: str) -> str:
        """One-shot completion; returns stripped text (possibly empty)."""

        response = await self._classifier().generate_content_async(
            prompt,
            generation_config={"temperature": self._classify_temperature, "max_output_tokens": 256},
        )
        text: Optional[str] = getattr(response, "text", None)
        return (text or "").strip()

    async def chat(self, system_instruction: str, history: ChatContents, message: str) -> str:
        """Multi-turn reply. ``history`` must open on a user turn."""

        self._ensure_configured()
        model = genai.GenerativeModel(
            self._model_name,
            system_instruction=system_instruction,
            generation_config={"temperature": self._chat_temperature},
        )
        session = model.start_chat(history=history)
        response = await session.send_message_async(message)
        return response.text


def _normalize_model_name(name: Optional[str]) -> str:
    """Strip an optional ``models/`` prefix and surrounding whitespace."""

    if not name:
        return ""
    cleaned = name.strip()
    if cleaned.startswith("models/"):
        return cleaned.split("/", 1)[1]
    return cleaned
