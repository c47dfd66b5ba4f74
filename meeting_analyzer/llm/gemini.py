"""
GeminiLanguageModel: Google Gemini via the generateContent REST API.

Instructions go in systemInstruction, the transcript is the single user turn,
and responseMimeType=application/json asks for a bare JSON object.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from meeting_analyzer.config import Settings, get_settings
from meeting_analyzer.errors import ModelInvocationError
from meeting_analyzer.llm.base import LanguageModel

logger = logging.getLogger(__name__)


def _log_request(model: str, content: str, max_content_len: int = 2000) -> None:
    """Log payload sent to Gemini (content truncated for readability)."""
    length = len(content)
    display = content if length <= max_content_len else content[:max_content_len] + f"\n... [truncated, total {length} chars]"
    logger.info("LLM request to Gemini: model=%s, content len=%s", model, length)
    logger.debug("LLM request content:\n%s", display)


def _extract_text(data: dict[str, Any]) -> str:
    """Return the first candidate's text, or raise if the response has none."""
    candidates = data.get("candidates") or []
    if not candidates:
        feedback = data.get("promptFeedback") or {}
        reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if reason:
            raise ModelInvocationError(f"Gemini blocked the request: {reason}")
        raise ModelInvocationError("Gemini response missing candidates")
    first = candidates[0] if isinstance(candidates, list) else None
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not parts or not isinstance(parts, list):
        raise ModelInvocationError("Gemini response missing parts")
    return "".join(str(part.get("text", "")) for part in parts if isinstance(part, dict)).strip()


class GeminiLanguageModel(LanguageModel):
    """transport is injectable for tests (httpx.MockTransport)."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com",
        temperature: float = 0.2,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._temperature = temperature
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "GeminiLanguageModel":
        settings = settings or get_settings()
        return cls(
            api_key=(settings.GOOGLE_API_KEY or "").strip(),
            base_url=settings.GEMINI_BASE_URL,
            temperature=settings.LLM_TEMPERATURE,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )

    async def generate_json(self, model: str, instructions: str, content: str) -> str:
        if not self._api_key:
            raise ModelInvocationError("GOOGLE_API_KEY is required for analysis")

        model_name = model if model.startswith("models/") else f"models/{model}"
        url = f"{self._base_url}/v1beta/{model_name}:generateContent"
        payload = {
            "systemInstruction": {"parts": [{"text": instructions}]},
            "contents": [{"role": "user", "parts": [{"text": content}]}],
            "generationConfig": {
                "temperature": self._temperature,
                "responseMimeType": "application/json",
            },
        }

        _log_request(model, content)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    url,
                    json=payload,
                    headers={"x-goog-api-key": self._api_key, "Content-Type": "application/json"},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Gemini error: %s - %s", e.response.status_code, e.response.text[:500])
            raise ModelInvocationError(f"Gemini error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ModelInvocationError(f"Failed to reach Gemini API: {e}") from e
        except ValueError as e:
            raise ModelInvocationError("Gemini returned a non-JSON HTTP body") from e

        if not isinstance(data, dict):
            raise ModelInvocationError(f"Gemini returned a JSON {type(data).__name__}, expected an object")
        text = _extract_text(data)
        if not text:
            raise ModelInvocationError("Gemini returned an empty response")
        return text
