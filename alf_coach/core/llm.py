"""Model client — sends one system prompt plus chat history, returns the reply text."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import httpx
import structlog

from alf_coach.config import get_settings
from alf_coach.db.models import ChatMessage

logger = structlog.get_logger()


class ModelClientError(RuntimeError):
    """The model call failed or returned an unusable envelope."""


def to_model_history(messages: list[ChatMessage] | tuple[ChatMessage, ...]) -> list[dict[str, Any]]:
    """Convert a transcript to ``{role, parts}`` turns.

    Leading assistant messages (stage greetings, revision recaps) are dropped
    because the conversation sent to the model has to open with a user turn.
    """
    history: list[dict[str, Any]] = []
    for message in messages:
        if not history and message.role == "assistant":
            continue
        if not message.chat_response:
            continue
        history.append(
            {
                "role": "model" if message.role == "assistant" else "user",
                "parts": [{"text": message.chat_response}],
            }
        )
    return history


class ModelClient:
    """Thin async wrapper over a Gemini-style ``generateContent`` endpoint.

    One call per turn, no retry.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    async def generate(self, history: list[dict[str, Any]], system_prompt: str) -> str:
        """Return the text of the first candidate. Raises ModelClientError on any failure."""
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": history,
            "generationConfig": {"responseMimeType": "application/json"},
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.warning("llm.request_failed", model=self.model, error=str(e))
            raise ModelClientError(f"Model request failed: {e}") from e

        if resp.status_code >= 400:
            logger.warning("llm.bad_status", model=self.model, status=resp.status_code)
            raise ModelClientError(f"Model API error ({resp.status_code}): {resp.text[:200]}")

        try:
            data = resp.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ModelClientError("Invalid response structure from model API") from e
        if not isinstance(text, str):
            raise ModelClientError("Invalid response structure from model API")

        logger.info("llm.generated", model=self.model, turns=len(history), chars=len(text))
        return text


@lru_cache
def get_model_client() -> ModelClient:
    """Get cached model client built from settings."""
    settings = get_settings()
    return ModelClient(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        model=settings.gemini_model,
        timeout=settings.model_timeout_seconds,
    )
