"""Chat completion client returning an explicit success/failure result."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import httpx

from inventory_assistant.memory.models import ConversationMessage

logger = logging.getLogger("inventory.generation")

HISTORY_WINDOW = 4
DEFAULT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


class FailureKind(str, Enum):
    CONFIGURATION = "configuration"
    UPSTREAM = "upstream"
    TRANSPORT = "transport"
    EMPTY_CONTENT = "empty_content"


@dataclass(slots=True, frozen=True)
class GenerationResult:
    content: str | None = None
    failure: FailureKind | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and bool(self.content)

    @classmethod
    def success(cls, content: str) -> "GenerationResult":
        return cls(content=content)

    @classmethod
    def failed(cls, failure: FailureKind, error: str) -> "GenerationResult":
        return cls(failure=failure, error=error)


def _upstream_error(status_code: int, body: str) -> str:
    try:
        message = json.loads(body)["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = None
    if not isinstance(message, str) or not message:
        message = body
    return f"AI error ({status_code}): {message}"


class GenerationClient:
    """Single-attempt client for an OpenAI-compatible chat completions endpoint.

    There is no retry: the request is bounded by the HTTP client timeout and
    every failure mode is reported through :class:`GenerationResult` so the
    caller can fall back without handling exceptions.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = "gpt-4o-mini",
        url: str = DEFAULT_COMPLETIONS_URL,
        temperature: float = 0.2,
        max_tokens: int = 500,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = (api_key or "").strip()
        self.model = model
        self.url = url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def build_messages(
        self,
        system_prompt: str,
        history: Sequence[ConversationMessage],
        message: str,
    ) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": system_prompt}]
        for turn in list(history)[-HISTORY_WINDOW:]:
            messages.append({"role": turn.role, "content": turn.content})
        messages.append({"role": "user", "content": message})
        return messages

    async def generate(
        self,
        system_prompt: str,
        history: Sequence[ConversationMessage],
        message: str,
    ) -> GenerationResult:
        if not self.enabled:
            return GenerationResult.failed(
                FailureKind.CONFIGURATION,
                "AI generation is not configured (missing API key).",
            )

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": self.build_messages(system_prompt, history, message),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self.url, headers=headers, json=payload)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Completion request failed: %s", exc)
            return GenerationResult.failed(FailureKind.TRANSPORT, f"AI call failed: {exc}")

        if not response.is_success:
            error = _upstream_error(response.status_code, response.text)
            logger.warning("Completion API returned %s", response.status_code)
            return GenerationResult.failed(FailureKind.UPSTREAM, error)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("Unparseable completion payload: %s", exc)
            return GenerationResult.failed(FailureKind.TRANSPORT, f"AI call failed: invalid response ({exc})")

        if not isinstance(content, str) or not content.strip():
            return GenerationResult.failed(FailureKind.EMPTY_CONTENT, "AI returned an empty response.")

        return GenerationResult.success(content.strip())
