"""Chat-completion client that answers in rooms."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

import aiohttp

SYSTEM_PROMPT = (
    "You are a helpful AI assistant in a group chat. Keep your responses concise, "
    "friendly, and relevant to the conversation. You can see the recent conversation "
    "history to provide context-aware responses."
)
HISTORY_LIMIT = 10
MAX_TOKENS = 150
TEMPERATURE = 0.7
FALLBACK_RESPONSE = "I'm here to help! What would you like to discuss?"
DEFAULT_BASE_URL = "https://api.openai.com/v1"


class GPTError(Exception):
    """Raised when no answer could be generated."""


def build_messages(conversation: Iterable[str], user_message: str) -> list[dict[str, str]]:
    """The system prompt, the last ``HISTORY_LIMIT`` conversation entries and the user message."""
    history = list(conversation)[-HISTORY_LIMIT:]
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        *({"role": "user", "content": entry} for entry in history),
        {"role": "user", "content": user_message},
    ]


class GPTClient:
    """Asks a chat-completion endpoint for replies."""

    def __init__(self, api_key: str, model: str, base_url: str = DEFAULT_BASE_URL) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_config(cls, api_key: str, model: str) -> GPTClient | None:
        """A client, or None when no API key is configured."""
        return cls(api_key, model) if api_key else None

    def is_available(self) -> bool:
        """Whether the client has an API key."""
        return bool(self.api_key)

    async def generate_response(self, conversation: Iterable[str], user_message: str) -> str:
        """Generate a reply to ``user_message`` given the recent conversation."""
        if not self.is_available():
            raise GPTError("GPT client not initialized - API key required")
        payload = {
            "model": self.model,
            "messages": build_messages(conversation, user_message),
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }
        try:
            body = await self._post(payload)
        except (aiohttp.ClientError, ValueError, TimeoutError) as exc:
            raise GPTError(f"failed to generate GPT response: {exc}") from exc

        choices = body.get("choices") if isinstance(body, dict) else None
        if not isinstance(choices, list) or not choices:
            raise GPTError("no response generated from GPT")
        try:
            content = choices[0]["message"]["content"]
        except (KeyError, TypeError):
            content = None
        response = content.strip() if isinstance(content, str) else ""
        return response or FALLBACK_RESPONSE

    async def _post(self, payload: dict[str, Any]) -> Any:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        async with aiohttp.ClientSession(headers=headers) as session:
            async with session.post(f"{self.base_url}/chat/completions", json=payload) as resp:
                text = await resp.text()
                if resp.status >= 400:
                    raise GPTError(
                        f"failed to generate GPT response: status code: {resp.status}, "
                        f"body: {text.strip()}"
                    )
                return json.loads(text)