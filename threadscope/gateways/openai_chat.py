"""OpenAI chat completions adapter."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from threadscope.core.exceptions import UpstreamServiceError
from threadscope.gateways.http import post_json
from threadscope.gateways.protocols import ChatCompletion

logger = logging.getLogger(__name__)


class OpenAIChatClient:
    """Chat completion via the OpenAI REST API in JSON-object mode."""

    service = "openai-chat"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        temperature: float = 0.3,
        max_tokens: int = 1500,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required for OpenAIChatClient")
        self._api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._session = session or requests.Session()
        logger.info("Initialized OpenAIChatClient with model: %s", model)

    @property
    def name(self) -> str:
        return f"openai:{self.model}"

    def complete(self, messages: list[dict[str, str]]) -> ChatCompletion:
        data = post_json(
            self._session,
            f"{self.base_url}/chat/completions",
            {
                "model": self.model,
                "messages": messages,
                "response_format": {"type": "json_object"},
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
            },
            service=self.service,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        if isinstance(data.get("error"), dict):
            raise UpstreamServiceError(
                str(data["error"].get("message", "OpenAI error")),
                service=self.service,
            )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamServiceError(
                "OpenAI response has no choices[0].message.content",
                service=self.service,
            ) from e
        usage = data.get("usage") or {}
        return ChatCompletion(
            content=str(content or ""),
            prompt_tokens=int(usage.get("prompt_tokens") or 0),
            completion_tokens=int(usage.get("completion_tokens") or 0),
        )
