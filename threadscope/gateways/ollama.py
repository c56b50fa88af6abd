"""Ollama adapters for embeddings and chat.

API docs: https://github.com/ollama/ollama/blob/main/docs/api.md
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from threadscope.core.exceptions import UpstreamServiceError
from threadscope.gateways.http import post_json
from threadscope.gateways.protocols import ChatCompletion

logger = logging.getLogger(__name__)


class OllamaEmbeddingClient:
    """Embed text with a local Ollama embedding model."""

    service = "ollama-embeddings"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()

    def embed(self, text: str) -> list[float]:
        data = post_json(
            self._session,
            f"{self.base_url}/api/embeddings",
            {"model": self.model, "prompt": text},
            service=self.service,
            timeout=self.timeout,
        )
        embedding = data.get("embedding")
        if not isinstance(embedding, list) or not embedding:
            raise UpstreamServiceError(
                "Ollama response has no embedding", service=self.service
            )
        return [float(x) for x in embedding]


class OllamaChatClient:
    """Chat completion against a local Ollama model.

    Requests JSON-formatted output; token counts come from Ollama's
    ``prompt_eval_count`` and ``eval_count``.
    """

    service = "ollama-chat"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1",
        temperature: float = 0.3,
        timeout: float = 120.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._session = session or requests.Session()
        logger.info("Initialized OllamaChatClient with model: %s", model)

    @property
    def name(self) -> str:
        return f"ollama:{self.model}"

    def complete(self, messages: list[dict[str, str]]) -> ChatCompletion:
        data = post_json(
            self._session,
            f"{self.base_url}/api/chat",
            {
                "model": self.model,
                "messages": messages,
                "stream": False,
                "format": "json",
                "options": {"temperature": self.temperature},
            },
            service=self.service,
            timeout=self.timeout,
        )
        message = data.get("message")
        if not isinstance(message, dict) or "content" not in message:
            raise UpstreamServiceError(
                "Ollama chat response has no message content", service=self.service
            )
        return ChatCompletion(
            content=str(message["content"] or ""),
            prompt_tokens=int(data.get("prompt_eval_count") or 0),
            completion_tokens=int(data.get("eval_count") or 0),
        )
