"""Gateway protocols (ports) for the embedding and chat LLM services.

Concrete adapters (Ollama, OpenAI) satisfy them via structural subtyping;
tests pass small stubs instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ChatCompletion:
    """Text returned by a chat model plus token accounting."""

    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class EmbeddingProvider(Protocol):
    """Port for text embedding."""

    def embed(self, text: str) -> list[float]:
        """Return the embedding vector for ``text``.

        Raises UpstreamServiceError when the service fails.
        """
        ...


class ChatProvider(Protocol):
    """Port for chat completion."""

    @property
    def name(self) -> str:
        """Provider label used in logs and errors."""
        ...

    def complete(self, messages: list[dict[str, str]]) -> ChatCompletion:
        """Send role/content messages and return the assistant reply.

        Raises UpstreamServiceError when the service fails.
        """
        ...
