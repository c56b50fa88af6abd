"""Split message content into fixed-size chunks for embedding."""

from __future__ import annotations

from typing import Iterable

from threadscope.models.schemas import Chunk, Message, RelevanceMetadata


def chunk_messages(
    messages: Iterable[Message], *, channel: str, chunk_size: int = 500
) -> list[Chunk]:
    """Chunk every non-empty message.

    Content longer than ``chunk_size`` characters is cut into consecutive
    slices; every slice carries the source message's metadata.
    Embed-only messages (blank content) produce no chunks.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")

    chunks: list[Chunk] = []
    for msg in messages:
        text = msg.content
        if not text or not text.strip():
            continue
        metadata = RelevanceMetadata(
            id=msg.id,
            timestamp=msg.timestamp,
            author=msg.author.name,
            channel=channel,
        )
        for start in range(0, len(text), chunk_size):
            piece = text[start : start + chunk_size]
            if piece.strip():
                chunks.append(Chunk(text=piece, metadata=metadata))
    return chunks
