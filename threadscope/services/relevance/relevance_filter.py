"""Embedding-based relevance filter for one channel export."""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from threadscope.core.exceptions import UpstreamServiceError
from threadscope.gateways.protocols import EmbeddingProvider
from threadscope.models.schemas import Chunk, Message, RelevanceResult, RelevantMark
from threadscope.services.chunking.chunker import chunk_messages
from threadscope.services.relevance.similarity import cosine_similarity

logger = logging.getLogger(__name__)


class RelevanceFilter:
    """Score message chunks against a topic query.

    The query is embedded once; every chunk is embedded and compared with
    cosine similarity. A chunk whose embedding fails is logged and counted
    as not relevant, the rest of the batch continues.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        *,
        query: str,
        threshold: float = 0.55,
        chunk_size: int = 500,
        progress_interval: int = 100,
    ) -> None:
        self._embedder = embedder
        self.query = query.strip()
        self.threshold = threshold
        self.chunk_size = chunk_size
        self.progress_interval = progress_interval

    def filter_messages(
        self,
        messages: Sequence[Message],
        *,
        channel: str,
        source: Optional[str] = None,
    ) -> RelevanceResult:
        """Chunk, embed and score a channel's messages.

        Raises:
            UpstreamServiceError: If the query itself can't be embedded
        """
        chunks = chunk_messages(messages, channel=channel, chunk_size=self.chunk_size)
        logger.info(
            "Chunked messages",
            extra={
                "channel": channel,
                "messages": len(messages),
                "chunks": len(chunks),
            },
        )

        try:
            query_vector = self._embedder.embed(self.query)
        except UpstreamServiceError:
            logger.error(
                "Failed to embed relevance query",
                extra={"channel": channel},
                exc_info=True,
            )
            raise

        marks, failed = self.score_chunks(chunks, query_vector, channel=channel)
        marks.sort(key=lambda m: m.similarity, reverse=True)

        logger.info(
            "Relevance filtering complete",
            extra={
                "channel": channel,
                "chunks": len(chunks),
                "relevant": len(marks),
                "failed_chunks": failed,
                "threshold": self.threshold,
            },
        )
        return RelevanceResult(
            query=self.query,
            threshold=self.threshold,
            source=source,
            total_messages=len(messages),
            total_chunks=len(chunks),
            relevant_messages=len(marks),
            failed_chunks=failed,
            results=marks,
        )

    def score_chunks(
        self,
        chunks: Sequence[Chunk],
        query_vector: Sequence[float],
        *,
        channel: str = "",
    ) -> tuple[list[RelevantMark], int]:
        """Return marks above threshold and the number of failed chunks."""
        marks: list[RelevantMark] = []
        failed = 0
        started = time.monotonic()

        for i, chunk in enumerate(chunks, start=1):
            try:
                vector = self._embedder.embed(chunk.text)
                similarity = cosine_similarity(query_vector, vector)
            except (UpstreamServiceError, ValueError) as e:
                failed += 1
                logger.warning(
                    "Chunk embedding failed, treating as not relevant",
                    extra={
                        "channel": channel,
                        "message_id": chunk.metadata.id,
                        "error_class": type(e).__name__,
                        "error": str(e),
                    },
                )
                continue

            if similarity >= self.threshold:
                marks.append(
                    RelevantMark(
                        text=chunk.text,
                        metadata=chunk.metadata,
                        similarity=similarity,
                    )
                )

            if i % self.progress_interval == 0 or i == len(chunks):
                elapsed = time.monotonic() - started
                rate = i / elapsed if elapsed > 0 else 0.0
                logger.info(
                    "Relevance progress",
                    extra={
                        "channel": channel,
                        "processed": i,
                        "total": len(chunks),
                        "relevant": len(marks),
                        "eta_seconds": (
                            round((len(chunks) - i) / rate) if rate else None
                        ),
                    },
                )
        return marks, failed
