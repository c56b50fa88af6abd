"""Use case: build conversation threads for one channel."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from threadscope.models.schemas import ChannelExport, RelevanceResult, ThreadsDocument
from threadscope.services.reporting.report_writer import (
    build_threads_document,
    render_threads,
)
from threadscope.services.threads.builder import ThreadBuilder, relevance_index

logger = logging.getLogger(__name__)


class _Repository(Protocol):
    def get_export_path(self, channel: str) -> Path: ...

    def get_relevance_path(self, channel: str) -> Path: ...

    def load_export(
        self, channel: str, path: Optional[Path] = None
    ) -> ChannelExport: ...

    def load_relevance(self, channel: str) -> RelevanceResult: ...

    def save_threads(
        self, channel: str, document: ThreadsDocument, readable: Optional[str] = None
    ) -> str: ...


@dataclass
class ThreadChannelDeps:
    """Dependencies required by ThreadChannelUseCase."""

    repository: _Repository
    builder: ThreadBuilder
    min_thread_size: int = 3


class ThreadChannelUseCase:
    """Join an export with its relevance set and persist the threads."""

    def __init__(self, deps: ThreadChannelDeps) -> None:
        self.d = deps

    def execute(
        self,
        *,
        channel: str,
        correlation_id: str,
        export_path: Optional[Path] = None,
    ) -> ThreadsDocument:
        """Execute the use case.

        Raises:
            InputNotFoundError, MalformedInputError: Export or relevance set
                can't be loaded
        """
        path = export_path or self.d.repository.get_export_path(channel)
        export = self.d.repository.load_export(channel, path)
        relevance = self.d.repository.load_relevance(channel)

        best = relevance_index(relevance.results)
        threads = self.d.builder.build(
            export.messages, best, similarities=best, channel=channel
        )
        document = build_threads_document(
            threads,
            channel=channel,
            time_window_seconds=self.d.builder.time_window.total_seconds(),
            min_thread_size=self.d.min_thread_size,
            source_file=str(self.d.repository.get_relevance_path(channel)),
            original_export=str(path),
        )
        self.d.repository.save_threads(channel, document, render_threads(threads))

        stats = document.statistics
        logger.info(
            "Channel threaded",
            extra={
                "correlation_id": correlation_id,
                "channel": channel,
                "relevant_ids": len(best),
                "threads": stats.total_threads,
                "substantial_threads": document.substantial_threads,
                "avg_messages_per_thread": stats.avg_messages_per_thread,
            },
        )
        return document
