"""Use case: score one channel export for relevance and store the marks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence

from threadscope.models.schemas import ChannelExport, Message, RelevanceResult
from threadscope.services.reporting.report_writer import render_relevance

logger = logging.getLogger(__name__)


class _Repository(Protocol):
    def get_export_path(self, channel: str) -> Path: ...

    def load_export(
        self, channel: str, path: Optional[Path] = None
    ) -> ChannelExport: ...

    def save_relevance(
        self, channel: str, result: RelevanceResult, readable: Optional[str] = None
    ) -> str: ...


class _RelevanceFilter(Protocol):
    def filter_messages(
        self,
        messages: Sequence[Message],
        *,
        channel: str,
        source: Optional[str] = None,
    ) -> RelevanceResult: ...


@dataclass
class FilterChannelDeps:
    """Dependencies required by FilterChannelUseCase."""

    repository: _Repository
    relevance_filter: _RelevanceFilter


class FilterChannelUseCase:
    """Load an export, filter it and persist the relevance set."""

    def __init__(self, deps: FilterChannelDeps) -> None:
        self.d = deps

    def execute(
        self,
        *,
        channel: str,
        correlation_id: str,
        export_path: Optional[Path] = None,
    ) -> RelevanceResult:
        """Execute the use case.

        Args:
            channel: Channel export name
            correlation_id: Correlation id for logging
            export_path: Optional explicit export file

        Raises:
            InputNotFoundError, MalformedInputError: Export can't be loaded
            UpstreamServiceError: Query embedding failed
        """
        path = export_path or self.d.repository.get_export_path(channel)
        export = self.d.repository.load_export(channel, path)
        result = self.d.relevance_filter.filter_messages(
            export.messages, channel=channel, source=str(path)
        )
        self.d.repository.save_relevance(channel, result, render_relevance(result))
        logger.info(
            "Channel filtered",
            extra={
                "correlation_id": correlation_id,
                "channel": channel,
                "relevant": result.relevant_messages,
                "chunks": result.total_chunks,
            },
        )
        return result
