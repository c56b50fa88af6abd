"""Use cases: analyze a channel's threads, rank findings across channels."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from threadscope.core.exceptions import InputNotFoundError
from threadscope.models.analysis import ChannelAnalysis, FindingsSummary
from threadscope.models.schemas import Thread, ThreadsDocument
from threadscope.services.analysis.aggregator import rank_findings
from threadscope.services.reporting.report_writer import (
    render_analysis,
    render_findings,
)

logger = logging.getLogger(__name__)


class _Repository(Protocol):
    def load_threads(self, channel: str) -> ThreadsDocument: ...

    def load_analysis(self, channel: str) -> ChannelAnalysis: ...

    def save_analysis(
        self, channel: str, analysis: ChannelAnalysis, readable: Optional[str] = None
    ) -> str: ...

    def save_findings(
        self, summary: FindingsSummary, readable: Optional[str] = None
    ) -> str: ...


class _Analyzer(Protocol):
    async def analyze_all(
        self, threads: Sequence[Thread], *, channel: str
    ) -> ChannelAnalysis: ...


@dataclass
class AnalyzeChannelDeps:
    """Dependencies required by AnalyzeChannelUseCase."""

    repository: _Repository
    analyzer: _Analyzer


class AnalyzeChannelUseCase:
    """Run LLM analysis over a channel's stored threads."""

    def __init__(self, deps: AnalyzeChannelDeps) -> None:
        self.d = deps

    async def execute(self, *, channel: str, correlation_id: str) -> ChannelAnalysis:
        """Execute the use case.

        Raises:
            InputNotFoundError, MalformedInputError: Threads artifact can't
                be loaded
        """
        document = self.d.repository.load_threads(channel)
        analysis = await self.d.analyzer.analyze_all(document.threads, channel=channel)
        self.d.repository.save_analysis(channel, analysis, render_analysis(analysis))
        logger.info(
            "Channel analyzed",
            extra={
                "correlation_id": correlation_id,
                "channel": channel,
                "analyzed": analysis.threads_analyzed,
                "failed": analysis.threads_failed,
                "total_tokens": analysis.total_tokens,
            },
        )
        return analysis


@dataclass
class RankFindingsDeps:
    """Dependencies required by RankFindingsUseCase."""

    repository: _Repository
    top_n: int = 20


class RankFindingsUseCase:
    """Rank findings across every channel that has an analysis artifact."""

    def __init__(self, deps: RankFindingsDeps) -> None:
        self.d = deps

    def execute(self, *, channels: Sequence[str], correlation_id: str) -> FindingsSummary:
        """Execute the use case; channels without an analysis are skipped."""
        analyses: list[ChannelAnalysis] = []
        for channel in channels:
            try:
                analyses.append(self.d.repository.load_analysis(channel))
            except InputNotFoundError:
                logger.warning(
                    "No analysis for channel, skipping",
                    extra={"correlation_id": correlation_id, "channel": channel},
                )
        summary = rank_findings(analyses, top_n=self.d.top_n)
        self.d.repository.save_findings(summary, render_findings(summary))
        logger.info(
            "Findings ranked",
            extra={
                "correlation_id": correlation_id,
                "channels": summary.total_channels,
                "threads": summary.total_threads_analyzed,
            },
        )
        return summary
