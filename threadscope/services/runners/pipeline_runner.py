"""PipelineRunner coordinates the stages over channels using injected use-cases.

Channels run one after another; a failing channel is logged with its error
kind and the run moves on to the next one.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from threadscope.core.config import ThreadscopeConfig
from threadscope.core.exceptions import (
    InputNotFoundError,
    MalformedInputError,
    UpstreamServiceError,
)

logger = logging.getLogger(__name__)

STAGES = ("filter", "thread", "analyze")


class _FilterUseCase(Protocol):
    def execute(self, *, channel: str, correlation_id: str) -> Any: ...


class _ThreadUseCase(Protocol):
    def execute(self, *, channel: str, correlation_id: str) -> Any: ...


class _AnalyzeUseCase(Protocol):
    async def execute(self, *, channel: str, correlation_id: str) -> Any: ...


@dataclass
class ChannelRunResult:
    """Outcome of running the requested stages for one channel."""

    channel: str
    success: bool = False
    reason: Optional[str] = None
    error_type: Optional[str] = None
    relevant_messages: int = 0
    threads: int = 0
    substantial_threads: int = 0
    threads_analyzed: int = 0
    elapsed_seconds: float = 0.0


@dataclass
class PipelineRunnerDeps:
    """Dependencies container for PipelineRunner.

    Stage use-cases may be None when the stage isn't requested (e.g. no LLM
    credentials for a filter-only run).
    """

    config: ThreadscopeConfig
    filter_use_case: Optional[_FilterUseCase] = None
    thread_use_case: Optional[_ThreadUseCase] = None
    analyze_use_case: Optional[_AnalyzeUseCase] = None


class PipelineRunner:
    """Coordinates channel iteration and error handling."""

    def __init__(self, deps: PipelineRunnerDeps) -> None:
        """Initialize runner with dependencies.

        Args:
            deps: Container of config and stage use-cases
        """
        self.d = deps

    async def run_all(
        self,
        *,
        correlation_id: str,
        channels: Optional[Sequence[str]] = None,
        stages: Sequence[str] = STAGES,
    ) -> list[ChannelRunResult]:
        """Run the stages for every channel and log a final summary."""
        self._check_stages(stages)
        targets = list(channels) if channels is not None else self.d.config.channels
        results: list[ChannelRunResult] = []
        started = time.monotonic()

        for num, channel in enumerate(targets, start=1):
            logger.info(
                "Processing channel",
                extra={
                    "correlation_id": correlation_id,
                    "channel": channel,
                    "position": num,
                    "total": len(targets),
                },
            )
            results.append(
                await self.run_single(
                    channel=channel, stages=stages, correlation_id=correlation_id
                )
            )

        succeeded = [r for r in results if r.success]
        logger.info(
            "Pipeline run complete",
            extra={
                "correlation_id": correlation_id,
                "channels": len(results),
                "succeeded": len(succeeded),
                "failed": len(results) - len(succeeded),
                "relevant_messages": sum(r.relevant_messages for r in succeeded),
                "threads": sum(r.threads for r in succeeded),
                "substantial_threads": sum(r.substantial_threads for r in succeeded),
                "threads_analyzed": sum(r.threads_analyzed for r in succeeded),
                "elapsed_seconds": round(time.monotonic() - started, 1),
            },
        )
        return results

    async def run_single(
        self,
        *,
        channel: str,
        correlation_id: str,
        stages: Sequence[str] = STAGES,
    ) -> ChannelRunResult:
        """Run the stages for one channel, never raising for channel errors."""
        self._check_stages(stages)
        result = ChannelRunResult(channel=channel)
        started = time.monotonic()
        try:
            await self._execute(result, stages, correlation_id)
            result.success = True
        except InputNotFoundError as e:
            self._record_failure(result, "input_not_found", e, correlation_id)
        except MalformedInputError as e:
            self._record_failure(result, "malformed_input", e, correlation_id)
        except UpstreamServiceError as e:
            self._record_failure(result, "upstream_service_error", e, correlation_id)
        except Exception as e:
            self._record_failure(result, "unknown_error", e, correlation_id)
        result.elapsed_seconds = round(time.monotonic() - started, 1)
        return result

    async def _execute(
        self, result: ChannelRunResult, stages: Sequence[str], correlation_id: str
    ) -> None:
        channel = result.channel
        if "filter" in stages:
            # network-bound and synchronous; keep the event loop free
            relevance = await asyncio.to_thread(
                self.d.filter_use_case.execute,
                channel=channel,
                correlation_id=correlation_id,
            )
            result.relevant_messages = relevance.relevant_messages
        if "thread" in stages:
            document = self.d.thread_use_case.execute(
                channel=channel, correlation_id=correlation_id
            )
            result.threads = document.statistics.total_threads
            result.substantial_threads = document.substantial_threads
        if "analyze" in stages:
            analysis = await self.d.analyze_use_case.execute(
                channel=channel, correlation_id=correlation_id
            )
            result.threads_analyzed = analysis.threads_analyzed

    def _check_stages(self, stages: Sequence[str]) -> None:
        unknown = [s for s in stages if s not in STAGES]
        if unknown:
            raise ValueError(f"Unknown stages: {', '.join(unknown)}")
        wired = {
            "filter": self.d.filter_use_case,
            "thread": self.d.thread_use_case,
            "analyze": self.d.analyze_use_case,
        }
        missing = [s for s in stages if wired[s] is None]
        if missing:
            raise ValueError(f"No use case wired for stages: {', '.join(missing)}")

    @staticmethod
    def _record_failure(
        result: ChannelRunResult,
        error_type: str,
        error: Exception,
        correlation_id: str,
    ) -> None:
        result.success = False
        result.error_type = error_type
        result.reason = str(error)
        logger.error(
            "Failed to process channel",
            extra={
                "correlation_id": correlation_id,
                "error_type": error_type,
                "error_class": type(error).__name__,
                "channel": result.channel,
            },
            exc_info=True,
        )
