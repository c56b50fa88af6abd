"""LLM analysis of conversation threads.

Threads are analyzed in fixed-size batches; calls within a batch run
concurrently in worker threads and batches are separated by a fixed pause.
A failed thread is logged and counted, it never aborts the batch.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Awaitable, Callable, Optional, Sequence

from pydantic import ValidationError

from threadscope.core.exceptions import UpstreamServiceError
from threadscope.gateways.protocols import ChatProvider
from threadscope.models.analysis import (
    AnalysisRecord,
    ChannelAnalysis,
    ThreadAnalysis,
    ThreadInfo,
    TokenUsage,
)
from threadscope.models.schemas import Thread, thread_messages
from threadscope.services.analysis.aggregator import aggregate_channel
from threadscope.services.threads.statistics import filter_substantial

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

RESPONSE_SCHEMA = """{
  "summary": "brief 1-2 sentence summary of the conversation",
  "topic": "main topic",
  "relevance_score": 0-10,
  "vulnerabilities": ["list of vulnerabilities"],
  "techniques": ["list of techniques"],
  "hardware": ["list of hardware"],
  "protocols": ["list of protocols"],
  "security_risks": ["list of risks"],
  "actionable_insights": ["list of insights"],
  "key_participants": ["usernames"]
}"""


def parse_analysis(text: str) -> ThreadAnalysis:
    """Extract a ThreadAnalysis from a model reply.

    The first ``{...}`` span is parsed as JSON. A reply without a usable
    JSON object becomes the summary, with every finding list empty.
    """
    match = _JSON_OBJECT.search(text or "")
    if match:
        try:
            data = json.loads(match.group(0))
            if isinstance(data, dict):
                return ThreadAnalysis.model_validate(data)
        except (json.JSONDecodeError, ValidationError):
            logger.debug("Model reply is not a valid analysis object", exc_info=True)
    return ThreadAnalysis(summary=(text or "").strip())


class ThreadAnalyzer:
    """Send substantial threads to a chat model and collect findings."""

    def __init__(
        self,
        provider: ChatProvider,
        *,
        system_prompt: str,
        min_thread_size: int = 3,
        batch_size: int = 5,
        batch_delay_seconds: float = 1.0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        """Create an analyzer.

        Args:
            provider: Chat LLM adapter
            system_prompt: System message sent with every request
            min_thread_size: Threads smaller than this are skipped
            batch_size: Threads analyzed concurrently per batch
            batch_delay_seconds: Pause between batches
            sleep: Awaitable sleep, replaceable in tests
        """
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._provider = provider
        self.system_prompt = system_prompt
        self.min_thread_size = min_thread_size
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self._sleep = sleep or asyncio.sleep

    def build_prompt(self, thread: Thread) -> str:
        """Build the user prompt for one thread."""
        conversation = "\n\n".join(
            f"[{i}] {m.author} ({m.timestamp.isoformat()}): {m.content}"
            for i, m in enumerate(thread_messages(thread), start=1)
        )
        return (
            "Analyze this Discord conversation and extract structured information.\n\n"
            f"Thread ID: {thread.id}\n"
            f"Channel: {thread.channel or '-'}\n"
            f"Participants: {', '.join(thread.participants)}\n"
            f"Duration: {thread.duration_minutes} minutes\n"
            f"Messages: {thread.size}\n\n"
            f"CONVERSATION:\n{conversation}\n\n"
            "Respond only with a JSON object of this shape; use empty lists "
            f"where nothing applies:\n{RESPONSE_SCHEMA}"
        )

    def analyze_thread(self, thread: Thread) -> AnalysisRecord:
        """Analyze one thread synchronously.

        Raises:
            UpstreamServiceError: If the chat provider fails
        """
        completion = self._provider.complete(
            [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": self.build_prompt(thread)},
            ]
        )
        return AnalysisRecord(
            thread_id=thread.id,
            thread_info=ThreadInfo(
                channel=thread.channel,
                participants=thread.participants,
                message_count=thread.size,
                duration_minutes=thread.duration_minutes,
                start_time=thread.start_time,
            ),
            analysis=parse_analysis(completion.content),
            tokens_used=TokenUsage(
                prompt=completion.prompt_tokens,
                completion=completion.completion_tokens,
                total=completion.total_tokens,
            ),
        )

    def _safe_analyze(self, thread: Thread) -> Optional[AnalysisRecord]:
        try:
            return self.analyze_thread(thread)
        except UpstreamServiceError as e:
            logger.warning(
                "Thread analysis failed",
                extra={
                    "thread_id": thread.id,
                    "channel": thread.channel,
                    "service": e.service,
                    "status_code": e.status_code,
                    "error": str(e),
                },
            )
            return None

    async def analyze_all(
        self, threads: Sequence[Thread], *, channel: str
    ) -> ChannelAnalysis:
        """Analyze every substantial thread of a channel."""
        eligible = filter_substantial(threads, self.min_thread_size)
        skipped = len(threads) - len(eligible)
        total_batches = (len(eligible) + self.batch_size - 1) // self.batch_size
        logger.info(
            "Starting thread analysis",
            extra={
                "channel": channel,
                "provider": self._provider.name,
                "threads": len(eligible),
                "skipped": skipped,
                "batches": total_batches,
            },
        )

        records: list[AnalysisRecord] = []
        failed = 0
        for batch_no, start in enumerate(
            range(0, len(eligible), self.batch_size), start=1
        ):
            batch = eligible[start : start + self.batch_size]
            results = await asyncio.gather(
                *(asyncio.to_thread(self._safe_analyze, t) for t in batch)
            )
            for result in results:
                if result is None:
                    failed += 1
                else:
                    records.append(result)
            logger.info(
                "Analysis batch complete",
                extra={
                    "channel": channel,
                    "batch": batch_no,
                    "batches": total_batches,
                    "analyzed": len(records),
                    "failed": failed,
                },
            )
            if start + self.batch_size < len(eligible):
                await self._sleep(self.batch_delay_seconds)

        return ChannelAnalysis(
            channel=channel,
            threads_analyzed=len(records),
            threads_failed=failed,
            threads_skipped=skipped,
            total_tokens=sum(r.tokens_used.total for r in records),
            aggregated_findings=aggregate_channel(records),
            detailed_analyses=records,
        )
