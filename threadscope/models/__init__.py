"""Data models package.

Exports all Pydantic models for exports, relevance sets, threads and analyses.
"""

from threadscope.models.analysis import (
    AggregatedFindings,
    AnalysisRecord,
    ChannelAnalysis,
    FindingsSummary,
    RankedFinding,
    ThreadAnalysis,
    ThreadInfo,
    TokenUsage,
)
from threadscope.models.schemas import (
    Author,
    ChannelExport,
    Chunk,
    Message,
    Reference,
    RelevanceMetadata,
    RelevanceResult,
    RelevantMark,
    Thread,
    ThreadMessage,
    ThreadsDocument,
    ThreadsMetadata,
    ThreadStatistics,
    thread_messages,
)

__all__ = [
    "Author",
    "Reference",
    "Message",
    "ChannelExport",
    "RelevanceMetadata",
    "Chunk",
    "RelevantMark",
    "RelevanceResult",
    "ThreadMessage",
    "Thread",
    "ThreadStatistics",
    "ThreadsMetadata",
    "ThreadsDocument",
    "ThreadAnalysis",
    "TokenUsage",
    "ThreadInfo",
    "AnalysisRecord",
    "AggregatedFindings",
    "ChannelAnalysis",
    "RankedFinding",
    "FindingsSummary",
    "thread_messages",
]
