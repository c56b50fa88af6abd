"""Aggregation of analysis findings per channel and across channels."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

from threadscope.models.analysis import (
    FINDING_CATEGORIES,
    AggregatedFindings,
    AnalysisRecord,
    ChannelAnalysis,
    FindingsSummary,
    RankedFinding,
)


def aggregate_channel(records: Iterable[AnalysisRecord]) -> AggregatedFindings:
    """Union each finding category across a channel's analyses.

    Duplicates are dropped; the first occurrence fixes the position.
    """
    collected: dict[str, dict[str, None]] = {c: {} for c in FINDING_CATEGORIES}
    for record in records:
        for category in FINDING_CATEGORIES:
            for item in getattr(record.analysis, category):
                collected[category].setdefault(item, None)
    return AggregatedFindings(**{c: list(v) for c, v in collected.items()})


def rank_findings(
    analyses: Sequence[ChannelAnalysis], *, top_n: int = 20
) -> FindingsSummary:
    """Rank findings by the number of channels that mention them.

    Ties keep first-seen order (Counter.most_common is stable).
    """
    counters: dict[str, Counter[str]] = {c: Counter() for c in FINDING_CATEGORIES}
    for analysis in analyses:
        for category in FINDING_CATEGORIES:
            # one vote per channel even if a channel lists a finding twice
            counters[category].update(
                dict.fromkeys(getattr(analysis.aggregated_findings, category), 1)
            )

    def top(category: str) -> list[RankedFinding]:
        return [
            RankedFinding(name=name, channels=count)
            for name, count in counters[category].most_common(top_n)
        ]

    return FindingsSummary(
        total_threads_analyzed=sum(a.threads_analyzed for a in analyses),
        total_channels=len(analyses),
        top_vulnerabilities=top("vulnerabilities"),
        top_techniques=top("techniques"),
        top_hardware=top("hardware"),
        top_protocols=top("protocols"),
        unique_counts={c: len(counters[c]) for c in FINDING_CATEGORIES},
    )
