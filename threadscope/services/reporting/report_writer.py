"""Human-readable renderings of pipeline artifacts, plus the threads document."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from threadscope.models.analysis import ChannelAnalysis, FindingsSummary
from threadscope.models.schemas import (
    RelevanceResult,
    Thread,
    ThreadsDocument,
    ThreadsMetadata,
)
from threadscope.services.threads.statistics import (
    compute_statistics,
    filter_substantial,
)

RULE = "=" * 70


def _fmt_time(ts: Optional[datetime]) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S %Z").strip() if ts else "-"


def build_threads_document(
    threads: Sequence[Thread],
    *,
    channel: Optional[str],
    time_window_seconds: float,
    min_thread_size: int,
    source_file: Optional[str] = None,
    original_export: Optional[str] = None,
) -> ThreadsDocument:
    """Wrap builder output with statistics and provenance.

    All threads are kept; ``substantial_threads`` counts those meeting
    ``min_thread_size`` so consumers can apply the threshold themselves.
    """
    return ThreadsDocument(
        metadata=ThreadsMetadata(
            channel=channel,
            source_file=source_file,
            original_export=original_export,
            time_window_seconds=time_window_seconds,
            min_thread_size=min_thread_size,
        ),
        statistics=compute_statistics(threads),
        substantial_threads=len(filter_substantial(threads, min_thread_size)),
        threads=list(threads),
    )


def render_threads(threads: Sequence[Thread]) -> str:
    """Render threads for reading; seeds are marked ``*``, context ``-``."""
    blocks: list[str] = []
    for thread in threads:
        lines = [
            RULE,
            f"THREAD #{thread.id}",
            f"Channel: {thread.channel or '-'}",
            f"Participants: {', '.join(thread.participants)}",
            f"Messages: {thread.size} | Duration: {thread.duration_minutes} minutes",
            f"Time: {_fmt_time(thread.start_time)}",
            RULE,
            "",
        ]
        for idx, msg in enumerate(thread.messages, start=1):
            marker = "*" if msg.is_seed else "-"
            reply = " [REPLY]" if msg.is_reply else ""
            lines.append(
                f"{marker} [{idx}] {msg.author} ({msg.timestamp.strftime('%H:%M:%S')}){reply}"
            )
            lines.append(msg.content)
            lines.append("")
        blocks.append("\n".join(lines))
    return "\n".join(blocks)


def render_relevance(result: RelevanceResult) -> str:
    """Render relevance marks, highest similarity first."""
    entries = []
    for i, mark in enumerate(result.results, start=1):
        date = mark.metadata.timestamp.date().isoformat() if mark.metadata.timestamp else "-"
        entries.append(
            f"[{i}] Similarity: {mark.similarity:.3f} | {mark.metadata.author} | {date}\n"
            f"{mark.text}\n{RULE}"
        )
    return "\n\n".join(entries)


def render_analysis(analysis: ChannelAnalysis) -> str:
    """Render a channel analysis as a plain-text report."""
    agg = analysis.aggregated_findings
    lines = [
        f"THREAD ANALYSIS REPORT: {analysis.channel}",
        RULE,
        f"Generated: {_fmt_time(analysis.created)}",
        f"Threads analyzed: {analysis.threads_analyzed}",
        f"Threads failed: {analysis.threads_failed}",
        f"Threads skipped (too small): {analysis.threads_skipped}",
        f"Total tokens: {analysis.total_tokens:,}",
        "",
    ]
    for title, items in (
        ("VULNERABILITIES", agg.vulnerabilities),
        ("TECHNIQUES", agg.techniques),
        ("HARDWARE", agg.hardware),
        ("PROTOCOLS", agg.protocols),
    ):
        lines += [RULE, title, RULE]
        lines += [f"[{i}] {item}" for i, item in enumerate(items, start=1)] or ["(none)"]
        lines.append("")

    lines += [RULE, "THREAD SUMMARIES", RULE]
    for record in analysis.detailed_analyses:
        topic = f" [{record.analysis.topic}]" if record.analysis.topic else ""
        lines.append(
            f"Thread #{record.thread_id}{topic} "
            f"({record.thread_info.message_count} messages): "
            f"{record.analysis.summary or '(no summary)'}"
        )
    lines += ["", RULE, "END OF REPORT", RULE]
    return "\n".join(lines) + "\n"


def render_findings(summary: FindingsSummary) -> str:
    """Render the cross-channel top findings."""
    lines = [
        RULE,
        "TOP FINDINGS ACROSS ALL CHANNELS",
        RULE,
        f"Analyzed {summary.total_threads_analyzed} threads "
        f"across {summary.total_channels} channels",
        "",
    ]
    for title, ranked in (
        ("VULNERABILITIES", summary.top_vulnerabilities),
        ("TECHNIQUES", summary.top_techniques),
        ("HARDWARE", summary.top_hardware),
        ("PROTOCOLS", summary.top_protocols),
    ):
        lines += [RULE, f"TOP {len(ranked)} {title} (by channel count)", RULE]
        lines += [
            f"{i:>2}. [{item.channels} channels] {item.name}"
            for i, item in enumerate(ranked, start=1)
        ]
        lines.append("")
    return "\n".join(lines)
