"""Thread statistics and substantial-thread filtering."""

from __future__ import annotations

from typing import Sequence

from threadscope.models.schemas import Thread, ThreadStatistics


def compute_statistics(threads: Sequence[Thread]) -> ThreadStatistics:
    """Aggregate thread sizes; an empty input yields all-zero statistics."""
    if not threads:
        return ThreadStatistics()
    sizes = [t.size for t in threads]
    total = sum(sizes)
    return ThreadStatistics(
        total_threads=len(sizes),
        total_messages=total,
        avg_messages_per_thread=round(total / len(sizes), 2),
        min_messages=min(sizes),
        max_messages=max(sizes),
        single_message_threads=sum(1 for s in sizes if s == 1),
        multi_message_threads=sum(1 for s in sizes if s > 1),
    )


def filter_substantial(threads: Sequence[Thread], min_size: int) -> list[Thread]:
    """Keep threads with at least ``min_size`` messages, order preserved."""
    return [t for t in threads if t.size >= min_size]
