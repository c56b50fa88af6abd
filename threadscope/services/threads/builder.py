"""Conversation thread builder for one channel's messages.

Threads are connected components of an implicit message graph, walked from
relevant seeds only. Two messages are adjacent when one replies to the other,
or when they share an author and are at most ``time_window`` apart. Each
visited message opens its own window, so a slow conversation can drift well
past the seed's window.

Seeds are processed oldest first and the first thread to reach a message
keeps it. Messages no seed reaches are dropped.
"""

from __future__ import annotations

import bisect
import logging
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping, Optional, Sequence

from threadscope.models.schemas import (
    Message,
    RelevantMark,
    Thread,
    ThreadMessage,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def _time_key(ts: datetime) -> int:
    """Integer microseconds since epoch, exact for window comparisons."""
    return (ts - _EPOCH) // _MICROSECOND


def relevance_index(marks: Iterable[RelevantMark]) -> dict[str, float]:
    """Collapse relevance marks into ``{message_id: best_similarity}``.

    Several chunks of one message may be marked; insertion order follows
    the first mark seen for each message.
    """
    best: dict[str, float] = {}
    for mark in marks:
        mid = mark.metadata.id
        if mid not in best or mark.similarity > best[mid]:
            best[mid] = mark.similarity
    return best


class _MessageIndex:
    """Read-only lookups over the message store."""

    def __init__(self, messages: Sequence[Message]) -> None:
        self.by_id: dict[str, Message] = {}
        self.position: dict[str, int] = {}
        self.replies_to: dict[str, list[Message]] = {}
        self.duplicates = 0

        unique: list[Message] = []
        for pos, msg in enumerate(messages):
            if msg.id in self.by_id:
                self.duplicates += 1
                logger.warning(
                    "Duplicate message id in store, keeping first occurrence",
                    extra={"message_id": msg.id, "position": pos},
                )
                continue
            self.by_id[msg.id] = msg
            self.position[msg.id] = pos
            unique.append(msg)

        by_author: dict[str, list[tuple[int, int, Message]]] = {}
        for msg in unique:
            parent_id = msg.reply_to
            if parent_id is not None:
                self.replies_to.setdefault(parent_id, []).append(msg)
            by_author.setdefault(msg.author_key, []).append(
                (_time_key(msg.timestamp), self.position[msg.id], msg)
            )

        self._author_keys: dict[str, list[int]] = {}
        self._author_msgs: dict[str, list[Message]] = {}
        for author, rows in by_author.items():
            rows.sort(key=lambda r: (r[0], r[1]))
            self._author_keys[author] = [r[0] for r in rows]
            self._author_msgs[author] = [r[2] for r in rows]

    def parent_of(self, msg: Message) -> Optional[Message]:
        # Dangling references (deleted or out-of-export parents) yield None
        parent_id = msg.reply_to
        return self.by_id.get(parent_id) if parent_id is not None else None

    def children_of(self, msg: Message) -> list[Message]:
        return self.replies_to.get(msg.id, [])

    def near(self, msg: Message, window_us: int) -> list[Message]:
        """Same-author messages within the window around ``msg`` (inclusive)."""
        keys = self._author_keys.get(msg.author_key)
        if not keys:
            return []
        t = _time_key(msg.timestamp)
        lo = bisect.bisect_left(keys, t - window_us)
        hi = bisect.bisect_right(keys, t + window_us)
        return self._author_msgs[msg.author_key][lo:hi]

    def sort_key(self, msg: Message) -> tuple[int, int]:
        return (_time_key(msg.timestamp), self.position[msg.id])


class ThreadBuilder:
    """Group messages into relevance-seeded conversation threads.

    The builder holds configuration only; every ``build`` call creates its
    own indexes and claimed set, and never mutates the input messages.
    """

    def __init__(self, time_window: timedelta | float = 300.0) -> None:
        """Create a builder.

        Args:
            time_window: Same-author proximity window, as a timedelta or
                seconds
        """
        if not isinstance(time_window, timedelta):
            time_window = timedelta(seconds=time_window)
        if time_window < timedelta(0):
            raise ValueError("time_window must not be negative")
        self._time_window = time_window
        self._window_us = time_window // _MICROSECOND

    @property
    def time_window(self) -> timedelta:
        return self._time_window

    def build(
        self,
        messages: Sequence[Message],
        relevant_ids: Iterable[str],
        *,
        similarities: Optional[Mapping[str, float]] = None,
        channel: Optional[str] = None,
    ) -> list[Thread]:
        """Build threads for one message store.

        Args:
            messages: Full message store in export order
            relevant_ids: IDs flagged relevant; their order breaks timestamp
                ties between seeds
            similarities: Optional best similarity per relevant ID, carried
                into the thread messages
            channel: Channel label stored on each thread

        Returns:
            Threads in seed order, numbered from 1
        """
        similarities = similarities or {}
        index = _MessageIndex(messages)
        seeds = self._ordered_seeds(index, relevant_ids)
        seed_ids = {s.id for s in seeds}

        claimed: set[str] = set()
        threads: list[Thread] = []
        for seed in seeds:
            if seed.id in claimed:
                continue
            reached = self._collect(seed, index)
            members = [m for m in reached if m.id not in claimed]
            claimed.update(m.id for m in members)
            if not members:
                continue
            members.sort(key=index.sort_key)
            threads.append(
                self._make_thread(
                    thread_id=len(threads) + 1,
                    seed=seed,
                    members=members,
                    seed_ids=seed_ids,
                    similarities=similarities,
                    channel=channel,
                )
            )

        logger.info(
            "Built conversation threads",
            extra={
                "channel": channel,
                "messages": len(index.by_id),
                "seeds": len(seeds),
                "threads": len(threads),
                "claimed_messages": len(claimed),
                "duplicate_ids": index.duplicates,
            },
        )
        return threads

    def _ordered_seeds(
        self, index: _MessageIndex, relevant_ids: Iterable[str]
    ) -> list[Message]:
        seeds: list[Message] = []
        seen: set[str] = set()
        missing = 0
        for mid in relevant_ids:
            if mid in seen:
                continue
            seen.add(mid)
            msg = index.by_id.get(mid)
            if msg is None:
                missing += 1
                continue
            seeds.append(msg)
        if missing:
            logger.warning(
                "Relevant messages missing from store were skipped",
                extra={"missing_seeds": missing},
            )
        # sorted() is stable: equal timestamps keep relevance order
        return sorted(seeds, key=lambda m: _time_key(m.timestamp))

    def _collect(self, seed: Message, index: _MessageIndex) -> list[Message]:
        """Breadth-first walk over reply and time-proximity edges."""
        frontier: deque[Message] = deque([seed])
        visited: set[str] = set()
        reached: list[Message] = []

        while frontier:
            current = frontier.popleft()
            if current.id in visited:
                continue
            visited.add(current.id)
            reached.append(current)

            parent = index.parent_of(current)
            if parent is not None and parent.id not in visited:
                frontier.append(parent)
            for child in index.children_of(current):
                if child.id not in visited:
                    frontier.append(child)
            for other in index.near(current, self._window_us):
                if other.id not in visited:
                    frontier.append(other)

        return reached

    @staticmethod
    def _make_thread(
        *,
        thread_id: int,
        seed: Message,
        members: list[Message],
        seed_ids: set[str],
        similarities: Mapping[str, float],
        channel: Optional[str],
    ) -> Thread:
        participants: list[str] = []
        seen_authors: set[str] = set()
        for m in members:
            if m.author_key not in seen_authors:
                seen_authors.add(m.author_key)
                participants.append(m.author.name or m.author.id)

        return Thread(
            id=thread_id,
            root_message_id=seed.id,
            channel=channel,
            messages=[
                ThreadMessage(
                    id=m.id,
                    author=m.author.name,
                    author_id=m.author.id,
                    timestamp=m.timestamp,
                    content=m.content,
                    type=m.type,
                    is_seed=m.id in seed_ids,
                    similarity=similarities.get(m.id) if m.id in seed_ids else None,
                    reply_to=m.reply_to,
                )
                for m in members
            ],
            participants=participants,
            start_time=min(m.timestamp for m in members),
            end_time=max(m.timestamp for m in members),
        )


def build_threads(
    messages: Sequence[Message],
    marks: Iterable[RelevantMark],
    *,
    time_window: timedelta | float = 300.0,
    channel: Optional[str] = None,
) -> list[Thread]:
    """Build threads directly from relevance marks."""
    index = relevance_index(marks)
    return ThreadBuilder(time_window).build(
        messages, index, similarities=index, channel=channel
    )
