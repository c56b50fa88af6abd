"""Pydantic models for channel exports, relevance sets and threads.

Export and artifact JSON use camelCase keys (the shape produced by the
Discord exporter and read by downstream consumers); Python code uses
snake_case attributes. ``populate_by_name`` accepts both.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _ensure_aware(v: datetime) -> datetime:
    # Exports mix offset-aware ISO strings and epoch values; compare in UTC
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class CamelModel(BaseModel):
    """Base model serializing to camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class Author(CamelModel):
    """Message author as found in the export.

    Attributes:
        id: Stable author identifier (canonical grouping key)
        name: Display name used in reports
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Author ID")
    name: str = Field(default="", description="Author display name")


class Reference(CamelModel):
    """Reply reference to another message of the same channel."""

    model_config = ConfigDict(frozen=True)

    message_id: Optional[str] = Field(
        default=None, description="ID of the referenced message"
    )


class Message(CamelModel):
    """Discord message as exported.

    Only the fields used by the pipeline are modelled; everything else
    in the export (attachments, embeds, reactions) is ignored.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "1325501234567890123",
                "type": "Reply",
                "timestamp": "2025-01-05T10:30:00.123+00:00",
                "content": "Try the UART pins next to the SoC",
                "author": {"id": "4567", "name": "alice"},
                "reference": {"messageId": "1325501234567890000"},
            }
        },
    )

    id: str = Field(..., min_length=1, description="Message ID")
    type: str = Field(default="Default", description="Export message type")
    timestamp: datetime = Field(..., description="Message timestamp")
    content: str = Field(default="", description="Message text content")
    author: Author = Field(..., description="Message author")
    reference: Optional[Reference] = Field(
        default=None, description="Reply reference, if any"
    )

    @field_validator("content", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat a null content as empty text."""
        return "" if v is None else v

    @field_validator("timestamp", mode="after")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Attach UTC to naive timestamps so all timestamps are comparable."""
        return _ensure_aware(v)

    @property
    def reply_to(self) -> Optional[str]:
        """ID of the message this one replies to, if any."""
        return self.reference.message_id if self.reference else None

    @property
    def author_key(self) -> str:
        """Canonical author key used for time-proximity grouping."""
        return self.author.id


class ChannelExport(CamelModel):
    """Root model of a channel export file."""

    guild: Optional[dict[str, Any]] = Field(default=None, description="Guild info")
    channel: Optional[dict[str, Any]] = Field(default=None, description="Channel info")
    messages: list[Message] = Field(
        default_factory=list, description="Messages in export order"
    )


class RelevanceMetadata(CamelModel):
    """Metadata attached to every chunk and relevance mark."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Source message ID")
    timestamp: Optional[datetime] = Field(default=None, description="Message time")
    author: str = Field(default="", description="Author display name")
    channel: str = Field(default="", description="Channel export name")

    @field_validator("timestamp", mode="after")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Attach UTC to naive timestamps."""
        return _ensure_aware(v) if v is not None else None


class Chunk(CamelModel):
    """Slice of one message's content, the unit that gets embedded."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="Chunk text")
    metadata: RelevanceMetadata = Field(..., description="Source message metadata")


class RelevantMark(CamelModel):
    """A chunk scored above the relevance threshold."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Chunk text")
    metadata: RelevanceMetadata = Field(..., description="Source message metadata")
    similarity: float = Field(..., description="Cosine similarity to the query")


class RelevanceResult(CamelModel):
    """Relevance filter output for one channel."""

    query: str = Field(default="", description="Topic query text")
    threshold: float = Field(default=0.0, description="Similarity threshold used")
    source: Optional[str] = Field(default=None, description="Export file scored")
    total_messages: int = Field(default=0, ge=0, description="Messages in export")
    total_chunks: int = Field(default=0, ge=0, description="Chunks embedded")
    relevant_messages: int = Field(default=0, ge=0, description="Marks kept")
    failed_chunks: int = Field(default=0, ge=0, description="Chunks not embedded")
    results: list[RelevantMark] = Field(
        default_factory=list, description="Marks sorted by similarity descending"
    )


class ThreadMessage(CamelModel):
    """Message as it appears inside an emitted thread."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Message ID")
    author: str = Field(default="", description="Author display name")
    author_id: str = Field(..., description="Author ID")
    timestamp: datetime = Field(..., description="Message timestamp")
    content: str = Field(default="", description="Message text")
    type: str = Field(default="Default", description="Export message type")
    is_seed: bool = Field(default=False, description="Flagged relevant")
    similarity: Optional[float] = Field(
        default=None, description="Best similarity for seeds"
    )
    reply_to: Optional[str] = Field(
        default=None, description="ID of the message this one replies to"
    )

    @model_validator(mode="before")
    @classmethod
    def from_export_shape(cls, data: Any) -> Any:
        """Accept raw export messages (nested author, reply reference)."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        author = data.get("author")
        if isinstance(author, dict):
            data["author"] = author.get("name") or ""
            if "authorId" not in data and "author_id" not in data:
                data["authorId"] = author.get("id")
        elif "authorId" not in data and "author_id" not in data:
            data["authorId"] = author or ""
        reference = data.pop("reference", None)
        if isinstance(reference, dict) and "replyTo" not in data and "reply_to" not in data:
            data["replyTo"] = reference.get("messageId")
        if data.get("content") is None:
            data["content"] = ""
        return data

    @field_validator("timestamp", mode="after")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Attach UTC to naive timestamps."""
        return _ensure_aware(v)

    @property
    def is_reply(self) -> bool:
        """True if the export marks this message as a reply."""
        return self.type == "Reply" or self.reply_to is not None


class Thread(CamelModel):
    """Conversation thread built around one or more relevant seeds."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Sequence number within one run")
    root_message_id: str = Field(..., description="Seed that started the thread")
    channel: Optional[str] = Field(default=None, description="Channel export name")
    messages: list[ThreadMessage] = Field(
        ..., min_length=1, description="Messages sorted by timestamp"
    )
    participants: list[str] = Field(
        default_factory=list, description="Distinct author names"
    )
    start_time: datetime = Field(..., description="Earliest message timestamp")
    end_time: datetime = Field(..., description="Latest message timestamp")

    @property
    def size(self) -> int:
        """Number of messages in the thread."""
        return len(self.messages)

    @property
    def duration_minutes(self) -> int:
        """Rounded thread duration in minutes."""
        return round((self.end_time - self.start_time).total_seconds() / 60)

    @property
    def seed_ids(self) -> list[str]:
        """IDs of relevant messages in the thread."""
        return [m.id for m in self.messages if m.is_seed]


def thread_messages(thread: Any) -> list[Any]:
    """Return a thread's message list whatever shape it was stored in.

    Accepts a ``Thread`` model, a ``{"messages": [...]}`` mapping or a bare
    list of message objects.
    """
    if isinstance(thread, Thread):
        return list(thread.messages)
    if isinstance(thread, list):
        return thread
    if isinstance(thread, dict):
        messages = thread.get("messages")
        if isinstance(messages, list):
            return messages
    raise TypeError(
        f"Unsupported thread shape: {type(thread).__name__}; "
        "expected a list of messages or an object with 'messages'"
    )


def _coerce_thread(entry: Any, number: int) -> Any:
    """Complete a stored thread given as a bare message list or partial dict.

    Missing fields are derived from the messages; fields already present win.
    """
    if isinstance(entry, Thread):
        return entry
    try:
        raw = thread_messages(entry)
    except TypeError as e:
        raise ValueError(str(e)) from e
    if not raw:
        return entry

    messages = sorted(
        [m if isinstance(m, ThreadMessage) else ThreadMessage.model_validate(m) for m in raw],
        key=lambda m: m.timestamp,
    )
    derived = {
        "id": number,
        "root_message_id": messages[0].id,
        "participants": list(dict.fromkeys(m.author or m.author_id for m in messages)),
        "start_time": messages[0].timestamp,
        "end_time": messages[-1].timestamp,
    }
    given = dict(entry) if isinstance(entry, dict) else {}
    for name, value in derived.items():
        if name not in given and to_camel(name) not in given:
            given[name] = value
    given["messages"] = messages
    return given


class ThreadStatistics(CamelModel):
    """Aggregate statistics over a set of threads."""

    total_threads: int = 0
    total_messages: int = 0
    avg_messages_per_thread: float = 0.0
    min_messages: int = 0
    max_messages: int = 0
    single_message_threads: int = 0
    multi_message_threads: int = 0


class ThreadsMetadata(CamelModel):
    """Provenance block of a threads document."""

    created: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    channel: Optional[str] = None
    source_file: Optional[str] = None
    original_export: Optional[str] = None
    time_window_seconds: float = 0.0
    min_thread_size: int = 1


class ThreadsDocument(CamelModel):
    """Root model of a threads artifact."""

    metadata: ThreadsMetadata = Field(default_factory=ThreadsMetadata)
    statistics: ThreadStatistics = Field(default_factory=ThreadStatistics)
    substantial_threads: int = Field(default=0, ge=0)
    threads: list[Thread] = Field(default_factory=list)

    @field_validator("threads", mode="before")
    @classmethod
    def normalize_threads(cls, v: Any) -> Any:
        """Accept threads stored as bare message lists or ``{messages}`` dicts."""
        if not isinstance(v, list):
            return v
        return [_coerce_thread(entry, n) for n, entry in enumerate(v, start=1)]
