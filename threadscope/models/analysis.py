"""Pydantic models for LLM thread analysis and cross-channel findings."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

FINDING_CATEGORIES = ("vulnerabilities", "techniques", "hardware", "protocols")


def _as_strings(v: Any) -> list[str]:
    """Flatten an LLM-provided list into plain strings.

    Models sometimes return objects ({"name": ..., "description": ...})
    instead of strings; the most descriptive text field wins.
    """
    if v is None:
        return []
    if isinstance(v, (str, dict)):
        v = [v]
    out: list[str] = []
    for item in v:
        if isinstance(item, dict):
            text = next(
                (
                    str(item[k])
                    for k in ("name", "type", "risk", "description")
                    if item.get(k)
                ),
                None,
            )
            if text:
                out.append(text.strip())
        elif item is not None and str(item).strip():
            out.append(str(item).strip())
    return out


class ThreadAnalysis(BaseModel):
    """Structured findings extracted from one thread by the LLM."""

    model_config = ConfigDict(extra="ignore")

    summary: str = Field(default="", description="Short conversation summary")
    topic: Optional[str] = Field(default=None, description="Main topic")
    relevance_score: Optional[float] = Field(
        default=None, description="Relevance 0-10 as judged by the model"
    )
    vulnerabilities: list[str] = Field(default_factory=list)
    techniques: list[str] = Field(default_factory=list)
    hardware: list[str] = Field(default_factory=list)
    protocols: list[str] = Field(default_factory=list)
    security_risks: list[str] = Field(default_factory=list)
    actionable_insights: list[str] = Field(default_factory=list)
    key_participants: list[str] = Field(default_factory=list)

    @field_validator(
        "vulnerabilities",
        "techniques",
        "hardware",
        "protocols",
        "security_risks",
        "actionable_insights",
        "key_participants",
        mode="before",
    )
    @classmethod
    def coerce_string_list(cls, v: Any) -> list[str]:
        """Accept strings, objects or null where a list of strings is expected."""
        return _as_strings(v)

    @field_validator("summary", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat a null summary as empty."""
        return "" if v is None else v

    @field_validator("relevance_score", mode="before")
    @classmethod
    def lenient_score(cls, v: Any) -> Any:
        """Drop scores the model returned as non-numeric text."""
        if isinstance(v, str):
            try:
                return float(v)
            except ValueError:
                return None
        return v


class TokenUsage(BaseModel):
    """Token accounting for one LLM call."""

    prompt: int = 0
    completion: int = 0
    total: int = 0


class ThreadInfo(BaseModel):
    """Thread facts copied next to its analysis."""

    channel: Optional[str] = None
    participants: list[str] = Field(default_factory=list)
    message_count: int = 0
    duration_minutes: int = 0
    start_time: Optional[datetime] = None


class AnalysisRecord(BaseModel):
    """Analysis result for a single thread."""

    thread_id: int
    thread_info: ThreadInfo
    analysis: ThreadAnalysis
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)


class AggregatedFindings(BaseModel):
    """Union of findings across a channel's analyses (first-seen order)."""

    vulnerabilities: list[str] = Field(default_factory=list)
    techniques: list[str] = Field(default_factory=list)
    hardware: list[str] = Field(default_factory=list)
    protocols: list[str] = Field(default_factory=list)


class ChannelAnalysis(BaseModel):
    """Analyze stage artifact for one channel."""

    created: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    channel: str
    threads_analyzed: int = 0
    threads_failed: int = 0
    threads_skipped: int = 0
    total_tokens: int = 0
    aggregated_findings: AggregatedFindings = Field(
        default_factory=AggregatedFindings
    )
    detailed_analyses: list[AnalysisRecord] = Field(default_factory=list)


class RankedFinding(BaseModel):
    """Finding with the number of channels that mention it."""

    name: str
    channels: int


class FindingsSummary(BaseModel):
    """Cross-channel ranking of findings."""

    created: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    total_threads_analyzed: int = 0
    total_channels: int = 0
    top_vulnerabilities: list[RankedFinding] = Field(default_factory=list)
    top_techniques: list[RankedFinding] = Field(default_factory=list)
    top_hardware: list[RankedFinding] = Field(default_factory=list)
    top_protocols: list[RankedFinding] = Field(default_factory=list)
    unique_counts: dict[str, int] = Field(default_factory=dict)
