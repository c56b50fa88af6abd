"""Pytest configuration for unit tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from threadscope.models.schemas import Author, Message, Reference
from threadscope.utils.correlation import _correlation_id

T0 = datetime(2025, 1, 5, 10, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_correlation_id():
    """Reset correlation context between tests."""
    token = _correlation_id.set(None)
    yield
    _correlation_id.reset(token)


@pytest.fixture
def make_message():
    """Factory for messages at ``T0 + seconds``."""

    def _make(
        mid: str,
        seconds: float = 0,
        author: str = "x",
        reply_to: Optional[str] = None,
        content: str = "",
    ) -> Message:
        return Message(
            id=mid,
            type="Reply" if reply_to else "Default",
            timestamp=T0 + timedelta(seconds=seconds),
            content=content or f"message {mid}",
            author=Author(id=author, name=f"name-{author}"),
            reference=Reference(message_id=reply_to) if reply_to else None,
        )

    return _make
