import pytest

from threadscope.core.exceptions import UpstreamServiceError
from threadscope.services.relevance.relevance_filter import RelevanceFilter

QUERY = "uart firmware"


class _Embedder:
    """Maps text to a 2-d vector: [1, 0] for on-topic text, [0, 1] otherwise."""

    def __init__(self, fail_on: str = "") -> None:
        self.calls: list[str] = []
        self.fail_on = fail_on

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise UpstreamServiceError("boom", service="ollama-embeddings")
        if text == QUERY:
            return [1.0, 0.0]
        if "uart" in text:
            return [0.9, 0.1]
        if "firmware" in text:
            return [0.7, 0.7]
        return [0.0, 1.0]


def test_filter_marks_chunks_above_threshold_sorted(make_message):
    msgs = [
        make_message("1", 0, content="firmware dump"),
        make_message("2", 1, content="lunch?"),
        make_message("3", 2, content="uart pins"),
    ]
    flt = RelevanceFilter(_Embedder(), query=QUERY, threshold=0.6)

    result = flt.filter_messages(msgs, channel="general", source="export.json")

    assert [m.metadata.id for m in result.results] == ["3", "1"]
    assert result.results[0].similarity > result.results[1].similarity
    assert result.total_messages == 3
    assert result.total_chunks == 3
    assert result.relevant_messages == 2
    assert result.failed_chunks == 0
    assert result.query == QUERY
    assert result.source == "export.json"


def test_threshold_is_inclusive(make_message):
    flt = RelevanceFilter(_Embedder(), query=QUERY, threshold=1.0)

    result = flt.filter_messages([make_message("1", content=QUERY)], channel="c")
    assert result.relevant_messages == 1


def test_failed_chunk_is_counted_and_batch_continues(make_message):
    msgs = [
        make_message("1", 0, content="uart one"),
        make_message("2", 1, content="uart broken"),
        make_message("3", 2, content="uart three"),
    ]
    flt = RelevanceFilter(
        _Embedder(fail_on="broken"), query=QUERY, threshold=0.5, progress_interval=1
    )

    result = flt.filter_messages(msgs, channel="c")

    assert result.failed_chunks == 1
    assert {m.metadata.id for m in result.results} == {"1", "3"}


def test_query_embedding_failure_propagates(make_message):
    flt = RelevanceFilter(_Embedder(fail_on=QUERY), query=QUERY)

    with pytest.raises(UpstreamServiceError):
        flt.filter_messages([make_message("1", content="uart")], channel="c")


def test_long_message_chunks_are_scored_separately(make_message):
    embedder = _Embedder()
    flt = RelevanceFilter(embedder, query=QUERY, threshold=0.6, chunk_size=50)
    msg = make_message("1", content="uart " + "x" * 60)

    result = flt.filter_messages([msg], channel="c")

    assert result.total_chunks == 2
    # first slice mentions uart, second doesn't
    assert result.relevant_messages == 1
    assert len(embedder.calls) == 3
