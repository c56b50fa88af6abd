import pytest

from threadscope.models.schemas import thread_messages
from threadscope.services.threads.builder import ThreadBuilder
from threadscope.services.threads.statistics import compute_statistics, filter_substantial


def _threads(make_message):
    store = [
        make_message("A", 0, author="x"),
        make_message("B", 10, author="y", reply_to="A"),
        make_message("C", 20, author="z", reply_to="B"),
        make_message("D", 5000, author="w"),
    ]
    return ThreadBuilder(60).build(store, ["A", "D"])


def test_statistics_of_empty_input_are_zero():
    stats = compute_statistics([])
    assert stats.total_threads == 0
    assert stats.total_messages == 0
    assert stats.avg_messages_per_thread == 0.0
    assert stats.min_messages == 0 and stats.max_messages == 0


def test_statistics_counts(make_message):
    stats = compute_statistics(_threads(make_message))

    assert stats.total_threads == 2
    assert stats.total_messages == 4
    assert stats.avg_messages_per_thread == 2.0
    assert stats.min_messages == 1
    assert stats.max_messages == 3
    assert stats.single_message_threads == 1
    assert stats.multi_message_threads == 1


def test_filter_substantial_keeps_order(make_message):
    threads = _threads(make_message)

    assert [t.root_message_id for t in filter_substantial(threads, 3)] == ["A"]
    assert len(filter_substantial(threads, 1)) == 2


def test_thread_messages_accepts_all_shapes(make_message):
    thread = _threads(make_message)[0]

    assert [m.id for m in thread_messages(thread)] == ["A", "B", "C"]
    assert thread_messages([{"id": "1"}]) == [{"id": "1"}]
    assert thread_messages({"messages": [{"id": "2"}]}) == [{"id": "2"}]


def test_thread_messages_rejects_unknown_shape():
    with pytest.raises(TypeError):
        thread_messages({"items": []})
    with pytest.raises(TypeError):
        thread_messages("nope")
