from threadscope.models.analysis import (
    AggregatedFindings,
    AnalysisRecord,
    ChannelAnalysis,
    ThreadAnalysis,
    ThreadInfo,
)
from threadscope.services.analysis.aggregator import aggregate_channel, rank_findings


def _record(thread_id: int, **findings) -> AnalysisRecord:
    return AnalysisRecord(
        thread_id=thread_id,
        thread_info=ThreadInfo(),
        analysis=ThreadAnalysis(**findings),
    )


def test_aggregate_channel_unions_in_first_seen_order():
    agg = aggregate_channel(
        [
            _record(1, protocols=["UART", "SPI"], hardware=["ESP32"]),
            _record(2, protocols=["JTAG", "UART"]),
        ]
    )

    assert agg.protocols == ["UART", "SPI", "JTAG"]
    assert agg.hardware == ["ESP32"]
    assert agg.vulnerabilities == []


def _channel(name: str, analyzed: int, **findings) -> ChannelAnalysis:
    return ChannelAnalysis(
        channel=name,
        threads_analyzed=analyzed,
        aggregated_findings=AggregatedFindings(**findings),
    )


def test_rank_findings_counts_channels_not_mentions():
    summary = rank_findings(
        [
            _channel("a", 2, protocols=["UART", "SPI", "UART"]),
            _channel("b", 3, protocols=["SPI"]),
            _channel("c", 1, protocols=["SPI", "I2C"]),
        ],
        top_n=2,
    )

    assert summary.total_channels == 3
    assert summary.total_threads_analyzed == 6
    assert [(f.name, f.channels) for f in summary.top_protocols] == [
        ("SPI", 3),
        ("UART", 1),
    ]
    assert summary.unique_counts["protocols"] == 3
    assert summary.top_hardware == []


def test_rank_findings_of_nothing_is_empty():
    summary = rank_findings([])

    assert summary.total_channels == 0
    assert summary.unique_counts == {
        "vulnerabilities": 0,
        "techniques": 0,
        "hardware": 0,
        "protocols": 0,
    }
