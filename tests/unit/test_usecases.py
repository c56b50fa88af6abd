import json

import pytest

from threadscope.core.exceptions import InputNotFoundError
from threadscope.models.analysis import AggregatedFindings, ChannelAnalysis
from threadscope.repositories.export_repository import ExportRepository
from threadscope.services.relevance.relevance_filter import RelevanceFilter
from threadscope.services.threads.builder import ThreadBuilder
from threadscope.services.usecases.analyze_channel import (
    AnalyzeChannelDeps,
    AnalyzeChannelUseCase,
    RankFindingsDeps,
    RankFindingsUseCase,
)
from threadscope.services.usecases.filter_channel import (
    FilterChannelDeps,
    FilterChannelUseCase,
)
from threadscope.services.usecases.thread_channel import (
    ThreadChannelDeps,
    ThreadChannelUseCase,
)


class _Embedder:
    def embed(self, text: str) -> list[float]:
        lowered = text.lower()
        return [1.0, 0.0] if "uart" in lowered or "baud" in lowered else [0.0, 1.0]


class _Analyzer:
    def __init__(self) -> None:
        self.seen: list[int] = []

    async def analyze_all(self, threads, *, channel):
        self.seen = [t.size for t in threads]
        return ChannelAnalysis(
            channel=channel,
            threads_analyzed=len(threads),
            aggregated_findings=AggregatedFindings(protocols=["UART"]),
        )


@pytest.fixture
def repo(tmp_path, export_payload):
    repo = ExportRepository(tmp_path / "exports", tmp_path / "out")
    path = repo.get_export_path("general")
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(export_payload), encoding="utf-8")
    return repo


def _filter(repo):
    return FilterChannelUseCase(
        FilterChannelDeps(
            repository=repo,
            relevance_filter=RelevanceFilter(
                _Embedder(), query="UART", threshold=0.5
            ),
        )
    )


def test_filter_then_thread_produces_artifacts(repo):
    relevance = _filter(repo).execute(channel="general", correlation_id="cid")

    assert {m.metadata.id for m in relevance.results} == {"100", "101"}
    assert repo.get_relevance_path("general").exists()

    document = ThreadChannelUseCase(
        ThreadChannelDeps(repository=repo, builder=ThreadBuilder(300), min_thread_size=3)
    ).execute(channel="general", correlation_id="cid")

    assert document.statistics.total_threads == 1
    assert [m.id for m in document.threads[0].messages] == ["100", "101", "102"]
    assert document.substantial_threads == 1
    assert document.metadata.time_window_seconds == 300.0
    assert repo.get_threads_path("general").exists()
    assert repo.get_artifact_path("general", "threads", "txt").exists()


def test_thread_without_relevance_artifact_fails(repo):
    use_case = ThreadChannelUseCase(
        ThreadChannelDeps(repository=repo, builder=ThreadBuilder(300))
    )

    with pytest.raises(InputNotFoundError):
        use_case.execute(channel="general", correlation_id="cid")


@pytest.mark.asyncio
async def test_analyze_and_rank(repo):
    _filter(repo).execute(channel="general", correlation_id="cid")
    ThreadChannelUseCase(
        ThreadChannelDeps(repository=repo, builder=ThreadBuilder(300))
    ).execute(channel="general", correlation_id="cid")
    analyzer = _Analyzer()

    analysis = await AnalyzeChannelUseCase(
        AnalyzeChannelDeps(repository=repo, analyzer=analyzer)
    ).execute(channel="general", correlation_id="cid")

    assert analyzer.seen == [3]
    assert analysis.threads_analyzed == 1
    assert repo.get_analysis_path("general").exists()

    summary = RankFindingsUseCase(RankFindingsDeps(repository=repo, top_n=5)).execute(
        channels=["general", "never-analyzed"], correlation_id="cid"
    )

    assert summary.total_channels == 1
    assert summary.top_protocols[0].name == "UART"
    assert repo.get_findings_path().exists()


@pytest.mark.asyncio
async def test_analyze_accepts_threads_stored_as_message_lists(repo, export_payload):
    raw = export_payload["messages"]
    path = repo.get_threads_path("general")
    path.parent.mkdir(parents=True)
    path.write_text(
        json.dumps({"threads": [raw[:3], {"messages": [raw[3]]}]}), encoding="utf-8"
    )
    analyzer = _Analyzer()

    analysis = await AnalyzeChannelUseCase(
        AnalyzeChannelDeps(repository=repo, analyzer=analyzer)
    ).execute(channel="general", correlation_id="cid")

    assert analyzer.seen == [3, 1]
    assert analysis.threads_analyzed == 2
    assert repo.get_analysis_path("general").exists()
