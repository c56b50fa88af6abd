import pytest

from threadscope.core.config import ThreadscopeConfig
from threadscope.core.exceptions import (
    InputNotFoundError,
    MalformedInputError,
    UpstreamServiceError,
)
from threadscope.models.analysis import ChannelAnalysis
from threadscope.models.schemas import RelevanceResult, ThreadsDocument, ThreadStatistics
from threadscope.services.runners.pipeline_runner import PipelineRunner, PipelineRunnerDeps

_ERRORS = {
    "@missing": InputNotFoundError("no export"),
    "@bad": MalformedInputError("bad json"),
    "@down": UpstreamServiceError("ollama down", service="ollama-embeddings"),
    "@weird": RuntimeError("unexpected"),
}


class _FilterUC:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def execute(self, *, channel, correlation_id):
        self.calls.append(channel)
        if channel in _ERRORS:
            raise _ERRORS[channel]
        return RelevanceResult(relevant_messages=4)


class _ThreadUC:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def execute(self, *, channel, correlation_id):
        self.calls.append(channel)
        return ThreadsDocument(
            statistics=ThreadStatistics(total_threads=2), substantial_threads=1
        )


class _AnalyzeUC:
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def execute(self, *, channel, correlation_id):
        self.calls.append(channel)
        return ChannelAnalysis(channel=channel, threads_analyzed=1)


def _runner(channels, *, analyze=True):
    cfg = ThreadscopeConfig(channels=channels)
    deps = PipelineRunnerDeps(
        config=cfg,
        filter_use_case=_FilterUC(),
        thread_use_case=_ThreadUC(),
        analyze_use_case=_AnalyzeUC() if analyze else None,
    )
    return PipelineRunner(deps), deps


@pytest.mark.asyncio
async def test_runner_runs_all_stages_for_all_channels():
    runner, deps = _runner(["@a", "@b"])

    results = await runner.run_all(correlation_id="cid")

    assert [r.channel for r in results] == ["@a", "@b"]
    assert all(r.success for r in results)
    assert deps.analyze_use_case.calls == ["@a", "@b"]
    assert results[0].relevant_messages == 4
    assert results[0].threads == 2
    assert results[0].substantial_threads == 1
    assert results[0].threads_analyzed == 1


@pytest.mark.asyncio
async def test_runner_isolates_failures_and_categorizes_them():
    runner, deps = _runner(["@missing", "@bad", "@good", "@down", "@weird"])

    results = await runner.run_all(correlation_id="cid")

    by_channel = {r.channel: r for r in results}
    assert by_channel["@good"].success
    assert by_channel["@missing"].error_type == "input_not_found"
    assert by_channel["@bad"].error_type == "malformed_input"
    assert by_channel["@down"].error_type == "upstream_service_error"
    assert by_channel["@weird"].error_type == "unknown_error"
    assert by_channel["@weird"].reason == "unexpected"
    # later stages only ran for the channel that got through filtering
    assert deps.thread_use_case.calls == ["@good"]


@pytest.mark.asyncio
async def test_runner_honors_stage_selection_and_explicit_channels():
    runner, deps = _runner(["@configured"], analyze=False)

    results = await runner.run_all(
        channels=["@x"], stages=("thread",), correlation_id="cid"
    )

    assert results[0].success
    assert deps.filter_use_case.calls == []
    assert deps.thread_use_case.calls == ["@x"]


@pytest.mark.asyncio
async def test_runner_rejects_unwired_or_unknown_stages():
    runner, _ = _runner(["@a"], analyze=False)

    with pytest.raises(ValueError):
        await runner.run_all(correlation_id="cid")
    with pytest.raises(ValueError):
        await runner.run_all(stages=("publish",), correlation_id="cid")
