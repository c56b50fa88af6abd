import pytest

from threadscope.core.config import ThreadscopeConfig
from threadscope.di.container import Container
from threadscope.gateways.ollama import OllamaChatClient
from threadscope.gateways.openai_chat import OpenAIChatClient


def _config(tmp_path, **overrides):
    return ThreadscopeConfig(
        exports_dir=tmp_path / "exports", output_dir=tmp_path / "out", **overrides
    )


def test_filter_and_thread_runner_needs_no_llm_credentials(tmp_path):
    container = Container(config=_config(tmp_path, llm_provider="openai"))

    runner = container.provide_pipeline_runner(stages=("filter", "thread"))

    assert runner.d.analyze_use_case is None
    assert runner.d.thread_use_case is not None
    assert container.provide_thread_builder().time_window.total_seconds() == 300


def test_openai_without_key_fails_when_analyzer_requested(tmp_path):
    container = Container(config=_config(tmp_path, llm_provider="openai"))

    with pytest.raises(ValueError):
        container.provide_analyze_use_case()


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({"llm_provider": "ollama"}, OllamaChatClient),
        ({"llm_provider": "openai", "openai_api_key": "sk"}, OpenAIChatClient),
    ],
)
def test_chat_provider_follows_config(tmp_path, overrides, expected):
    container = Container(config=_config(tmp_path, **overrides))

    provider = container.provide_chat_provider()

    assert isinstance(provider, expected)
    assert container.provide_chat_provider() is provider
