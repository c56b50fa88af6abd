"""Application DI container.

Builds and provides core services and use-cases to keep the CLI thin.
Chat providers are built on demand so that filter-only and thread-only runs
don't need LLM credentials.
"""

from __future__ import annotations

from typing import Optional, Sequence

from threadscope.core.config import ThreadscopeConfig
from threadscope.gateways.ollama import OllamaChatClient, OllamaEmbeddingClient
from threadscope.gateways.openai_chat import OpenAIChatClient
from threadscope.gateways.protocols import ChatProvider
from threadscope.repositories.export_repository import ExportRepository
from threadscope.services.analysis.thread_analyzer import ThreadAnalyzer
from threadscope.services.relevance.relevance_filter import RelevanceFilter
from threadscope.services.runners.pipeline_runner import (
    STAGES,
    PipelineRunner,
    PipelineRunnerDeps,
)
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


class Container:
    """Container building all primary services for the pipeline."""

    def __init__(self, *, config: ThreadscopeConfig) -> None:
        """Build and wire core components from configuration."""
        self._config = config

        # Storage
        self._repository = ExportRepository(
            config.exports_dir,
            config.output_dir,
            export_filename_template=config.export_filename_template,
        )

        # Threading is pure, one builder serves every channel
        self._thread_builder = ThreadBuilder(time_window=config.time_window_seconds)

        self._embedding_client: Optional[OllamaEmbeddingClient] = None
        self._chat_provider: Optional[ChatProvider] = None

    @property
    def config(self) -> ThreadscopeConfig:
        return self._config

    def provide_repository(self) -> ExportRepository:
        """Provide export/artifact repository instance."""
        return self._repository

    def provide_embedding_client(self) -> OllamaEmbeddingClient:
        """Provide the Ollama embedding client, created on first use."""
        if self._embedding_client is None:
            self._embedding_client = OllamaEmbeddingClient(
                base_url=self._config.ollama_url,
                model=self._config.embedding_model,
                timeout=self._config.request_timeout_seconds,
            )
        return self._embedding_client

    def provide_relevance_filter(self) -> RelevanceFilter:
        """Provide relevance filter bound to the configured query."""
        return RelevanceFilter(
            self.provide_embedding_client(),
            query=self._config.relevance_query,
            threshold=self._config.similarity_threshold,
            chunk_size=self._config.chunk_size,
            progress_interval=self._config.progress_interval,
        )

    def provide_thread_builder(self) -> ThreadBuilder:
        """Provide thread builder with the configured time window."""
        return self._thread_builder

    def provide_chat_provider(self) -> ChatProvider:
        """Provide the configured chat LLM adapter.

        Raises:
            ValueError: If the selected provider is missing credentials
        """
        if self._chat_provider is None:
            self._config.validate_provider_requirements()
            if self._config.llm_provider == "ollama":
                self._chat_provider = OllamaChatClient(
                    base_url=self._config.ollama_url,
                    model=self._config.ollama_chat_model,
                    temperature=self._config.llm_temperature,
                    timeout=self._config.request_timeout_seconds,
                )
            else:
                self._chat_provider = OpenAIChatClient(
                    api_key=self._config.openai_api_key or "",
                    model=self._config.openai_model,
                    base_url=self._config.openai_base_url,
                    temperature=self._config.llm_temperature,
                    max_tokens=self._config.llm_max_tokens,
                    timeout=self._config.request_timeout_seconds,
                )
        return self._chat_provider

    def provide_analyzer(self) -> ThreadAnalyzer:
        """Provide thread analyzer using the configured chat provider."""
        return ThreadAnalyzer(
            self.provide_chat_provider(),
            system_prompt=self._config.analysis_system_prompt,
            min_thread_size=self._config.min_thread_size,
            batch_size=self._config.analysis_batch_size,
            batch_delay_seconds=self._config.analysis_batch_delay_seconds,
        )

    def provide_filter_use_case(self) -> FilterChannelUseCase:
        """Provide FilterChannelUseCase wired with repository and filter."""
        return FilterChannelUseCase(
            FilterChannelDeps(
                repository=self._repository,
                relevance_filter=self.provide_relevance_filter(),
            )
        )

    def provide_thread_use_case(self) -> ThreadChannelUseCase:
        """Provide ThreadChannelUseCase wired with repository and builder."""
        return ThreadChannelUseCase(
            ThreadChannelDeps(
                repository=self._repository,
                builder=self._thread_builder,
                min_thread_size=self._config.min_thread_size,
            )
        )

    def provide_analyze_use_case(self) -> AnalyzeChannelUseCase:
        """Provide AnalyzeChannelUseCase wired with repository and analyzer."""
        return AnalyzeChannelUseCase(
            AnalyzeChannelDeps(
                repository=self._repository, analyzer=self.provide_analyzer()
            )
        )

    def provide_rank_findings_use_case(self) -> RankFindingsUseCase:
        """Provide RankFindingsUseCase with the configured list length."""
        return RankFindingsUseCase(
            RankFindingsDeps(
                repository=self._repository, top_n=self._config.top_findings_limit
            )
        )

    def provide_pipeline_runner(
        self, *, stages: Sequence[str] = STAGES
    ) -> PipelineRunner:
        """Provide PipelineRunner with use-cases for the requested stages only."""
        deps = PipelineRunnerDeps(
            config=self._config,
            filter_use_case=(
                self.provide_filter_use_case() if "filter" in stages else None
            ),
            thread_use_case=(
                self.provide_thread_use_case() if "thread" in stages else None
            ),
            analyze_use_case=(
                self.provide_analyze_use_case() if "analyze" in stages else None
            ),
        )
        return PipelineRunner(deps)
