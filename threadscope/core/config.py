"""Configuration management using Pydantic BaseSettings.

This module provides strongly-typed configuration with automatic validation
and environment variable loading.
"""

from pathlib import Path
from typing import Annotated, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_RELEVANCE_QUERY = (
    "cybersecurity hardware hacking vulnerabilities exploits "
    "JTAG UART SPI I2C firmware reverse engineering "
    "debugging bootloader flash memory encryption "
    "security vulnerabilities penetration testing "
    "exploit development buffer overflow "
    "hardware security embedded systems IoT security"
)

DEFAULT_ANALYSIS_SYSTEM_PROMPT = (
    "You are a hardware security expert analyzing Discord discussions. "
    "Extract structured information and respond only with valid JSON."
)


class ThreadscopeConfig(BaseSettings):
    """Pipeline configuration with Pydantic validation.

    All settings are loaded from environment variables with type validation
    and custom validators for complex fields.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # === Sources ===
    channels: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma-separated list of channel export names to process",
    )

    # === Paths ===
    exports_dir: Path = Field(
        default=Path("./discord-exports"),
        description="Directory holding Discord channel exports",
    )
    output_dir: Path = Field(
        default=Path("./output"), description="Directory for pipeline artifacts"
    )
    export_filename_template: str = Field(
        default="{channel}_export.json",
        description="Export file name inside exports_dir; {channel} is substituted",
    )

    # === Relevance Filter ===
    ollama_url: str = Field(
        default="http://localhost:11434", description="Ollama base URL"
    )
    embedding_model: str = Field(
        default="nomic-embed-text", description="Ollama embedding model name"
    )
    relevance_query: str = Field(
        default=DEFAULT_RELEVANCE_QUERY,
        min_length=1,
        description="Topic query the chunks are scored against",
    )
    similarity_threshold: float = Field(
        default=0.55,
        ge=0.0,
        le=1.0,
        description="Minimum cosine similarity for a chunk to be relevant",
    )
    chunk_size: int = Field(
        default=500, ge=50, le=10000, description="Maximum characters per chunk"
    )
    progress_interval: int = Field(
        default=100,
        ge=1,
        le=100000,
        description="Log filter progress every N processed chunks",
    )

    # === Threading ===
    time_window_seconds: float = Field(
        default=300.0,
        gt=0,
        le=86400,
        description=(
            "Same-author time proximity window in seconds "
            "(300 for single-channel threading, 1800 for batch runs)"
        ),
    )
    min_thread_size: int = Field(
        default=3,
        ge=1,
        le=1000,
        description="Minimum messages for a thread to count as substantial",
    )

    # === Analysis ===
    llm_provider: str = Field(
        default="openai",
        pattern=r"^(ollama|openai)$",
        description="Chat LLM backend: ollama or openai",
    )
    ollama_chat_model: str = Field(
        default="llama3.1", description="Ollama chat model for thread analysis"
    )
    openai_api_key: Optional[str] = Field(
        default=None, description="OpenAI API key (required for llm_provider=openai)"
    )
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", description="OpenAI API base URL"
    )
    llm_temperature: float = Field(
        default=0.3, ge=0.0, le=2.0, description="Sampling temperature"
    )
    llm_max_tokens: int = Field(
        default=1500, ge=16, le=32000, description="Maximum completion tokens"
    )
    analysis_batch_size: int = Field(
        default=5, ge=1, le=50, description="Threads analyzed concurrently per batch"
    )
    analysis_batch_delay_seconds: float = Field(
        default=1.0, ge=0.0, le=60.0, description="Pause between analysis batches"
    )
    analysis_system_prompt: str = Field(
        default=DEFAULT_ANALYSIS_SYSTEM_PROMPT,
        min_length=1,
        description="System prompt sent with every analysis request",
    )
    request_timeout_seconds: float = Field(
        default=60.0, gt=0, le=600, description="HTTP timeout for upstream services"
    )

    # === Findings ===
    top_findings_limit: int = Field(
        default=20, ge=1, le=1000, description="Entries kept per findings category"
    )

    # === Logging ===
    log_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level",
    )
    log_format: str = Field(
        default="text",
        pattern=r"^(json|text)$",
        description="Log output format: json or text",
    )
    service_name: str = Field(
        default="threadscope",
        description="Service name to include in log records",
    )

    @field_validator("channels", mode="before")
    @classmethod
    def parse_channels(cls, v: str | list[str] | None) -> list[str]:
        """Parse channel list from a comma-separated string."""
        if v is None:
            return []
        if isinstance(v, str):
            return [c.strip() for c in v.split(",") if c.strip()]
        return [str(c).strip() for c in v if str(c).strip()]

    @field_validator("export_filename_template")
    @classmethod
    def require_channel_placeholder(cls, v: str) -> str:
        """Ensure the export template references the channel name."""
        if "{channel}" not in v:
            raise ValueError("export_filename_template must contain {channel}")
        return v

    @field_validator("ollama_url", "openai_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs so paths can be appended."""
        return v.rstrip("/")

    def validate_provider_requirements(self) -> None:
        """Validate provider-specific requirements.

        Raises:
            ValueError: If the selected LLM provider is missing credentials
        """
        if self.llm_provider == "openai" and not self.openai_api_key:
            raise ValueError("openai_api_key is required when llm_provider=openai")
