"""File-based storage for channel exports and pipeline artifacts.

Exports are read from ``{exports_dir}/{export_filename_template}``; artifacts
are written under ``{output_dir}/{channel}/`` as JSON with an optional
human-readable ``.txt`` companion. Writes are atomic (temp file + rename).
"""

import json
import logging
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError

from threadscope.core.exceptions import InputNotFoundError, MalformedInputError
from threadscope.models.analysis import ChannelAnalysis, FindingsSummary
from threadscope.models.schemas import ChannelExport, RelevanceResult, ThreadsDocument

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

RELEVANCE_ARTIFACT = "relevant_messages"
THREADS_ARTIFACT = "threads"
ANALYSIS_ARTIFACT = "analysis"
FINDINGS_FILE = "top_findings.json"


class ExportRepository:
    """Repository for channel exports and per-channel artifacts."""

    def __init__(
        self,
        exports_dir: Path,
        output_dir: Path,
        *,
        export_filename_template: str = "{channel}_export.json",
    ) -> None:
        """Initialize repository.

        Args:
            exports_dir: Directory holding Discord exports
            output_dir: Root directory for pipeline artifacts
            export_filename_template: Export file name with a {channel}
                placeholder
        """
        self.exports_dir = Path(exports_dir)
        self.output_dir = Path(output_dir)
        self._export_template = export_filename_template
        logger.info(
            f"ExportRepository initialized with output_dir={self.output_dir}",
            extra={"exports_dir": str(self.exports_dir)},
        )

    # Paths
    def get_export_path(self, channel: str) -> Path:
        """Return the export file path for a channel."""
        return self.exports_dir / self._export_template.format(channel=channel)

    def get_artifact_path(self, channel: str, artifact: str, suffix: str = "json") -> Path:
        """Return ``{output_dir}/{channel}/{artifact}.{suffix}``.

        Note: The file may not exist yet; callers should check .exists().
        """
        return self.output_dir / channel / f"{artifact}.{suffix}"

    def get_relevance_path(self, channel: str) -> Path:
        return self.get_artifact_path(channel, RELEVANCE_ARTIFACT)

    def get_threads_path(self, channel: str) -> Path:
        return self.get_artifact_path(channel, THREADS_ARTIFACT)

    def get_analysis_path(self, channel: str) -> Path:
        return self.get_artifact_path(channel, ANALYSIS_ARTIFACT)

    def get_findings_path(self) -> Path:
        return self.output_dir / FINDINGS_FILE

    def list_analyzed_channels(self) -> list[str]:
        """Return channels under output_dir that have an analysis artifact."""
        if not self.output_dir.is_dir():
            return []
        return sorted(
            d.name
            for d in self.output_dir.iterdir()
            if d.is_dir() and (d / f"{ANALYSIS_ARTIFACT}.json").is_file()
        )

    # Inputs
    def load_export(self, channel: str, path: Optional[Path] = None) -> ChannelExport:
        """Load and validate a channel export.

        Args:
            channel: Channel export name
            path: Explicit export file overriding the template path

        Raises:
            InputNotFoundError: Export file is missing
            MalformedInputError: Export isn't valid JSON or fails validation
        """
        export = self._read_model(path or self.get_export_path(channel), ChannelExport)
        logger.info(
            f"Loaded {len(export.messages)} messages",
            extra={"channel": channel, "message_count": len(export.messages)},
        )
        return export

    def load_relevance(self, channel: str) -> RelevanceResult:
        """Load the relevance artifact produced by the filter stage."""
        return self._read_model(self.get_relevance_path(channel), RelevanceResult)

    def load_threads(self, channel: str) -> ThreadsDocument:
        """Load the threads artifact produced by the thread stage."""
        return self._read_model(self.get_threads_path(channel), ThreadsDocument)

    def load_analysis(self, channel: str) -> ChannelAnalysis:
        """Load the analysis artifact produced by the analyze stage."""
        return self._read_model(self.get_analysis_path(channel), ChannelAnalysis)

    # Outputs
    def save_relevance(
        self, channel: str, result: RelevanceResult, readable: Optional[str] = None
    ) -> str:
        """Persist the relevance set and its readable companion."""
        return self._save_artifact(channel, RELEVANCE_ARTIFACT, result, readable)

    def save_threads(
        self, channel: str, document: ThreadsDocument, readable: Optional[str] = None
    ) -> str:
        """Persist the threads document and its readable companion."""
        return self._save_artifact(channel, THREADS_ARTIFACT, document, readable)

    def save_analysis(
        self, channel: str, analysis: ChannelAnalysis, readable: Optional[str] = None
    ) -> str:
        """Persist the channel analysis and its readable report."""
        return self._save_artifact(channel, ANALYSIS_ARTIFACT, analysis, readable)

    def save_findings(
        self, summary: FindingsSummary, readable: Optional[str] = None
    ) -> str:
        """Persist the cross-channel findings summary."""
        path = self.get_findings_path()
        self._write_atomic(path, self._dump(summary))
        if readable is not None:
            self._write_atomic(path.with_suffix(".txt"), readable)
        logger.info(f"Saved findings summary to {path}", extra={"file_path": str(path)})
        return str(path)

    def _save_artifact(
        self,
        channel: str,
        artifact: str,
        model: BaseModel,
        readable: Optional[str],
    ) -> str:
        path = self.get_artifact_path(channel, artifact)
        self._write_atomic(path, self._dump(model))
        if readable is not None:
            self._write_atomic(self.get_artifact_path(channel, artifact, "txt"), readable)
        logger.info(
            f"Saved {artifact} to {path}",
            extra={"channel": channel, "artifact": artifact, "file_path": str(path)},
        )
        return str(path)

    @staticmethod
    def _dump(model: BaseModel) -> str:
        data = model.model_dump(mode="json", by_alias=True)
        return json.dumps(data, ensure_ascii=False, indent=2)

    @staticmethod
    def _write_atomic(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(text)
            temp_path.replace(path)
        except Exception:
            logger.error(f"Failed to write {path}", exc_info=True)
            if temp_path.exists():
                temp_path.unlink()
            raise

    @staticmethod
    def _read_model(path: Path, model: type[ModelT]) -> ModelT:
        if not path.exists():
            raise InputNotFoundError(f"File not found: {path}", path=path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"Invalid JSON in {path}: {e}", path=path) from e
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise MalformedInputError(
                f"Schema validation failed for {path}",
                path=path,
                validation_errors=e.errors(include_url=False),
            ) from e
