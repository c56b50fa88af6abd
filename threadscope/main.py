"""Main entry point and CLI for the threadscope pipeline.

Provides both module entry point (python -m threadscope) and a console CLI
with one subcommand per stage plus ``run`` for the whole pipeline. Arguments
override environment-based configuration selectively.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from threadscope.core.config import ThreadscopeConfig
from threadscope.core.exceptions import ThreadscopeError
from threadscope.di.container import Container
from threadscope.observability.logging_config import get_logger, setup_logging
from threadscope.services.runners.pipeline_runner import STAGES
from threadscope.utils.correlation import CorrelationContext


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser with subcommands.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="threadscope",
        description=(
            "Discord export relevance filtering, threading and analysis. "
            "If no subcommand is provided, the default is 'run'."
        ),
    )
    subparsers = parser.add_subparsers(dest="command")

    # filter: embed and score one channel export
    filter_parser = subparsers.add_parser(
        "filter", help="Score one channel export against the relevance query"
    )
    filter_parser.add_argument("--channel", required=True, help="Channel export name")
    filter_parser.add_argument(
        "--export",
        dest="export_path",
        type=Path,
        help="Explicit export file (overrides EXPORTS_DIR + template)",
    )
    filter_parser.add_argument(
        "--query", dest="relevance_query", help="Override RELEVANCE_QUERY"
    )
    filter_parser.add_argument(
        "--threshold",
        dest="similarity_threshold",
        type=float,
        help="Override SIMILARITY_THRESHOLD (0..1)",
    )

    # thread: build threads from export + relevance set
    thread_parser = subparsers.add_parser(
        "thread", help="Build conversation threads around relevant messages"
    )
    thread_parser.add_argument("--channel", required=True, help="Channel export name")
    thread_parser.add_argument(
        "--window",
        dest="time_window_seconds",
        type=float,
        help="Override TIME_WINDOW_SECONDS",
    )
    thread_parser.add_argument(
        "--min-size",
        dest="min_thread_size",
        type=int,
        help="Override MIN_THREAD_SIZE",
    )

    # analyze: LLM analysis of stored threads
    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze a channel's substantial threads with an LLM"
    )
    analyze_parser.add_argument("--channel", required=True, help="Channel export name")
    analyze_parser.add_argument(
        "--provider",
        dest="llm_provider",
        choices=["ollama", "openai"],
        help="Override LLM_PROVIDER",
    )
    analyze_parser.add_argument(
        "--min-size",
        dest="min_thread_size",
        type=int,
        help="Override MIN_THREAD_SIZE",
    )

    # run: every stage over every configured channel
    run_parser = subparsers.add_parser(
        "run", help="Run the pipeline for all configured channels (default)"
    )
    run_parser.add_argument(
        "--channels",
        dest="channels",
        nargs="+",
        help="Override channel list (space-separated)",
    )
    run_parser.add_argument(
        "--stages",
        dest="stages",
        nargs="+",
        choices=list(STAGES),
        help="Stages to run, in pipeline order (default: all)",
    )

    # findings: rank findings across analyzed channels
    findings_parser = subparsers.add_parser(
        "findings", help="Rank findings across analyzed channels"
    )
    findings_parser.add_argument(
        "--channels",
        dest="channels",
        nargs="+",
        help="Channels to include (default: configured or all analyzed)",
    )
    findings_parser.add_argument(
        "--top",
        dest="top_findings_limit",
        type=int,
        help="Override TOP_FINDINGS_LIMIT",
    )

    return parser


_OVERRIDES: dict[str, tuple[str, ...]] = {
    "filter": ("relevance_query", "similarity_threshold"),
    "thread": ("time_window_seconds", "min_thread_size"),
    "analyze": ("llm_provider", "min_thread_size"),
    "run": ("channels",),
    "findings": ("channels", "top_findings_limit"),
}


def _selected_stages(command: str, args: argparse.Namespace) -> tuple[str, ...]:
    if command == "run":
        chosen = getattr(args, "stages", None) or STAGES
        # keep pipeline order regardless of argument order
        return tuple(s for s in STAGES if s in chosen)
    if command in STAGES:
        return (command,)
    return ()


def _load_config(command: str, args: argparse.Namespace) -> ThreadscopeConfig | None:
    """Load configuration from environment and apply CLI overrides.

    Returns None if validation/loading failed (errors are printed).
    """
    try:
        overrides: dict[str, Any] = {
            k: getattr(args, k)
            for k in _OVERRIDES.get(command, ())
            if getattr(args, k, None) is not None
        }
        config = ThreadscopeConfig(**overrides)
        if "analyze" in _selected_stages(command, args):
            config.validate_provider_requirements()
        return config
    except ValidationError as e:
        print(f"Configuration validation error:\n{e}", file=sys.stderr)
        return None
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return None


async def _run_command(
    command: str, args: argparse.Namespace, config: ThreadscopeConfig
) -> int:
    """Execute the selected CLI command using provided configuration."""
    setup_logging(
        level=config.log_level,
        log_format=config.log_format,
        service_name=config.service_name,
    )
    logger = get_logger(__name__)

    with CorrelationContext() as correlation_id:
        logger.info(
            "Starting threadscope",
            extra={
                "command": command,
                "correlation_id": correlation_id,
                "output_dir": str(config.output_dir),
            },
        )
        container = Container(config=config)
        try:
            if command == "filter":
                result = await asyncio.to_thread(
                    container.provide_filter_use_case().execute,
                    channel=args.channel,
                    correlation_id=correlation_id,
                    export_path=getattr(args, "export_path", None),
                )
                print(
                    f"{result.relevant_messages} relevant messages "
                    f"({result.total_chunks} chunks) saved to "
                    f"{container.provide_repository().get_relevance_path(args.channel)}"
                )
            elif command == "thread":
                document = container.provide_thread_use_case().execute(
                    channel=args.channel, correlation_id=correlation_id
                )
                print(
                    f"{document.statistics.total_threads} threads "
                    f"({document.substantial_threads} with "
                    f"{config.min_thread_size}+ messages) saved to "
                    f"{container.provide_repository().get_threads_path(args.channel)}"
                )
            elif command == "analyze":
                analysis = await container.provide_analyze_use_case().execute(
                    channel=args.channel, correlation_id=correlation_id
                )
                print(
                    f"{analysis.threads_analyzed} threads analyzed, "
                    f"{analysis.threads_failed} failed, "
                    f"{analysis.total_tokens} tokens used"
                )
            elif command == "findings":
                channels = (
                    config.channels
                    or container.provide_repository().list_analyzed_channels()
                )
                if not channels:
                    logger.error("No analyzed channels found")
                    return 1
                summary = container.provide_rank_findings_use_case().execute(
                    channels=channels, correlation_id=correlation_id
                )
                print(
                    f"Findings from {summary.total_threads_analyzed} threads in "
                    f"{summary.total_channels} channels saved to "
                    f"{container.provide_repository().get_findings_path()}"
                )
            else:
                if not config.channels:
                    logger.error("No channels configured (set CHANNELS or --channels)")
                    return 1
                stages = _selected_stages(command, args)
                runner = container.provide_pipeline_runner(stages=stages)
                results = await runner.run_all(
                    stages=stages, correlation_id=correlation_id
                )
                failed = [r.channel for r in results if not r.success]
                if failed:
                    logger.error(
                        "Some channels failed",
                        extra={"correlation_id": correlation_id, "channels": failed},
                    )
                    return 1

            logger.info(
                "threadscope completed successfully",
                extra={"correlation_id": correlation_id},
            )
            return 0
        except ThreadscopeError as e:
            logger.error(
                f"{command} failed: {e}",
                extra={
                    "correlation_id": correlation_id,
                    "error_class": type(e).__name__,
                },
            )
            return 1
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            return 1
        except Exception as e:
            logger.exception(f"Fatal error in threadscope: {e}")
            return 1


async def main(argv: list[str] | None = None) -> int:
    """Main application entry point with CLI support.

    Args:
        argv: Optional list of arguments to parse; defaults to sys.argv[1:]

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Determine subcommand; default to 'run' if none
    command = args.command or "run"

    config = _load_config(command, args)
    if config is None:
        return 1

    return await _run_command(command, args, config)


def cli() -> None:
    """Synchronous CLI entrypoint for console_scripts."""
    exit_code = asyncio.run(main())
    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
