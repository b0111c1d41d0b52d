"""Command line interface for Message Actions."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from message_actions.core import AppSettings, configure_logging, load_app_settings
from message_actions.core.datetime_utils import serialize_date
from message_actions.core.models import (
    AnalysisContext,
    HighlightRange,
    MessageAnalysisResult,
)
from message_actions.intelligence import (
    AnalysisSession,
    build_analysis_engine,
    resolve_item,
)


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Detect planning actions in vendor messages"
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "analyze"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "--message",
        default=None,
        help="Message text to analyse; read from --message-file when omitted.",
    )
    parser.add_argument(
        "--message-file",
        dest="message_file",
        type=Path,
        default=None,
        help="File containing the message text to analyse.",
    )
    parser.add_argument(
        "--vendor-name",
        dest="vendor_name",
        default="Unknown vendor",
        help="Name of the vendor who sent the message.",
    )
    parser.add_argument(
        "--vendor-category",
        dest="vendor_category",
        default="General",
        help="Vendor category, e.g. Photographer (default: General).",
    )
    parser.add_argument(
        "--contact-id",
        dest="contact_id",
        default="cli",
        help="Contact identifier used to scope cached analyses.",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the analysis service and use rule-based detection only.",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit code."""
    command = args.command
    if command == "info":
        print("Message Actions is ready.")
        service_state = "enabled" if settings.service.enabled else "disabled"
        print(f"Analysis service: {settings.service.base_url} ({service_state})")
        print(f"Cache TTL: {settings.cache.ttl_seconds}s")
        return 0
    if command == "analyze":
        message = _read_message(args)
        if not message:
            print("No message provided. Use --message or --message-file.")
            return 2
        if args.offline:
            settings = settings.model_copy(
                update={
                    "service": settings.service.model_copy(update={"enabled": False})
                }
            )
        context = AnalysisContext(
            message_content=message,
            vendor_category=args.vendor_category,
            vendor_name=args.vendor_name,
            contact_id=args.contact_id,
        )
        return asyncio.run(_run_analyze(settings, context))
    return 2


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    raise SystemExit(execute(args, settings))


def _read_message(args: argparse.Namespace) -> str:
    if args.message:
        return args.message
    if args.message_file is not None:
        return args.message_file.read_text(encoding="utf-8")
    return ""


async def _run_analyze(settings: AppSettings, context: AnalysisContext) -> int:
    """Analyse one message and print the detections."""
    session = AnalysisSession(build_analysis_engine(settings))
    result = await session.analyze_message(context)
    if result is None:
        print(f"Analysis failed: {session.error}")
        return 1
    _print_result(result, session.get_highlighted_ranges(context.message_content))
    return 0


def _print_result(
    result: MessageAnalysisResult, highlights: list[HighlightRange]
) -> None:
    source = "rule-based fallback" if result.used_fallback else result.provider
    print(
        f"Analysis type: {result.analysis_type}  "
        f"confidence: {result.confidence:.2f}  source: {source}"
    )
    if result.total_items == 0:
        print("No planning actions detected.")
        return

    for todo in result.new_todos:
        deadline = serialize_date(todo.suggested_deadline) or "-"
        print(
            f"[new]      {todo.title} ({todo.category}, {todo.priority}, "
            f"due {deadline}, {todo.confidence:.2f})"
        )
    for update in result.todo_updates:
        target = update.todo_title or update.todo_id or "(unmatched task)"
        print(f"[update]   {target}: {update.update_type} - {update.content}")
    for completion in result.completed_todos:
        target = completion.todo_title or completion.todo_id or "(unmatched task)"
        print(f"[done]     {target}: {completion.completion_reason}")

    if highlights:
        print()
        header = f"{'Start':>5}  {'End':>5}  {'Type':<10}  Source text"
        print(header)
        print("-" * len(header))
        for highlight in highlights:
            item = resolve_item(result, highlight)
            print(
                f"{highlight.start:>5}  {highlight.end:>5}  {highlight.type:<10}  "
                f"{item.source_text}"
            )


if __name__ == "__main__":
    main()
