"""Command-line interface for wikijs-sync.

Subcommands mirror the MCP tools: full sync passes (``sync``, ``push``,
``pull``), single notes (``sync-file``, ``preview``), ``status``,
``test-connection`` and a long-running ``watch`` mode.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from . import __version__
from .config_schema import SyncDirection
from .core.async_utils import run_sync
from .logger import setup_logging
from .runtime import create_engine, load_runtime
from .sync.engine import SyncEngine
from .sync.models import SyncResult
from .sync.reporter import (
    format_page_preview,
    format_status,
    format_sync_result,
    result_to_json,
)
from .sync.scheduler import AutoSyncScheduler

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wikijs-sync",
        description="Synchronise an Obsidian vault with a WikiJS instance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Two-way sync using .wikijs_sync/config.yml and WIKIJS_* env vars
  wikijs-sync sync

  # Push every note, once
  wikijs-sync --vault ~/notes push

  # Push one note
  wikijs-sync sync-file notes/meeting.md

  # Keep syncing modified notes until interrupted
  wikijs-sync watch
        """,
    )
    parser.add_argument("--url", help="Override WikiJS URL")
    parser.add_argument(
        "--api-key",
        help="Override WikiJS API key (prefer WIKIJS_API_KEY env var)",
    )
    parser.add_argument("--vault", help="Vault directory")
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (development only)",
    )
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", help="Also log to this file")
    parser.add_argument(
        "--json", action="store_true", help="Print results as JSON"
    )
    parser.add_argument(
        "--version", action="version", version=f"wikijs-sync {__version__}"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sync_p = sub.add_parser("sync", help="Run a full sync pass")
    sync_p.add_argument(
        "--direction",
        choices=[d.value for d in SyncDirection],
        help="Override the configured direction",
    )
    sub.add_parser("push", help="Push every note to WikiJS")
    sub.add_parser("pull", help="Pull every WikiJS page into the vault")

    file_p = sub.add_parser("sync-file", help="Push a single note")
    file_p.add_argument("path", help="Vault-relative note path")

    preview_p = sub.add_parser(
        "preview", help="Show the page a push of a note would send"
    )
    preview_p.add_argument("path", help="Vault-relative note path")

    sub.add_parser("status", help="Show sync configuration")
    sub.add_parser("test-connection", help="Check WikiJS connectivity")
    sub.add_parser(
        "watch", help="Push modified notes and sync periodically until interrupted"
    )
    return parser


def _config_overrides(args: argparse.Namespace) -> dict:
    overrides: dict = {}
    if args.url:
        overrides["url"] = args.url
    if args.api_key:
        overrides["api_key"] = args.api_key
    if args.vault:
        overrides["vault"] = args.vault
    if args.insecure:
        overrides["insecure"] = True
    if args.debug:
        overrides["debug"] = True
    return overrides


def _print_result(result: SyncResult, as_json: bool) -> int:
    if as_json:
        print(json.dumps(result_to_json(result), indent=2))
    else:
        print(format_sync_result(result))
    return 0 if result.success else 1


async def _watch(engine: SyncEngine) -> int:
    settings = engine.settings
    if not settings.auto_sync:
        engine.update_settings(settings.model_copy(update={"auto_sync": True}))
    engine.start_watching()
    scheduler = AutoSyncScheduler(engine, engine.settings.sync_interval)
    scheduler.start()
    print(
        f"Watching {engine.store.root} (full sync every "
        f"{engine.settings.sync_interval} min). Press Ctrl-C to stop.",
        file=sys.stderr,
    )
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
        engine.stop_watching()
    return 0


async def run_command(args: argparse.Namespace, engine: SyncEngine) -> int:
    """Execute the parsed subcommand against *engine*; return the exit code."""
    match args.command:
        case "sync":
            return _print_result(await engine.sync(args.direction), args.json)
        case "push":
            return _print_result(
                await engine.sync(SyncDirection.OBSIDIAN_TO_WIKI), args.json
            )
        case "pull":
            return _print_result(
                await engine.sync(SyncDirection.WIKI_TO_OBSIDIAN), args.json
            )
        case "sync-file":
            return _print_result(await engine.sync_file(args.path), args.json)
        case "preview":
            content = await run_sync(engine.store.read, args.path)
            page_input = engine.build_page_input(args.path, content)
            if args.json:
                print(json.dumps(page_input.model_dump(), indent=2))
            else:
                frontmatter, _ = engine.converter.extract_frontmatter(content)
                custom = engine.converter.obsidian_to_wiki(frontmatter).custom_data
                print(format_page_preview(page_input, custom))
            return 0
        case "status":
            print(
                format_status(
                    engine.settings,
                    engine.last_pass_at,
                    syncing=engine.is_syncing,
                    watching=engine.is_watching,
                )
            )
            return 0
        case "test-connection":
            if await run_sync(engine.client.test_connection):
                print("Connected to WikiJS")
                return 0
            print("WikiJS connection failed", file=sys.stderr)
            return 1
        case "watch":
            return await _watch(engine)
        case _:
            raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        runtime = load_runtime(_config_overrides(args))
    except (ValueError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(
        mode="cli",
        debug=runtime.config.debug,
        log_file=args.log_file or runtime.unified.logging.file,
        level=runtime.unified.logging.level,
    )

    try:
        engine = create_engine(runtime.config, runtime.settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        return asyncio.run(run_command(args, engine))
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
