"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from ..core.async_utils import run_sync
from ..runtime import create_engine, load_runtime
from ..sync.scheduler import AutoSyncScheduler

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Resolve configuration: CLI > env vars (.env) > YAML config > defaults
    - Create the WikiJS client and probe the connection
    - Fail fast if WikiJS is unreachable
    - Build the sync engine over the vault
    - Start the vault watcher and periodic sync when auto_sync is on

    On shutdown:
    - Stop the scheduler and the watcher

    Args:
        config_overrides: Optional dict with config values from CLI
            (url, api_key, insecure, debug, vault)

    Yields:
        Dict with 'engine' and 'scheduler' (``None`` without auto_sync)

    Raises:
        RuntimeError: If configuration is invalid or WikiJS is unreachable.
    """
    logger.info("MCP server starting...")
    _stderr_print("WikiJS Sync MCP Server starting...")

    try:
        runtime = load_runtime(config_overrides)
        source_desc = ", ".join(runtime.sources)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
        logger.info("WikiJS URL: %s", runtime.config.wiki_url)
        _stderr_print(f"  WikiJS URL: {runtime.config.wiki_url}")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print("  Ensure WIKIJS_URL and WIKIJS_API_KEY are set.")
        raise RuntimeError(
            f"Configuration error: {e}. Ensure WIKIJS_URL and WIKIJS_API_KEY are set."
        ) from e

    logger.info("Validating WikiJS connection...")
    _stderr_print("  Validating WikiJS connection...")
    try:
        engine = create_engine(runtime.config, runtime.settings)
        connected = await run_sync(engine.client.test_connection)
    except Exception as e:
        logger.error("Failed to start sync engine: %s", e)
        _stderr_print(f"ERROR: {e}")
        raise RuntimeError(f"Failed to start sync engine: {e}") from e
    if not connected:
        _stderr_print("ERROR: WikiJS connection failed.")
        _stderr_print("  Check WIKIJS_URL and WIKIJS_API_KEY.")
        raise RuntimeError(
            "WikiJS connection failed. Check WIKIJS_URL and WIKIJS_API_KEY."
        )
    _stderr_print(f"  Vault: {engine.store.root}")

    scheduler = None
    if engine.start_watching():
        scheduler = AutoSyncScheduler(engine, runtime.settings.sync_interval)
        scheduler.start()
        _stderr_print(
            f"  Auto-sync on (every {runtime.settings.sync_interval} min)"
        )
    _stderr_print("Server ready. Waiting for MCP client connection...")

    try:
        yield {"engine": engine, "scheduler": scheduler}
    finally:
        logger.info("MCP server shutting down")
        if scheduler is not None:
            await scheduler.stop()
        engine.stop_watching()
        _stderr_print("WikiJS Sync MCP Server shutting down.")
