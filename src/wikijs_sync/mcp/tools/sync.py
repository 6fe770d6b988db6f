"""MCP tool handlers for vault <-> WikiJS sync.

Defines four tools:

- ``wiki_sync`` -- run a full sync pass (optional direction override).
- ``wiki_sync_file`` -- push a single note.
- ``wiki_sync_status`` -- show engine configuration and state.
- ``wiki_sync_preview`` -- show the page a push of a note would send.
"""

from __future__ import annotations

import logging
from typing import Any

import mcp.types as types

from ...config_schema import SyncDirection
from ...core.async_utils import run_sync
from ...core.models import format_timestamp
from ...sync.engine import SyncEngine
from ...sync.reporter import (
    format_page_preview,
    format_status,
    format_sync_result,
    result_to_json,
)
from .errors import build_error_response
from .registry import ToolSpec

logger = logging.getLogger(__name__)

_DIRECTIONS = [d.value for d in SyncDirection]


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


SYNC_TOOLS: list[types.Tool] = [
    types.Tool(
        name="wiki_sync",
        description=(
            "Synchronize the Obsidian vault with WikiJS. Pushes notes, "
            "pulls pages, or both, with conflict detection in "
            "bidirectional mode. Pages are never deleted."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "direction": {
                    "type": "string",
                    "enum": _DIRECTIONS,
                    "description": (
                        "Override the configured sync direction for this run"
                    ),
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="wiki_sync_file",
        description="Push a single vault note to WikiJS.",
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Vault-relative note path (e.g. notes/a.md)",
                },
            },
            "required": ["path"],
        },
    ),
    types.Tool(
        name="wiki_sync_status",
        description=(
            "Show sync configuration and state -- direction, conflict "
            "policy, last sync time, whether a sync is running."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    types.Tool(
        name="wiki_sync_preview",
        description=(
            "Show the wiki path, title, tags and body a push of a note "
            "would send, without contacting WikiJS."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Vault-relative note path (e.g. notes/a.md)",
                },
            },
            "required": ["path"],
        },
    ),
]


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


async def _handle_sync(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    direction = args.get("direction")
    if direction is not None and direction not in _DIRECTIONS:
        return build_error_response(
            "validation_error",
            f"Invalid direction '{direction}'",
            f"Use one of: {', '.join(_DIRECTIONS)}.",
        )

    result = await engine.sync(direction)
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=format_sync_result(result))
        ],
        structuredContent=result_to_json(result),
        isError=not result.success,
    )


async def _handle_sync_file(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    path = args.get("path")
    if not path:
        return build_error_response(
            "validation_error",
            "path is required",
            "Provide the 'path' parameter with a vault-relative note path.",
        )

    result = await engine.sync_file(path)
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=format_sync_result(result))
        ],
        structuredContent=result_to_json(result),
        isError=not result.success,
    )


async def _handle_sync_status(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    settings = engine.settings
    text = format_status(
        settings,
        engine.last_pass_at,
        syncing=engine.is_syncing,
        watching=engine.is_watching,
        pending=engine.pending_tasks,
    )
    structured = {
        "vault_path": settings.vault_path,
        "direction": settings.direction.value,
        "conflict_resolution": settings.conflict_resolution.value,
        "auto_sync": settings.auto_sync,
        "sync_interval": settings.sync_interval,
        "last_sync": format_timestamp(engine.last_pass_at)
        if engine.last_pass_at
        else None,
        "syncing": engine.is_syncing,
        "watching": engine.is_watching,
        "pending": engine.pending_tasks,
    }
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


async def _handle_sync_preview(
    engine: SyncEngine, args: dict[str, Any]
) -> types.CallToolResult:
    path = args.get("path")
    if not path:
        return build_error_response(
            "validation_error",
            "path is required",
            "Provide the 'path' parameter with a vault-relative note path.",
        )
    if not await run_sync(engine.store.exists, path):
        return build_error_response(
            "not_found",
            f"Note not found: {path}",
            "Check the path is relative to the vault root and ends in .md.",
        )

    content = await run_sync(engine.store.read, path)
    page_input = engine.build_page_input(path, content)
    frontmatter, _ = engine.converter.extract_frontmatter(content)
    custom_data = engine.converter.obsidian_to_wiki(frontmatter).custom_data

    structured = page_input.model_dump()
    structured["custom_data"] = custom_data
    structured["excluded"] = engine.is_excluded(path)
    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text", text=format_page_preview(page_input, custom_data)
            )
        ],
        structuredContent=structured,
    )


# ToolSpec list for registry-based dispatch
SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(tool=SYNC_TOOLS[0], writes=True, handler=_handle_sync),
    ToolSpec(tool=SYNC_TOOLS[1], writes=True, handler=_handle_sync_file),
    ToolSpec(tool=SYNC_TOOLS[2], writes=False, handler=_handle_sync_status),
    ToolSpec(tool=SYNC_TOOLS[3], writes=False, handler=_handle_sync_preview),
]
