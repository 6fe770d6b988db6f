"""Sync result formatting functions.

Provides human-readable and machine-readable output for sync operations:

- ``format_sync_result`` -- post-sync summary; conflicts that need the
  user are listed apart from hard failures.
- ``result_to_json`` -- structured dict for MCP tool output.
- ``format_status`` -- engine configuration and state.
- ``format_page_preview`` -- the page a push would send.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..core.models import format_timestamp

if TYPE_CHECKING:
    from ..config_schema import SyncSettings
    from ..core.models import WikiPageInput
    from .models import SyncResult

_PREVIEW_LINES = 20

# ------------------------------------------------------------------
# Human-readable result
# ------------------------------------------------------------------


def format_sync_result(result: SyncResult) -> str:
    """Format a sync result as human-readable text.

    Sections are only included when they contain at least one entry.

    Args:
        result: The completed sync result.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = [result.message or ("OK" if result.success else "Failed")]

    if result.conflicts:
        lines.append("")
        lines.append(
            f"Manual action required: {len(result.conflicts)} "
            "conflict(s) were left untouched"
        )
        for conflict in result.conflicts:
            lines.append(
                f"  {conflict.path} (local {conflict.local_modified}, "
                f"remote {conflict.remote_modified})"
            )

    if result.errors:
        lines.append("")
        lines.append("Errors:")
        for error in result.errors:
            lines.append(f"  {error}")

    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def result_to_json(result: SyncResult) -> dict:
    """Convert a sync result to a dict for JSON serialisation.

    Suitable for MCP ``structuredContent`` output.
    """
    return {
        "success": result.success,
        "message": result.message,
        "counts": {
            "synced": result.synced,
            "failed": result.failed,
            "conflicts": len(result.conflicts),
        },
        "needs_manual_action": result.needs_manual_action,
        "conflicts": [
            c.model_dump(mode="json", exclude_none=True)
            for c in result.conflicts
        ],
        "errors": list(result.errors),
    }


# ------------------------------------------------------------------
# Status
# ------------------------------------------------------------------


def format_status(
    settings: SyncSettings,
    last_sync: float | None = None,
    *,
    syncing: bool = False,
    watching: bool = False,
    pending: int = 0,
) -> str:
    """Describe the engine configuration and current state."""
    lines = [
        f"Vault: {settings.vault_path}",
        f"Direction: {settings.direction.value}",
        f"Conflict resolution: {settings.conflict_resolution.value}",
        f"Auto-sync: {'on' if settings.auto_sync else 'off'}"
        + (f" (every {settings.sync_interval} min)" if settings.auto_sync else ""),
        f"Last sync: {format_timestamp(last_sync) if last_sync else 'never'}",
        f"Sync in progress: {'yes' if syncing else 'no'}",
        f"Watching: {'yes' if watching else 'no'}",
    ]
    if pending:
        lines.append(f"Pending pushes: {pending}")
    if settings.excluded_folders:
        lines.append(f"Excluded folders: {', '.join(settings.excluded_folders)}")
    if settings.excluded_files:
        lines.append(f"Excluded files: {', '.join(settings.excluded_files)}")
    if settings.path_mappings:
        lines.append("Path mappings:")
        for m in settings.path_mappings:
            state = "" if m.enabled else " (disabled)"
            lines.append(f"  {m.obsidian_path} -> {m.wiki_path}{state}")
    return "\n".join(lines)


# ------------------------------------------------------------------
# Preview
# ------------------------------------------------------------------


def format_page_preview(
    page_input: WikiPageInput, custom_data: dict[str, Any] | None = None
) -> str:
    """Show the page a push would send, truncating long bodies."""
    lines = [
        f"Wiki path: {page_input.path}",
        f"Title: {page_input.title}",
    ]
    if page_input.description:
        lines.append(f"Description: {page_input.description}")
    lines.append(f"Tags: {', '.join(page_input.tags) if page_input.tags else '(none)'}")
    if custom_data:
        lines.append("Custom fields:")
        for key, value in custom_data.items():
            lines.append(f"  {key}: {value}")

    body = page_input.content.splitlines()
    lines.append("")
    lines.extend(body[:_PREVIEW_LINES])
    if len(body) > _PREVIEW_LINES:
        lines.append(f"... ({len(body) - _PREVIEW_LINES} more lines)")
    return "\n".join(lines)
