"""Vault <-> WikiJS sync engine.

Public API for synchronising an Obsidian vault (Markdown notes with YAML
frontmatter) with WikiJS pages.

Architecture
------------
There is no durable sync state.  The engine keeps, per vault path, the
wall-clock time of the last successful sync and the checksum of the last
pushed content.  A bidirectional pass compares the note's mtime and the
page's ``updatedAt`` against that timestamp; both newer is a conflict.

Modules:

- ``engine``    -- ``SyncEngine``: full passes, single-note pushes,
  debounced watcher channel.
- ``mapper``    -- ``PathMapper``: vault path <-> wiki path.
- ``metadata``  -- ``MetadataConverter``: frontmatter <-> page metadata.
- ``store``     -- ``VaultStore``: filesystem access to the vault.
- ``watcher``   -- ``VaultWatcher``: watchdog observer feeding the engine.
- ``scheduler`` -- ``AutoSyncScheduler``: periodic full passes.
- ``models``    -- ``LocalItem``, ``ConflictItem``, ``SyncResult``.
- ``reporter``  -- Human-readable and JSON formatting.

Usage example
-------------
::

    from wikijs_sync.config_schema import SyncSettings
    from wikijs_sync.core.client import WikiJSClient
    from wikijs_sync.sync import SyncEngine, VaultStore, format_sync_result

    engine = SyncEngine(
        client=WikiJSClient(config),
        store=VaultStore("~/notes"),
        settings=SyncSettings(direction="obsidian-to-wiki"),
    )
    result = await engine.sync()
    print(format_sync_result(result))
"""

from .engine import ConnectionFailedError, SyncEngine
from .mapper import PathMapper
from .metadata import MetadataConverter, WikiMetadata
from .models import ConflictItem, ConflictType, LocalItem, SyncResult
from .reporter import (
    format_page_preview,
    format_status,
    format_sync_result,
    result_to_json,
)
from .scheduler import AutoSyncScheduler
from .store import VaultStore
from .watcher import VaultWatcher

__all__ = [
    "AutoSyncScheduler",
    "ConflictItem",
    "ConflictType",
    "ConnectionFailedError",
    "LocalItem",
    "MetadataConverter",
    "PathMapper",
    "SyncEngine",
    "SyncResult",
    "VaultStore",
    "VaultWatcher",
    "WikiMetadata",
    "format_page_preview",
    "format_status",
    "format_sync_result",
    "result_to_json",
]
