"""Vault file watcher.

Watchdog delivers events on its own observer thread.  The handler keeps
only Markdown creations, modifications and move targets, converts them
to vault-relative paths and hands them to the event loop with
``call_soon_threadsafe``.  Debouncing happens in the engine.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from watchdog.events import (
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..file_handler import to_vault_path

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)

ModifiedCallback = Callable[[str, "float | None"], None]


class VaultEventHandler(FileSystemEventHandler):
    """Forward Markdown change events to *callback* on *loop*."""

    def __init__(
        self,
        root: Path,
        callback: ModifiedCallback,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        super().__init__()
        self._root = root
        self._callback = callback
        self._loop = loop

    def _forward(self, raw_path: str | bytes) -> None:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode("utf-8", errors="replace")
        path = Path(raw_path)
        if path.suffix.lower() != ".md":
            return
        try:
            rel = to_vault_path(self._root, path)
            mtime = path.stat().st_mtime
        except (ValueError, OSError) as e:
            logger.debug("Ignoring event for %s: %s", path, e)
            return
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._callback, rel, mtime)

    def on_created(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileCreatedEvent):
            self._forward(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileModifiedEvent):
            self._forward(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileMovedEvent):
            self._forward(event.dest_path)


class VaultWatcher:
    """Watch a vault recursively and report modified notes.

    Args:
        root: Vault root directory.
        callback: Called on the loop thread as ``callback(path, mtime)``.
        loop: Loop to deliver events on; defaults to the running loop.
    """

    def __init__(
        self,
        root: Path | str,
        callback: ModifiedCallback,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._root = Path(root).resolve()
        if not self._root.is_dir():
            raise ValueError(f"Watch path must be a directory: {root}")
        self._handler = VaultEventHandler(
            self._root, callback, loop or asyncio.get_running_loop()
        )
        self._observer: BaseObserver | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(self._handler, str(self._root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching vault %s", self._root)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._observer = None
        logger.info("Stopped watching vault %s", self._root)
