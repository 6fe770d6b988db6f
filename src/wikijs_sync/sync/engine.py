"""Sync engine between an Obsidian vault and a WikiJS instance.

The ``SyncEngine`` runs one full pass at a time in one of three
directions:

1. **obsidian-to-wiki** -- push every non-excluded note, skipping notes
   whose content checksum matches the last successful push.  Notes are
   pushed through ``batch_process`` with bounded concurrency.
2. **wiki-to-obsidian** -- pull every remote page (paginated listing),
   merging remote metadata into the note's existing frontmatter.
3. **bidirectional** -- compare each side against the path's last-sync
   timestamp; push, pull, or treat as a conflict and apply the
   configured policy.  Remote-only pages are pulled at the end.

Per-item failures are recorded in the result and never abort a pass.
Only a failed connectivity probe (or an error outside the per-item
handlers, such as a failed listing) aborts it.

Last-sync timestamps and pushed-content checksums live in memory and
belong to the engine instance.

The watcher channel (``notify_modified``) debounces modification events
per path and enqueues single-note pushes on an ``AsyncTaskQueue``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Protocol

import requests

from ..config_schema import ConflictResolution, SyncDirection, SyncSettings
from ..core.async_utils import batch_process, retry, run_sync
from ..core.cache import TTLCache, content_checksum
from ..core.client import WikiJSError
from ..core.models import WikiPage, WikiPageInput, format_timestamp
from ..core.task_queue import AsyncTaskQueue
from .mapper import PathMapper
from .metadata import MetadataConverter
from .models import ConflictItem, ConflictType, LocalItem, SyncResult

if TYPE_CHECKING:
    from ..core.client import WikiJSClient
    from .store import VaultStore

logger = logging.getLogger(__name__)

ALREADY_RUNNING_MESSAGE = "Sync already in progress"
LIST_PAGE_SIZE = 1000


def _basename(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    return name[:-3] if name.lower().endswith(".md") else name


class ConnectionFailedError(Exception):
    """The WikiJS connectivity probe failed."""


class Watcher(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


WatcherFactory = Callable[[Callable[[str, "float | None"], None]], Watcher]


@dataclass
class _Tally:
    """Mutable counters for a pass in progress."""

    synced: int = 0
    failed: int = 0
    conflicts: list[ConflictItem] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def fail(self, path: str, exc: BaseException) -> None:
        logger.error("Failed to sync %s: %s", path, exc)
        self.failed += 1
        self.errors.append(f"{path}: {exc}")

    def freeze(self, success: bool, message: str) -> SyncResult:
        return SyncResult(
            success=success,
            message=message,
            synced=self.synced,
            failed=self.failed,
            conflicts=list(self.conflicts),
            errors=list(self.errors),
        )

    def summary(self) -> str:
        return (
            f"Sync completed: {self.synced} synced, {self.failed} failed, "
            f"{len(self.conflicts)} conflicts"
        )


class SyncEngine:
    """Synchronise a vault with WikiJS.

    Args:
        client: WikiJS client (blocking; wrapped with ``run_sync``).
        store: Local vault store (blocking; wrapped with ``run_sync``).
        settings: Sync behaviour.
        max_retries: Retries for remote calls failing at transport level.
        retry_delay: First backoff delay in seconds.
        batch_delay: Pause between push batches in seconds.
        watcher_factory: Builds a filesystem watcher from a
            ``(path, mtime)`` callback.  Without one, modification events
            must be fed to ``notify_modified`` by the caller.
    """

    def __init__(
        self,
        client: WikiJSClient,
        store: VaultStore,
        settings: SyncSettings,
        *,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        batch_delay: float = 0.1,
        watcher_factory: WatcherFactory | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self._settings = settings
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._batch_delay = batch_delay
        self._watcher_factory = watcher_factory

        self.mapper = PathMapper(settings.path_mappings)
        self.converter = MetadataConverter(settings.metadata_mapping)

        self._syncing = False
        self._last_sync: dict[str, float] = {}
        self._last_pass_at: float | None = None
        self._checksums: TTLCache[str, str] = TTLCache(
            ttl=settings.checksum_ttl_minutes * 60
        )
        self._queue = AsyncTaskQueue()
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._watching = False
        self._watcher: Watcher | None = None

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def settings(self) -> SyncSettings:
        return self._settings

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def is_watching(self) -> bool:
        return self._watching

    @property
    def last_pass_at(self) -> float | None:
        """Wall-clock time of the last successful full pass."""
        return self._last_pass_at

    @property
    def pending_tasks(self) -> int:
        return self._queue.size() + len(self._timers)

    def last_synced(self, path: str) -> float | None:
        return self._last_sync.get(path)

    def update_settings(self, settings: SyncSettings) -> None:
        """Swap in new settings and refresh the mapper and converter."""
        self._settings = settings
        self.mapper.update_mappings(settings.path_mappings)
        self.converter.update_mapping(settings.metadata_mapping)
        if self._watching and not settings.auto_sync:
            self.stop_watching()
        logger.debug("Sync settings updated")

    # ------------------------------------------------------------------
    # Full pass
    # ------------------------------------------------------------------

    async def sync(
        self, direction: SyncDirection | str | None = None
    ) -> SyncResult:
        """Run one full sync pass.

        Args:
            direction: Overrides the configured direction for this pass.

        Returns:
            The pass outcome.  A call made while another pass (or a
            single-note sync) is running returns a failure immediately.
        """
        if self._syncing:
            logger.info("Sync requested while another sync is running")
            return SyncResult(success=False, message=ALREADY_RUNNING_MESSAGE)

        self._syncing = True
        tally = _Tally()
        try:
            selected = (
                SyncDirection(direction)
                if direction is not None
                else self._settings.direction
            )
            logger.info("Starting %s sync", selected.value)
            await self._ensure_connected()

            if selected is SyncDirection.OBSIDIAN_TO_WIKI:
                await self._push_all(tally)
            elif selected is SyncDirection.WIKI_TO_OBSIDIAN:
                await self._pull_all(tally)
            else:
                await self._sync_bidirectional(tally)

            self._last_pass_at = time.time()
            message = tally.summary()
            logger.info(message)
            return tally.freeze(True, message)
        except Exception as e:
            logger.error("Sync failed: %s", e)
            tally.errors.append(str(e))
            return tally.freeze(False, f"Sync failed: {e}")
        finally:
            self._syncing = False

    async def sync_file(self, path: str) -> SyncResult:
        """Push a single note outside a full pass."""
        if self._syncing:
            return SyncResult(success=False, message=ALREADY_RUNNING_MESSAGE)
        if self.is_excluded(path):
            return SyncResult(
                success=False, message=f"Excluded from sync: {path}"
            )

        self._syncing = True
        tally = _Tally()
        try:
            await self._ensure_connected()
            await self._push_item(path, tally)
        except ConnectionFailedError as e:
            tally.errors.append(str(e))
            return tally.freeze(False, f"Sync failed: {e}")
        except Exception as e:
            tally.fail(path, e)
            return tally.freeze(False, f"Failed to sync {path}: {e}")
        finally:
            self._syncing = False

        if tally.synced:
            return tally.freeze(True, f"Synced {path} to WikiJS")
        return tally.freeze(True, f"{path} is unchanged")

    async def _ensure_connected(self) -> None:
        if not await run_sync(self.client.test_connection):
            raise ConnectionFailedError("Failed to connect to WikiJS")

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _push_all(self, tally: _Tally) -> None:
        notes = [
            item
            for item in await run_sync(self.store.list_markdown_files)
            if not self.is_excluded(item.path)
        ]
        logger.info("Pushing %d notes", len(notes))

        async def _push(item: LocalItem) -> None:
            try:
                await self._push_item(item.path, tally)
            except Exception as e:
                tally.fail(item.path, e)

        await batch_process(
            notes,
            _push,
            batch_size=self._settings.batch_size,
            concurrency=self._settings.concurrency,
            on_progress=self._log_progress,
            delay=self._batch_delay,
        )

    async def _pull_all(self, tally: _Tally) -> None:
        for page in await self._list_remote_pages():
            try:
                await self._pull_page(page, tally)
            except Exception as e:
                tally.fail(page.path, e)

    async def _sync_bidirectional(self, tally: _Tally) -> None:
        notes = await run_sync(self.store.list_markdown_files)
        remote = {page.path: page for page in await self._list_remote_pages()}

        for item in notes:
            wiki_path = self.mapper.obsidian_to_wiki(item.path)
            page = remote.pop(wiki_path, None)
            if self.is_excluded(item.path):
                continue
            try:
                if page is None:
                    await self._push_item(item.path, tally)
                else:
                    await self._reconcile(item, page, tally)
            except Exception as e:
                tally.fail(item.path, e)

        for page in remote.values():
            try:
                await self._pull_page(page, tally)
            except Exception as e:
                tally.fail(page.path, e)

    async def _reconcile(
        self, item: LocalItem, page: WikiPage, tally: _Tally
    ) -> None:
        last = self._last_sync.get(item.path, 0.0)
        local_changed = item.mtime > last
        remote_changed = page.updated_timestamp > last

        if local_changed and remote_changed:
            policy = self._settings.conflict_resolution
            if policy is ConflictResolution.LOCAL:
                logger.info("Conflict on %s resolved with local copy", item.path)
                await self._push_item(item.path, tally, force=True)
            elif policy is ConflictResolution.REMOTE:
                logger.info("Conflict on %s resolved with remote copy", item.path)
                await self._pull_page(page, tally)
            else:
                logger.warning("Conflict on %s left for manual resolution", item.path)
                tally.conflicts.append(
                    ConflictItem(
                        path=item.path,
                        type=ConflictType.CONTENT,
                        local_modified=format_timestamp(item.mtime),
                        remote_modified=page.updated_at
                        or format_timestamp(page.updated_timestamp),
                    )
                )
        elif local_changed:
            await self._push_item(item.path, tally)
        elif remote_changed:
            await self._pull_page(page, tally)

    # ------------------------------------------------------------------
    # Single items
    # ------------------------------------------------------------------

    async def _push_item(
        self, path: str, tally: _Tally, force: bool = False
    ) -> None:
        content = await run_sync(self.store.read, path)
        checksum = content_checksum(content)
        if not force and self._checksums.get(path) == checksum:
            logger.debug("Skipping unchanged note %s", path)
            return

        page_input = self.build_page_input(path, content)
        existing = await self._remote(self.client.get_page, page_input.path)
        if existing is not None:
            response = await self._remote(
                self.client.update_page, existing.id, page_input
            )
        else:
            response = await self._remote(self.client.create_page, page_input)

        if not response.succeeded:
            raise WikiJSError(
                response.message or "Unknown error", response.error_code
            )

        tally.synced += 1
        self._last_sync[path] = time.time()
        self._checksums.set(path, checksum)
        logger.debug(
            "%s %s -> %s",
            "Updated" if existing is not None else "Created",
            path,
            page_input.path,
        )

    async def _pull_page(self, page: WikiPage, tally: _Tally) -> None:
        local_path = self.mapper.wiki_to_obsidian(page.path)
        if self.is_excluded(local_path):
            logger.debug("Skipping excluded page %s", page.path)
            return

        if page.content is None:
            full = await self._remote(
                self.client.get_page, page.path, page.locale
            )
            if full is None:
                raise WikiJSError(f"Page no longer exists: {page.path}")
            page = full

        remote_frontmatter = self.converter.wiki_to_obsidian(page)
        if await run_sync(self.store.exists, local_path):
            existing = await run_sync(self.store.read, local_path)
            local_frontmatter, _ = self.converter.extract_frontmatter(existing)
            content = self.converter.merge_frontmatter(
                page.content or "", {**local_frontmatter, **remote_frontmatter}
            )
            await run_sync(self.store.write, local_path, content)
        else:
            content = self.converter.merge_frontmatter(
                page.content or "", remote_frontmatter
            )
            await run_sync(self.store.ensure_directory, local_path)
            await run_sync(self.store.create, local_path, content)

        tally.synced += 1
        self._last_sync[local_path] = time.time()
        # The watcher event for this write must not push it straight back
        self._checksums.set(local_path, content_checksum(content))
        logger.debug("Pulled %s -> %s", page.path, local_path)

    def build_page_input(self, path: str, content: str) -> WikiPageInput:
        """Build the page payload a push of *content* at *path* would send."""
        frontmatter, body = self.converter.extract_frontmatter(content)
        metadata = self.converter.obsidian_to_wiki(frontmatter)
        title = frontmatter.get("title") or _basename(path)
        return WikiPageInput(
            path=self.mapper.obsidian_to_wiki(path),
            title=str(title),
            content=body,
            description=metadata.description,
            tags=metadata.tags,
            editor="markdown",
        )

    def is_excluded(self, path: str) -> bool:
        """True when *path* lies in an excluded folder or is an excluded file."""
        path = path.replace("\\", "/").lstrip("/")
        for folder in self._settings.excluded_folders:
            folder = folder.strip("/")
            if folder and (path == folder or path.startswith(folder + "/")):
                return True

        name = path.rsplit("/", 1)[-1]
        return any(
            path == excluded or name == excluded
            for excluded in self._settings.excluded_files
        )

    # ------------------------------------------------------------------
    # Watcher channel
    # ------------------------------------------------------------------

    def start_watching(self) -> bool:
        """Start reacting to modification events.

        Returns ``False`` (and does nothing) unless ``auto_sync`` is on.
        Must be called on the event loop.
        """
        if not self._settings.auto_sync:
            logger.debug("auto_sync disabled, not watching")
            return False
        if self._watching:
            return True
        self._watching = True
        if self._watcher_factory is not None:
            self._watcher = self._watcher_factory(self.notify_modified)
            self._watcher.start()
        return True

    def stop_watching(self) -> None:
        """Stop the watcher, cancel pending debounces, drop queued pushes."""
        self._watching = False
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._queue.clear()

    def notify_modified(self, path: str, mtime: float | None = None) -> None:
        """Inbound channel: note *path* was modified at *mtime*.

        (Re)arms the per-path debounce timer.  Must be called on the
        event loop thread.
        """
        if not self._watching:
            return
        if self.is_excluded(path):
            logger.debug("Ignoring change to excluded %s", path)
            return

        pending = self._timers.pop(path, None)
        if pending is not None:
            pending.cancel()
        loop = asyncio.get_running_loop()
        self._timers[path] = loop.call_later(
            self._settings.debounce_seconds, self._debounce_elapsed, path
        )
        logger.debug("Change to %s at %s, push scheduled", path, mtime)

    def _debounce_elapsed(self, path: str) -> None:
        self._timers.pop(path, None)
        if self._syncing:
            logger.debug("Full sync running, dropping queued push of %s", path)
            return
        self._queue.add(lambda: self._push_queued(path))

    async def _push_queued(self, path: str) -> None:
        if self._syncing:
            logger.debug("Full sync running, skipping push of %s", path)
            return
        self._syncing = True
        tally = _Tally()
        try:
            await self._push_item(path, tally)
        except Exception as e:
            logger.error("Failed to sync %s: %s", path, e)
            return
        finally:
            self._syncing = False
        if tally.synced:
            logger.info("Synced %s to WikiJS", path)

    async def wait_idle(self) -> None:
        """Wait until every queued watcher push has run."""
        await self._queue.join()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _list_remote_pages(self) -> list[WikiPage]:
        pages: list[WikiPage] = []
        offset = 0
        while True:
            batch = await self._remote(
                self.client.list_pages, LIST_PAGE_SIZE, offset
            )
            pages.extend(batch)
            if len(batch) < LIST_PAGE_SIZE:
                break
            offset += LIST_PAGE_SIZE
        logger.debug("Listed %d remote pages", len(pages))
        return pages

    async def _remote(self, func: Callable[..., Any], *args: Any) -> Any:
        """Call a blocking client method, retrying transport failures."""
        return await retry(
            lambda: run_sync(func, *args),
            max_retries=self._max_retries,
            initial_delay=self._retry_delay,
            retry_on=(requests.RequestException,),
        )

    @staticmethod
    def _log_progress(processed: int, total: int) -> None:
        logger.info("Syncing... %d/%d", processed, total)
