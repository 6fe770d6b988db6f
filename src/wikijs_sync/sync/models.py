"""Pydantic models for the vault <-> WikiJS sync engine.

- ``LocalItem``: a Markdown note in the vault.
- ``ConflictType`` / ``ConflictItem``: a note changed on both sides.
- ``SyncResult``: aggregate outcome of one sync pass.

Results are frozen; the engine accumulates counts in a private mutable
tally and freezes them when the pass ends.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from ..config_schema import ConflictResolution


class LocalItem(BaseModel):
    """A note in the vault.

    Attributes:
        path: Vault-relative POSIX path (e.g. ``notes/a.md``).
        mtime: Last modification time in epoch seconds.
    """

    path: str
    mtime: float

    model_config = {"frozen": True}

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def basename(self) -> str:
        """File name without the ``.md`` extension."""
        name = self.name
        return name[:-3] if name.lower().endswith(".md") else name


class ConflictType(str, Enum):
    CONTENT = "content"
    METADATA = "metadata"
    BOTH = "both"


class ConflictItem(BaseModel):
    """A note modified locally and remotely since its last sync.

    Attributes:
        path: Vault-relative path of the note.
        type: What diverged.
        local_modified: ISO 8601 local modification time.
        remote_modified: ISO 8601 remote ``updatedAt``.
        resolution: Policy that resolved it, ``None`` while unresolved.
    """

    path: str
    type: ConflictType = ConflictType.CONTENT
    local_modified: str
    remote_modified: str
    resolution: ConflictResolution | None = None

    model_config = {"frozen": True}


class SyncResult(BaseModel):
    """Outcome of one sync pass (or one single-note sync).

    Attributes:
        success: False when the pass was rejected or aborted.
        message: Short human-readable status.
        synced: Notes pushed or pulled.
        failed: Notes whose sync raised.
        conflicts: Unresolved conflicts left for the user.
        errors: ``"<path>: <reason>"`` strings, or the fatal reason.
    """

    success: bool
    message: str = ""
    synced: int = 0
    failed: int = 0
    conflicts: list[ConflictItem] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def needs_manual_action(self) -> bool:
        """True when conflicts were deferred to the user."""
        return bool(self.conflicts)
