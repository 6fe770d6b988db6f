"""Unified configuration schema for wikijs_sync.

Defines Pydantic models for the config file structure with dedicated
sections for the WikiJS connection, sync behaviour and logging.  The
``wiki`` section feeds ``config.load_config()`` as its YAML fallbacks.

Usage:
    from wikijs_sync.config_schema import build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    settings = unified.sync
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class SyncDirection(str, Enum):
    """Which way a full sync pass moves content."""

    BIDIRECTIONAL = "bidirectional"
    OBSIDIAN_TO_WIKI = "obsidian-to-wiki"
    WIKI_TO_OBSIDIAN = "wiki-to-obsidian"


class ConflictResolution(str, Enum):
    """Policy applied when both sides changed since the last sync."""

    LOCAL = "local"
    REMOTE = "remote"
    MANUAL = "manual"


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class WikiConfig(BaseModel):
    """WikiJS connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    url: str | None = Field(default=None, description="WikiJS base URL")
    api_key: str | None = Field(
        default=None, description="WikiJS API key (bearer token)"
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    timeout: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Read timeout for GraphQL requests in seconds",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Retries for transient request failures",
    )

    model_config = {"frozen": True}


class PathMapping(BaseModel):
    """Prefix rewrite between a vault folder and a wiki path."""

    obsidian_path: str
    wiki_path: str
    enabled: bool = True

    model_config = {"frozen": True}


class TagMapping(BaseModel):
    enabled: bool = True
    prefix: str = ""

    model_config = {"frozen": True}


class CategoryMapping(BaseModel):
    enabled: bool = True
    field_name: str = "categories"

    model_config = {"frozen": True}


class CustomFieldMapping(BaseModel):
    """Copy a (dotted) frontmatter field into page custom data."""

    obsidian_field: str
    wiki_field: str
    type: Literal["string", "number", "boolean", "date", "array"] = (
        "string"
    )

    model_config = {"frozen": True}


class MetadataMapping(BaseModel):
    tags: TagMapping = Field(default_factory=TagMapping)
    categories: CategoryMapping = Field(default_factory=CategoryMapping)
    custom_fields: list[CustomFieldMapping] = Field(default_factory=list)

    model_config = {"frozen": True}


class SyncSettings(BaseModel):
    """Sync engine behaviour.

    Attributes:
        vault_path: Root directory of the Obsidian vault.
        direction: Direction of a full sync pass.
        conflict_resolution: Policy for bidirectional conflicts.
        sync_interval: Minutes between automatic passes.
        auto_sync: Enable the file watcher and periodic passes.
        debounce_seconds: Quiet period before a modified note is pushed.
        excluded_folders: Vault folders never synced.
        excluded_files: Vault paths or file names never synced.
        path_mappings: Ordered vault-folder to wiki-path rewrites.
        metadata_mapping: Frontmatter translation rules.
        batch_size: Notes per batch when pushing.
        concurrency: Concurrent requests inside a batch.
        checksum_ttl_minutes: Lifetime of pushed-content checksums.
    """

    vault_path: str = "."
    direction: SyncDirection = SyncDirection.BIDIRECTIONAL
    conflict_resolution: ConflictResolution = ConflictResolution.MANUAL
    sync_interval: int = Field(default=30, ge=1)
    auto_sync: bool = False
    debounce_seconds: float = Field(default=5.0, ge=0)
    excluded_folders: list[str] = Field(
        default_factory=lambda: [".obsidian", ".trash", "templates"]
    )
    excluded_files: list[str] = Field(default_factory=list)
    path_mappings: list[PathMapping] = Field(default_factory=list)
    metadata_mapping: MetadataMapping = Field(
        default_factory=MetadataMapping
    )
    batch_size: int = Field(default=5, ge=1, le=100)
    concurrency: int = Field(default=2, ge=1, le=20)
    checksum_ttl_minutes: float = Field(default=30.0, gt=0)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    wiki: WikiConfig = Field(default_factory=WikiConfig)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Raises:
        pydantic.ValidationError: If a section has invalid values.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
