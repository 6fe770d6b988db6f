"""Startup wiring shared by the CLI and the MCP server.

Resolves configuration with the unified precedence
(CLI > env vars / .env > YAML config > defaults) and assembles a
``SyncEngine`` over the configured vault.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from dotenv import load_dotenv

from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import SyncSettings, UnifiedConfig, build_config
from .core.client import WikiJSClient
from .sync.engine import SyncEngine
from .sync.store import VaultStore
from .sync.watcher import VaultWatcher

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Resolved configuration for one process."""

    config: Config
    unified: UnifiedConfig
    sources: list[str] = field(default_factory=list)

    @property
    def settings(self) -> SyncSettings:
        return self.unified.sync


def load_runtime(config_overrides: dict[str, Any] | None = None) -> Runtime:
    """Load ``.env``, YAML config files and CLI overrides.

    Override keys: url, api_key, insecure, debug, vault.

    Raises:
        ValueError: If the connection settings are missing or invalid.
        pydantic.ValidationError: If a config file has invalid values.
    """
    # .env first so ${VAR} interpolation in YAML can see its values
    load_dotenv()

    overrides = config_overrides or {}
    sources: list[str] = []

    config_files = discover_config_files()
    unified = build_config(load_hierarchical_config())
    if config_files:
        sources.append(f"config file: {config_files[0]}")

    yaml_fallbacks = {
        k: v for k, v in unified.wiki.model_dump().items() if v is not None
    }
    config = load_config(
        url=overrides.get("url"),
        api_key=overrides.get("api_key"),
        insecure=overrides.get("insecure", False),
        debug=overrides.get("debug", False),
        yaml_fallbacks=yaml_fallbacks,
    )

    if overrides.get("vault"):
        unified = unified.model_copy(
            update={
                "sync": unified.sync.model_copy(
                    update={"vault_path": overrides["vault"]}
                )
            }
        )

    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")
    logger.info("Configuration loaded from: %s", ", ".join(sources))
    return Runtime(config=config, unified=unified, sources=sources)


def create_engine(
    config: Config,
    settings: SyncSettings,
    client: WikiJSClient | None = None,
) -> SyncEngine:
    """Build an engine over ``settings.vault_path`` with a vault watcher."""
    store = VaultStore(settings.vault_path)
    return SyncEngine(
        client=client or WikiJSClient(config),
        store=store,
        settings=settings,
        max_retries=config.max_retries,
        watcher_factory=lambda callback: VaultWatcher(store.root, callback),
    )
