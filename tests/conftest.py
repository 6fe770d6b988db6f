"""Shared pytest fixtures for wikijs-sync tests."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pytest

from wikijs_sync.config import Config
from wikijs_sync.config_schema import SyncSettings
from wikijs_sync.core.client import WikiJSError
from wikijs_sync.core.models import (
    PageResponse,
    WikiPage,
    WikiPageInput,
    format_timestamp,
)
from wikijs_sync.sync.engine import SyncEngine
from wikijs_sync.sync.store import VaultStore


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live WikiJS instance",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live WikiJS instance"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeWikiJSClient:
    """Minimal WikiJSClient replacement for testing.

    Stores pages in memory keyed by path (with leading slash).  Listing
    strips page content, as the real GraphQL list query does.
    """

    def __init__(
        self,
        pages: Optional[Iterable[WikiPage]] = None,
        connected: bool = True,
        connect_delay: float = 0.0,
    ) -> None:
        self.pages: Dict[str, WikiPage] = {p.path: p for p in pages or []}
        self.connected = connected
        self.connect_delay = connect_delay
        self.fail_paths: set[str] = set()
        self.created: List[WikiPageInput] = []
        self.updated: List[tuple[str, WikiPageInput]] = []
        self.get_calls: List[str] = []
        self.list_calls: List[tuple[int, int]] = []
        self._next_id = 100

    def test_connection(self) -> bool:
        if self.connect_delay:
            time.sleep(self.connect_delay)
        return self.connected

    def get_page(self, path: str, locale: str = "en") -> Optional[WikiPage]:
        self.get_calls.append(path)
        return self.pages.get(path)

    def list_pages(self, limit: int = 100, offset: int = 0) -> List[WikiPage]:
        self.list_calls.append((limit, offset))
        ordered = sorted(self.pages.values(), key=lambda p: int(p.id))
        return [
            p.model_copy(update={"content": None})
            for p in ordered[offset : offset + limit]
        ]

    def _store(self, page_id: str, page_input: WikiPageInput) -> PageResponse:
        if page_input.path in self.fail_paths:
            raise WikiJSError(f"Cannot write {page_input.path}")
        page = WikiPage(
            id=page_id,
            path=page_input.path,
            title=page_input.title,
            content=page_input.content,
            description=page_input.description,
            tags=list(page_input.tags),
            updated_at=format_timestamp(time.time()),
        )
        self.pages[page.path] = page
        return PageResponse(succeeded=True, page=page)

    def create_page(self, page_input: WikiPageInput) -> PageResponse:
        self.created.append(page_input)
        self._next_id += 1
        return self._store(str(self._next_id), page_input)

    def update_page(self, page_id: str, page_input: WikiPageInput) -> PageResponse:
        self.updated.append((str(page_id), page_input))
        return self._store(str(page_id), page_input)


def make_page(path: str, page_id: int = 1, **fields: Any) -> WikiPage:
    """Build a WikiPage with sensible defaults."""
    defaults: Dict[str, Any] = {
        "title": path.rsplit("/", 1)[-1],
        "content": "remote body",
        "updated_at": "2024-03-01T10:00:00.000Z",
        "created_at": "2024-01-01T09:00:00.000Z",
    }
    defaults.update(fields)
    return WikiPage(id=str(page_id), path=path, **defaults)


def write_note(root: Path, rel_path: str, content: str) -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        wiki_url="https://wiki.example.com",
        api_key="test-api-key",
        insecure=False,
    )


@pytest.fixture
def vault(tmp_path):
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def fake_client():
    return FakeWikiJSClient()


@pytest.fixture
def make_engine(vault, fake_client):
    """Factory for engines over the ``vault`` fixture with no retry delays."""

    def _make(
        client: Optional[FakeWikiJSClient] = None,
        store: Optional[VaultStore] = None,
        **settings: Any,
    ) -> SyncEngine:
        return SyncEngine(
            client=client or fake_client,  # type: ignore[arg-type]
            store=store or VaultStore(vault),
            settings=SyncSettings(vault_path=str(vault), **settings),
            max_retries=0,
            retry_delay=0,
            batch_delay=0,
        )

    return _make
