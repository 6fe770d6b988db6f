"""Tests for the core sync engine."""

from __future__ import annotations

import asyncio
import os
import time
from unittest.mock import MagicMock, Mock, patch

import requests
from conftest import FakeWikiJSClient, make_page, write_note

from wikijs_sync.config_schema import PathMapping, SyncDirection, SyncSettings
from wikijs_sync.core.client import WikiJSClient
from wikijs_sync.core.models import PageResponse, format_timestamp
from wikijs_sync.sync.engine import ALREADY_RUNNING_MESSAGE, SyncEngine
from wikijs_sync.sync.metadata import MetadataConverter
from wikijs_sync.sync.store import VaultStore


def _set_mtime(path, epoch: float) -> None:
    os.utime(path, (epoch, epoch))


class FailingReadStore(VaultStore):
    """VaultStore whose read() raises for selected paths."""

    def __init__(self, root, failing: set[str]):
        super().__init__(root)
        self.failing = failing

    def read(self, path: str) -> str:
        if path in self.failing:
            raise OSError(f"cannot read {path}")
        return super().read(path)


# ---------------------------------------------------------------------------
# Single flight and connectivity
# ---------------------------------------------------------------------------


class TestSingleFlight:
    async def test_concurrent_sync_rejected(self, make_engine, vault):
        client = FakeWikiJSClient(connect_delay=0.2)
        write_note(vault, "a.md", "alpha")
        engine = make_engine(client=client, direction="obsidian-to-wiki")

        first, second = await asyncio.gather(engine.sync(), engine.sync())

        assert first.success is True
        assert first.synced == 1
        assert second.success is False
        assert second.message == ALREADY_RUNNING_MESSAGE
        assert second.synced == 0
        assert len(client.created) == 1

    async def test_flag_cleared_after_pass(self, make_engine):
        engine = make_engine()
        await engine.sync()
        assert engine.is_syncing is False
        result = await engine.sync()
        assert result.success is True

    async def test_sync_file_rejected_during_full_pass(self, make_engine, vault):
        client = FakeWikiJSClient(connect_delay=0.2)
        write_note(vault, "a.md", "alpha")
        engine = make_engine(client=client)

        full, single = await asyncio.gather(
            engine.sync(), engine.sync_file("a.md")
        )
        assert full.success is True
        assert single.success is False
        assert single.message == ALREADY_RUNNING_MESSAGE


class TestConnectivity:
    async def test_connection_failure_aborts_before_mutation(
        self, make_engine, vault
    ):
        client = FakeWikiJSClient(connected=False)
        client.pages["/b"] = make_page("/b")
        write_note(vault, "a.md", "alpha")
        engine = make_engine(client=client)

        result = await engine.sync()

        assert result.success is False
        assert result.message.startswith("Sync failed:")
        assert "Failed to connect to WikiJS" in result.errors
        assert client.created == []
        assert client.list_calls == []
        assert not (vault / "b.md").exists()

    async def test_listing_failure_is_fatal(self, make_engine):
        client = FakeWikiJSClient()
        client.list_pages = MagicMock(side_effect=RuntimeError("boom"))
        engine = make_engine(client=client, direction="wiki-to-obsidian")

        result = await engine.sync()

        assert result.success is False
        assert result.message == "Sync failed: boom"
        assert result.errors == ["boom"]


# ---------------------------------------------------------------------------
# Obsidian -> Wiki
# ---------------------------------------------------------------------------


class TestPush:
    async def test_creates_page_for_new_note(self, make_engine, vault, fake_client):
        write_note(vault, "notes/a.md", "---\ntitle: A\n---\nhello")
        engine = make_engine(direction="obsidian-to-wiki")

        result = await engine.sync()

        assert result.success is True
        assert result.synced == 1
        assert result.message == "Sync completed: 1 synced, 0 failed, 0 conflicts"
        assert len(fake_client.created) == 1
        created = fake_client.created[0]
        assert created.path == engine.mapper.obsidian_to_wiki("notes/a.md")
        assert created.path == "/notes/a"
        assert created.title == "A"
        assert "hello" in created.content
        assert created.editor == "markdown"

    async def test_updates_existing_page(self, make_engine, vault):
        client = FakeWikiJSClient([make_page("/notes/a", page_id=7)])
        write_note(vault, "notes/a.md", "new body")
        engine = make_engine(client=client, direction="obsidian-to-wiki")

        result = await engine.sync()

        assert result.synced == 1
        assert client.created == []
        assert client.updated[0][0] == "7"
        assert client.updated[0][1].content == "new body"

    async def test_title_falls_back_to_basename(self, make_engine, vault, fake_client):
        write_note(vault, "Meeting Notes.md", "body")
        engine = make_engine(direction="obsidian-to-wiki")

        await engine.sync()

        assert fake_client.created[0].title == "Meeting Notes"
        assert fake_client.created[0].path == "/meeting-notes"

    async def test_checksum_skip(self, make_engine, vault, fake_client):
        write_note(vault, "a.md", "alpha")
        write_note(vault, "b.md", "beta")
        engine = make_engine(direction="obsidian-to-wiki")

        first = await engine.sync()
        second = await engine.sync()

        assert first.synced == 2
        assert second.success is True
        assert second.synced == 0
        assert len(fake_client.created) == 2
        assert fake_client.updated == []

    async def test_changed_content_is_pushed_again(
        self, make_engine, vault, fake_client
    ):
        note = write_note(vault, "a.md", "alpha")
        engine = make_engine(direction="obsidian-to-wiki")
        await engine.sync()

        note.write_text("alpha v2", encoding="utf-8")
        result = await engine.sync()

        assert result.synced == 1
        assert fake_client.updated[0][1].content == "alpha v2"

    async def test_partial_failure_isolation(self, make_engine, vault, fake_client):
        for name in ("a", "b", "c", "d", "e"):
            write_note(vault, f"{name}.md", f"body {name}")
        store = FailingReadStore(vault, {"c.md"})
        engine = make_engine(store=store, direction="obsidian-to-wiki")

        result = await engine.sync()

        assert result.success is True
        assert result.failed == 1
        assert result.synced == 4
        assert len(result.errors) == 1
        assert result.errors[0].startswith("c.md: ")
        assert len(fake_client.created) == 4

    async def test_write_error_counts_as_failure(
        self, make_engine, vault, fake_client
    ):
        write_note(vault, "a.md", "alpha")
        write_note(vault, "b.md", "beta")
        fake_client.fail_paths.add("/a")
        engine = make_engine(direction="obsidian-to-wiki")

        result = await engine.sync()

        assert result.synced == 1
        assert result.failed == 1
        assert result.errors == ["a.md: Cannot write /a"]

    async def test_unsuccessful_response_counts_as_failure(
        self, make_engine, vault, fake_client
    ):
        write_note(vault, "a.md", "alpha")
        fake_client.create_page = MagicMock(
            return_value=PageResponse(succeeded=False, message="Forbidden")
        )
        engine = make_engine(direction="obsidian-to-wiki")

        result = await engine.sync()

        assert result.success is True
        assert result.synced == 0
        assert result.errors == ["a.md: Forbidden"]

    async def test_failed_push_is_not_cached(self, make_engine, vault, fake_client):
        write_note(vault, "a.md", "alpha")
        fake_client.fail_paths.add("/a")
        engine = make_engine(direction="obsidian-to-wiki")
        await engine.sync()

        fake_client.fail_paths.clear()
        result = await engine.sync()

        assert result.synced == 1

    async def test_path_mapping_applied(self, make_engine, vault, fake_client):
        write_note(vault, "Projects/Alpha Plan.md", "plan")
        engine = make_engine(
            direction="obsidian-to-wiki",
            path_mappings=[
                PathMapping(obsidian_path="Projects/", wiki_path="/work/projects/")
            ],
        )

        await engine.sync()

        assert fake_client.created[0].path == "/work/projects/alpha-plan"

    async def test_transport_error_retried(self, vault):
        client = FakeWikiJSClient()
        real_get = client.get_page
        calls = {"n": 0}

        def flaky_get(path, locale="en"):
            calls["n"] += 1
            if calls["n"] == 1:
                raise requests.ConnectionError("reset")
            return real_get(path, locale)

        client.get_page = flaky_get
        write_note(vault, "a.md", "alpha")

        engine = SyncEngine(
            client,
            VaultStore(vault),
            SyncSettings(direction="obsidian-to-wiki"),
            max_retries=1,
            retry_delay=0,
            batch_delay=0,
        )

        result = await engine.sync()

        assert result.synced == 1
        assert calls["n"] == 2


def _graphql_reply(payload: dict) -> Mock:
    response = Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


def _fake_wikijs(*args, **kwargs) -> Mock:
    """Answer the GraphQL documents a push sends, for a wiki with no pages."""
    query = kwargs["json"]["query"]
    if "mutation CreatePage" in query:
        path = kwargs["json"]["variables"]["path"]
        return _graphql_reply(
            {
                "data": {
                    "pages": {
                        "create": {
                            "responseResult": {"succeeded": True, "errorCode": 0},
                            "page": {"id": 5, "path": path, "title": "Stub"},
                        }
                    }
                }
            }
        )
    if "query GetPage" in query:
        return _graphql_reply({"data": {"pages": {"singleByPath": None}}})
    return _graphql_reply({"data": {"system": {"info": {"currentVersion": "2.5"}}}})


class TestPushThroughHttpClient:
    async def test_frontmatter_only_note_is_created(
        self, make_engine, vault, mock_config
    ):
        write_note(vault, "notes/stub.md", "---\ntitle: Stub\ntags: [x]\n---\n")
        engine = make_engine(
            client=WikiJSClient(mock_config), direction="obsidian-to-wiki"
        )

        with patch(
            "wikijs_sync.core.client.requests.Session.post",
            side_effect=_fake_wikijs,
        ) as mock_post:
            result = await engine.sync()

        assert result.success is True
        assert result.failed == 0
        assert result.synced == 1
        created = [
            c.kwargs["json"]["variables"]
            for c in mock_post.call_args_list
            if "mutation CreatePage" in c.kwargs["json"]["query"]
        ]
        assert len(created) == 1
        assert created[0]["path"] == "notes/stub"
        assert created[0]["title"] == "Stub"
        assert created[0]["content"].strip() == ""


# ---------------------------------------------------------------------------
# Wiki -> Obsidian
# ---------------------------------------------------------------------------


class TestPull:
    async def test_creates_note_for_remote_page(self, make_engine, vault):
        client = FakeWikiJSClient(
            [make_page("/docs/guide", tags=["x"], content="Guide body")]
        )
        engine = make_engine(client=client, direction="wiki-to-obsidian")

        result = await engine.sync()

        assert result.synced == 1
        note = vault / engine.mapper.wiki_to_obsidian("/docs/guide")
        assert note == vault / "docs" / "guide.md"
        frontmatter, body = MetadataConverter().extract_frontmatter(
            note.read_text(encoding="utf-8")
        )
        assert frontmatter["tags"] == ["x"]
        assert frontmatter["title"] == "guide"
        assert body == "Guide body"

    async def test_fetches_content_omitted_from_listing(self, make_engine, vault):
        client = FakeWikiJSClient([make_page("/a", content="full body")])
        engine = make_engine(client=client, direction="wiki-to-obsidian")

        await engine.sync()

        assert client.get_calls == ["/a"]
        assert "full body" in (vault / "a.md").read_text(encoding="utf-8")

    async def test_keeps_local_only_frontmatter(self, make_engine, vault):
        write_note(
            vault,
            "a.md",
            "---\naliases: [first]\ntitle: Old\n---\nold body",
        )
        client = FakeWikiJSClient([make_page("/a", title="New", content="new body")])
        engine = make_engine(client=client, direction="wiki-to-obsidian")

        await engine.sync()

        frontmatter, body = MetadataConverter().extract_frontmatter(
            (vault / "a.md").read_text(encoding="utf-8")
        )
        assert frontmatter["aliases"] == ["first"]
        assert frontmatter["title"] == "New"
        assert body == "new body"

    async def test_paginates_listing(self, make_engine, monkeypatch):
        monkeypatch.setattr("wikijs_sync.sync.engine.LIST_PAGE_SIZE", 2)
        client = FakeWikiJSClient(
            [make_page(f"/p{i}", page_id=i) for i in range(1, 6)]
        )
        engine = make_engine(client=client, direction="wiki-to-obsidian")

        result = await engine.sync()

        assert client.list_calls == [(2, 0), (2, 2), (2, 4)]
        assert result.synced == 5

    async def test_default_page_size(self, make_engine, fake_client):
        engine = make_engine(direction="wiki-to-obsidian")
        await engine.sync()
        assert fake_client.list_calls == [(1000, 0)]

    async def test_pulled_note_not_pushed_back(self, make_engine, vault):
        client = FakeWikiJSClient([make_page("/docs/guide", content="Guide body")])
        engine = make_engine(client=client, direction="wiki-to-obsidian")
        await engine.sync()

        result = await engine.sync_file("docs/guide.md")

        assert result.success is True
        assert result.synced == 0
        assert result.message == "docs/guide.md is unchanged"
        assert client.created == []
        assert client.updated == []

    async def test_missing_page_counts_as_failure(self, make_engine, vault):
        client = FakeWikiJSClient([make_page("/gone"), make_page("/ok", page_id=2)])
        client.get_page = lambda path, locale="en": (
            None if path == "/gone" else client.pages.get(path)
        )
        engine = make_engine(client=client, direction="wiki-to-obsidian")

        result = await engine.sync()

        assert result.synced == 1
        assert result.failed == 1
        assert result.errors[0].startswith("/gone: ")


# ---------------------------------------------------------------------------
# Exclusion
# ---------------------------------------------------------------------------


class TestExclusion:
    def test_is_excluded(self, make_engine):
        engine = make_engine(excluded_files=["secret.md", "notes/private.md"])

        assert engine.is_excluded(".obsidian/workspace.md")
        assert engine.is_excluded("templates/daily.md")
        assert engine.is_excluded("templates")
        assert engine.is_excluded("deep/secret.md")
        assert engine.is_excluded("notes/private.md")
        assert not engine.is_excluded("templates-old/a.md")
        assert not engine.is_excluded("notes/public.md")

    async def test_push_skips_excluded(self, make_engine, vault, fake_client):
        write_note(vault, "keep.md", "keep")
        write_note(vault, ".obsidian/x.md", "cfg")
        write_note(vault, "templates/t.md", "tpl")
        write_note(vault, "notes/secret.md", "hidden")
        engine = make_engine(direction="obsidian-to-wiki", excluded_files=["secret.md"])

        result = await engine.sync()

        assert result.synced == 1
        assert [p.path for p in fake_client.created] == ["/keep"]

    async def test_pull_skips_excluded(self, make_engine, vault):
        client = FakeWikiJSClient(
            [make_page("/templates/t", page_id=1), make_page("/ok", page_id=2)]
        )
        engine = make_engine(client=client, direction="wiki-to-obsidian")

        result = await engine.sync()

        assert result.synced == 1
        assert not (vault / "templates").exists()
        assert client.get_calls == ["/ok"]

    async def test_bidirectional_skips_excluded_both_sides(self, make_engine, vault):
        write_note(vault, "templates/t.md", "tpl")
        client = FakeWikiJSClient([make_page("/templates/t")])
        engine = make_engine(client=client)

        result = await engine.sync()

        assert result.synced == 0
        assert result.conflicts == []
        assert client.created == [] and client.updated == []
        assert (vault / "templates/t.md").read_text(encoding="utf-8") == "tpl"


# ---------------------------------------------------------------------------
# Bidirectional
# ---------------------------------------------------------------------------


class TestBidirectional:
    async def test_manual_conflict_touches_nothing(self, make_engine, vault):
        note = write_note(vault, "a.md", "local body")
        client = FakeWikiJSClient([make_page("/a", content="remote body")])
        engine = make_engine(client=client, conflict_resolution="manual")

        result = await engine.sync()

        assert result.success is True
        assert len(result.conflicts) == 1
        conflict = result.conflicts[0]
        assert conflict.path == "a.md"
        assert conflict.remote_modified == "2024-03-01T10:00:00.000Z"
        assert conflict.local_modified == format_timestamp(note.stat().st_mtime)
        assert conflict.resolution is None
        assert result.needs_manual_action
        assert client.created == [] and client.updated == []
        assert note.read_text(encoding="utf-8") == "local body"
        assert result.message.endswith("1 conflicts")

    async def test_local_policy_pushes(self, make_engine, vault):
        write_note(vault, "a.md", "local body")
        client = FakeWikiJSClient([make_page("/a", page_id=3, content="remote body")])
        engine = make_engine(client=client, conflict_resolution="local")

        result = await engine.sync()

        assert result.conflicts == []
        assert result.synced == 1
        assert client.updated[0][0] == "3"
        assert client.updated[0][1].content == "local body"

    async def test_remote_policy_pulls(self, make_engine, vault):
        note = write_note(vault, "a.md", "local body")
        client = FakeWikiJSClient([make_page("/a", content="remote body")])
        engine = make_engine(client=client, conflict_resolution="remote")

        result = await engine.sync()

        assert result.conflicts == []
        assert result.synced == 1
        assert client.updated == []
        assert note.read_text(encoding="utf-8").endswith("remote body")

    async def test_local_only_note_pushed_and_remote_only_pulled(
        self, make_engine, vault
    ):
        write_note(vault, "local.md", "mine")
        client = FakeWikiJSClient([make_page("/remote", content="theirs")])
        engine = make_engine(client=client)

        result = await engine.sync()

        assert result.synced == 2
        assert [p.path for p in client.created] == ["/local"]
        assert (vault / "remote.md").exists()

    async def test_unchanged_pair_is_skipped(self, make_engine, vault):
        note = write_note(vault, "a.md", "body")
        client = FakeWikiJSClient([make_page("/a", page_id=3)])
        engine = make_engine(client=client, conflict_resolution="local")
        await engine.sync()
        client.updated.clear()

        past = time.time() - 3600
        _set_mtime(note, past)
        client.pages["/a"] = client.pages["/a"].model_copy(
            update={"updated_at": format_timestamp(past)}
        )
        result = await engine.sync()

        assert result.synced == 0
        assert result.conflicts == []
        assert client.updated == []

    async def test_only_local_changed_pushes(self, make_engine, vault):
        note = write_note(vault, "a.md", "body")
        client = FakeWikiJSClient([make_page("/a", page_id=3)])
        engine = make_engine(client=client, conflict_resolution="local")
        await engine.sync()
        client.updated.clear()

        past = time.time() - 3600
        client.pages["/a"] = client.pages["/a"].model_copy(
            update={"updated_at": format_timestamp(past)}
        )
        note.write_text("edited", encoding="utf-8")
        _set_mtime(note, time.time() + 60)
        result = await engine.sync()

        assert result.synced == 1
        assert client.updated[0][1].content == "edited"

    async def test_only_remote_changed_pulls(self, make_engine, vault):
        note = write_note(vault, "a.md", "body")
        client = FakeWikiJSClient([make_page("/a", page_id=3)])
        engine = make_engine(client=client, conflict_resolution="local")
        await engine.sync()
        client.updated.clear()

        _set_mtime(note, time.time() - 3600)
        client.pages["/a"] = client.pages["/a"].model_copy(
            update={
                "updated_at": format_timestamp(time.time() + 60),
                "content": "from wiki",
            }
        )
        result = await engine.sync()

        assert result.synced == 1
        assert client.updated == []
        assert note.read_text(encoding="utf-8").endswith("from wiki")

    async def test_direction_override(self, make_engine, vault, fake_client):
        write_note(vault, "a.md", "alpha")
        engine = make_engine(direction="wiki-to-obsidian")

        result = await engine.sync(SyncDirection.OBSIDIAN_TO_WIKI)

        assert result.synced == 1
        assert fake_client.list_calls == []


# ---------------------------------------------------------------------------
# Single note, preview, settings
# ---------------------------------------------------------------------------


class TestSyncFile:
    async def test_pushes_single_note(self, make_engine, vault, fake_client):
        write_note(vault, "a.md", "alpha")
        write_note(vault, "b.md", "beta")
        engine = make_engine()

        result = await engine.sync_file("a.md")

        assert result.success is True
        assert result.synced == 1
        assert result.message == "Synced a.md to WikiJS"
        assert [p.path for p in fake_client.created] == ["/a"]

    async def test_unchanged_note(self, make_engine, vault):
        write_note(vault, "a.md", "alpha")
        engine = make_engine()
        await engine.sync_file("a.md")

        result = await engine.sync_file("a.md")

        assert result.success is True
        assert result.synced == 0
        assert result.message == "a.md is unchanged"

    async def test_excluded_note(self, make_engine, vault, fake_client):
        write_note(vault, "templates/t.md", "tpl")
        engine = make_engine()

        result = await engine.sync_file("templates/t.md")

        assert result.success is False
        assert "Excluded" in result.message
        assert fake_client.created == []

    async def test_missing_note_fails(self, make_engine):
        engine = make_engine()

        result = await engine.sync_file("nope.md")

        assert result.success is False
        assert result.failed == 1
        assert result.errors[0].startswith("nope.md: ")


class TestBuildPageInput:
    def test_metadata_mapped(self, make_engine):
        engine = make_engine()
        content = (
            "---\ntitle: Plan\ntags: [a, b]\nsummary: Short\n---\n\n# Plan\nbody"
        )

        page_input = engine.build_page_input("work/plan.md", content)

        assert page_input.path == "/work/plan"
        assert page_input.title == "Plan"
        assert page_input.tags == ["a", "b"]
        assert page_input.description == "Short"
        assert page_input.content == "# Plan\nbody"

    def test_update_settings_refreshes_mapper(self, make_engine):
        engine = make_engine()
        assert engine.build_page_input("a/x.md", "b").path == "/a/x"

        engine.update_settings(
            engine.settings.model_copy(
                update={
                    "path_mappings": [PathMapping(obsidian_path="a/", wiki_path="/z/")]
                }
            )
        )

        assert engine.build_page_input("a/x.md", "b").path == "/z/x"


# ---------------------------------------------------------------------------
# Watcher channel
# ---------------------------------------------------------------------------


class TestWatching:
    def test_requires_auto_sync(self, make_engine):
        engine = make_engine(auto_sync=False)
        assert engine.start_watching() is False
        assert engine.is_watching is False

    async def test_debounced_push(self, make_engine, vault, fake_client):
        write_note(vault, "a.md", "alpha")
        engine = make_engine(auto_sync=True, debounce_seconds=0.05)
        assert engine.start_watching() is True

        engine.notify_modified("a.md", time.time())
        engine.notify_modified("a.md", time.time())
        assert engine.pending_tasks == 1

        await asyncio.sleep(0.15)
        await engine.wait_idle()

        assert [p.path for p in fake_client.created] == ["/a"]
        assert engine.is_syncing is False
        engine.stop_watching()

    async def test_excluded_path_ignored(self, make_engine):
        engine = make_engine(auto_sync=True, debounce_seconds=0.01)
        engine.start_watching()

        engine.notify_modified(".obsidian/workspace.md")

        assert engine.pending_tasks == 0
        engine.stop_watching()

    async def test_ignored_when_not_watching(self, make_engine):
        engine = make_engine(auto_sync=True, debounce_seconds=0.01)
        engine.notify_modified("a.md")
        assert engine.pending_tasks == 0

    async def test_stop_cancels_pending(self, make_engine, vault, fake_client):
        write_note(vault, "a.md", "alpha")
        engine = make_engine(auto_sync=True, debounce_seconds=0.05)
        engine.start_watching()
        engine.notify_modified("a.md")

        engine.stop_watching()
        await asyncio.sleep(0.1)

        assert fake_client.created == []
        assert engine.pending_tasks == 0

    async def test_dropped_while_full_sync_runs(self, make_engine, vault):
        client = FakeWikiJSClient(connect_delay=0.3)
        write_note(vault, "a.md", "alpha")
        engine = make_engine(
            client=client,
            auto_sync=True,
            debounce_seconds=0.01,
            direction="wiki-to-obsidian",
        )
        engine.start_watching()

        full = asyncio.ensure_future(engine.sync())
        await asyncio.sleep(0.05)
        engine.notify_modified("a.md")
        await asyncio.sleep(0.1)
        await full
        await engine.wait_idle()

        assert client.created == []
        engine.stop_watching()

    async def test_watcher_factory_lifecycle(self, make_engine, vault):
        watcher = MagicMock()
        factory = MagicMock(return_value=watcher)

        engine = SyncEngine(
            FakeWikiJSClient(),
            VaultStore(vault),
            SyncSettings(auto_sync=True),
            watcher_factory=factory,
        )

        assert engine.start_watching() is True
        factory.assert_called_once_with(engine.notify_modified)
        watcher.start.assert_called_once()

        engine.stop_watching()
        watcher.stop.assert_called_once()

    async def test_disabling_auto_sync_stops_watching(self, make_engine):
        engine = make_engine(auto_sync=True)
        engine.start_watching()

        engine.update_settings(engine.settings.model_copy(update={"auto_sync": False}))

        assert engine.is_watching is False
