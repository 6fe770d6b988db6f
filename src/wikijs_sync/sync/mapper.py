"""Prefix-based path mapper between vault notes and WikiJS pages.

Translation rules:

1. **Mappings** -- the first enabled ``PathMapping`` whose
   ``obsidian_path`` (or, in reverse, ``wiki_path``) is a leading folder
   of the path swaps that prefix for the other side's.  Matching is by
   whole segments.  The mapped wiki root page pairs with ``index.md``
   in the mapped vault folder.
2. **Normalisation** (vault -> wiki only) -- drop ``.md``, transliterate
   umlauts and accents, turn whitespace into ``-``, lowercase, drop
   anything outside ``[a-z0-9-/]``, collapse repeated ``-``, trim
   slashes and hyphens, prefix ``/``.
3. **Default reverse** -- strip the leading ``/`` and append ``.md``.

Forward lookups are memoised; the memo is cleared whenever the mapping
list changes.
"""

from __future__ import annotations

import re
from typing import Iterable

from ..config_schema import PathMapping

_TRANSLITERATIONS: dict[str, str] = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "Ä": "Ae",
    "Ö": "Oe",
    "Ü": "Ue",
    "ß": "ss",
    "é": "e",
    "è": "e",
    "ê": "e",
    "à": "a",
    "ç": "c",
    "ñ": "n",
}

INDEX_NOTE = "index.md"

_MD_SUFFIX = re.compile(r"\.md$", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9\-/]")
_HYPHENS = re.compile(r"-+")
_EDGES = re.compile(r"^[/\-]+|[/\-]+$")


class PathMapper:
    """Map vault paths to wiki paths and back.

    Args:
        mappings: Ordered prefix mappings; the first enabled match wins.
    """

    def __init__(self, mappings: Iterable[PathMapping] = ()) -> None:
        self._mappings: list[PathMapping] = list(mappings)
        self._cache: dict[str, str] = {}

    @property
    def mappings(self) -> list[PathMapping]:
        return list(self._mappings)

    # ------------------------------------------------------------------
    # Vault -> Wiki
    # ------------------------------------------------------------------

    def obsidian_to_wiki(self, obsidian_path: str) -> str:
        """Map a vault-relative path (``notes/My Note.md``) to a wiki path
        (``/notes/my-note``)."""
        cached = self._cache.get(obsidian_path)
        if cached is not None:
            return cached

        wiki_path = obsidian_path
        for mapping in self._mappings:
            if not mapping.enabled:
                continue
            relative = self._relative_to(obsidian_path, mapping.obsidian_path)
            if relative is None:
                continue
            if relative in ("", INDEX_NOTE):
                wiki_path = mapping.wiki_path
            else:
                wiki_path = self._join(mapping.wiki_path, relative)
            break

        normalized = self.normalize_wiki_path(wiki_path)
        self._cache[obsidian_path] = normalized
        return normalized

    # ------------------------------------------------------------------
    # Wiki -> Vault
    # ------------------------------------------------------------------

    def wiki_to_obsidian(self, wiki_path: str) -> str:
        """Map a wiki path back to a vault-relative Markdown path."""
        for mapping in self._mappings:
            if not mapping.enabled:
                continue
            relative = self._relative_to(wiki_path, mapping.wiki_path)
            if relative is None:
                continue
            if not relative.strip("/"):
                relative = INDEX_NOTE
            return self._ensure_md(
                self._join(mapping.obsidian_path, relative).lstrip("/")
            )

        return self._ensure_md(wiki_path.lstrip("/"))

    def mapped_paths(self, obsidian_paths: Iterable[str]) -> list[tuple[str, str]]:
        """Return ``(vault_path, wiki_path)`` pairs for *obsidian_paths*."""
        return [(p, self.obsidian_to_wiki(p)) for p in obsidian_paths]

    # ------------------------------------------------------------------
    # Mapping management
    # ------------------------------------------------------------------

    def update_mappings(self, mappings: Iterable[PathMapping]) -> None:
        self._mappings = list(mappings)
        self._cache.clear()

    def add_mapping(self, mapping: PathMapping) -> None:
        self._mappings.append(mapping)
        self._cache.clear()

    def remove_mapping(self, obsidian_path: str) -> None:
        self._mappings = [
            m for m in self._mappings if m.obsidian_path != obsidian_path
        ]
        self._cache.clear()

    def validate_mapping(self, mapping: PathMapping) -> bool:
        """Reject mappings with an empty side or that duplicate an existing one."""
        if not mapping.obsidian_path or not mapping.wiki_path:
            return False
        return not any(
            m.obsidian_path == mapping.obsidian_path
            and m.wiki_path == mapping.wiki_path
            for m in self._mappings
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_wiki_path(path: str) -> str:
        normalized = _MD_SUFFIX.sub("", path)
        for char, replacement in _TRANSLITERATIONS.items():
            normalized = normalized.replace(char, replacement)
        normalized = _WHITESPACE.sub("-", normalized)
        normalized = normalized.lower()
        normalized = _DISALLOWED.sub("", normalized)
        normalized = _HYPHENS.sub("-", normalized)
        normalized = _EDGES.sub("", normalized)
        return "/" + normalized

    @staticmethod
    def _relative_to(path: str, prefix: str) -> str | None:
        """Return *path* below the folder *prefix*, or ``None`` if outside it.

        Matches whole path segments only: ``notes`` covers ``notes`` and
        ``notes/x.md`` but not ``notes-archive/x.md``.
        """
        base = prefix.rstrip("/")
        if path == base:
            return ""
        if path.startswith(base + "/"):
            return path[len(base) + 1 :]
        return None

    @staticmethod
    def _ensure_md(path: str) -> str:
        return path if path.endswith(".md") else f"{path}.md"

    @staticmethod
    def _join(base: str, relative: str) -> str:
        return base.rstrip("/") + "/" + relative.lstrip("/")
