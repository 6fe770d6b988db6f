"""Filesystem-backed local store over an Obsidian vault.

Paths are vault-relative POSIX strings.  Methods are blocking; the sync
engine calls them through ``run_sync()``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..file_handler import (
    read_file_with_encoding,
    resolve_vault_path,
    to_vault_path,
    write_file,
)
from .models import LocalItem

logger = logging.getLogger(__name__)


class VaultStore:
    """Read and write Markdown notes under ``root``.

    Args:
        root: Vault root directory.  It must exist.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser().resolve()
        if not self.root.is_dir():
            raise ValueError(f"Vault directory does not exist: {self.root}")

    def list_markdown_files(self) -> list[LocalItem]:
        """Return every ``*.md`` note in the vault, sorted by path."""
        items: list[LocalItem] = []
        for path in self.root.rglob("*.md"):
            if not path.is_file():
                continue
            items.append(
                LocalItem(
                    path=to_vault_path(self.root, path),
                    mtime=path.stat().st_mtime,
                )
            )
        items.sort(key=lambda item: item.path)
        logger.debug("Found %d notes in %s", len(items), self.root)
        return items

    def read(self, path: str) -> str:
        content, encoding = read_file_with_encoding(
            resolve_vault_path(self.root, path)
        )
        if encoding != "utf-8":
            logger.debug("Read %s as %s", path, encoding)
        return content

    def write(self, path: str, content: str) -> None:
        """Overwrite an existing note."""
        target = resolve_vault_path(self.root, path)
        if not target.is_file():
            raise FileNotFoundError(f"Note does not exist: {path}")
        write_file(target, content)

    def create(self, path: str, content: str) -> None:
        """Create a new note.  Raises ``FileExistsError`` if it exists."""
        target = resolve_vault_path(self.root, path)
        if target.exists():
            raise FileExistsError(f"Note already exists: {path}")
        write_file(target, content)

    def ensure_directory(self, path: str) -> None:
        """Create the parent folders of the note at *path*."""
        resolve_vault_path(self.root, path).parent.mkdir(
            parents=True, exist_ok=True
        )

    def exists(self, path: str) -> bool:
        return resolve_vault_path(self.root, path).is_file()

    def stat(self, path: str) -> LocalItem:
        target = resolve_vault_path(self.root, path)
        return LocalItem(
            path=to_vault_path(self.root, target), mtime=target.stat().st_mtime
        )
