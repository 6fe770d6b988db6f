"""File handler module: vault path resolution and encoding-aware read/write.

Plain synchronous helpers; the vault store runs them on a worker thread
via ``run_sync()``.
"""

from pathlib import Path, PurePosixPath

from charset_normalizer import from_bytes

# =============================================================================
# Path Validation
# =============================================================================


def resolve_vault_path(root: Path, rel_path: str) -> Path:
    """Resolve a vault-relative POSIX path against *root*.

    Args:
        root: Vault root directory.
        rel_path: Path relative to the vault (e.g. ``notes/a.md``).

    Returns:
        Absolute path inside the vault.

    Raises:
        ValueError: If the path is empty, absolute, or escapes the vault.
    """
    if not rel_path or not rel_path.strip():
        raise ValueError("Vault path cannot be empty")
    posix = PurePosixPath(rel_path.replace("\\", "/"))
    if posix.is_absolute():
        raise ValueError(f"Vault path must be relative: {rel_path}")
    root_resolved = root.resolve()
    resolved = (root_resolved / Path(*posix.parts)).resolve()
    if not resolved.is_relative_to(root_resolved):
        raise ValueError(
            f"Vault path escapes the vault: {rel_path} not under {root_resolved}"
        )
    return resolved


def to_vault_path(root: Path, path: Path) -> str:
    """Return *path* relative to *root* with forward slashes."""
    return path.resolve().relative_to(root.resolve()).as_posix()


# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        return (raw.decode("utf-8", errors="replace"), "utf-8")

    encoding = result.encoding
    # ascii is a strict subset of utf-8
    if encoding == "ascii":
        encoding = "utf-8"
    return (str(result), encoding)


def write_file(path: Path, content: str, encoding: str = "utf-8") -> int:
    """Write content to a file, creating parent directories as needed.

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)
