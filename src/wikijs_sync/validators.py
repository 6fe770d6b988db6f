"""
Input validation for WikiJS page writes.

Checks remote paths and page content before a GraphQL mutation is sent,
so obviously bad input fails locally with a readable message.
"""

import re

# Characters WikiJS rejects in page paths.
_FORBIDDEN_PATH_CHARS = re.compile(r"[\s?#%\"'<>\\|*:]")


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Page path")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_wiki_path(path: str) -> tuple[bool, str]:
    """
    Validate a remote page path such as ``/docs/guide``.

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty, whitespace-only or just ``/``
        - Cannot contain '..' (path traversal protection)
        - Cannot have empty path segments (e.g., 'docs//guide')
        - Cannot contain whitespace or URL-reserved characters
    """
    if not path or not path.strip("/ "):
        return (
            False,
            format_validation_error("Page path", "cannot be empty"),
        )

    if ".." in path:
        return (
            False,
            format_validation_error("Page path", "cannot contain '..'"),
        )

    if "//" in path:
        return (
            False,
            format_validation_error(
                "Page path", "cannot have empty path segments"
            ),
        )

    match = _FORBIDDEN_PATH_CHARS.search(path)
    if match:
        return (
            False,
            format_validation_error(
                "Page path", f"cannot contain {match.group()!r}"
            ),
        )

    return (True, "")


def validate_content(
    content: str, max_size: int = 5_000_000
) -> tuple[bool, str]:
    """
    Validate page content.

    Args:
        content: The content to validate
        max_size: Maximum size in bytes (default: 5,000,000)

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot exceed max_size bytes

    Empty content is valid: a note holding only frontmatter pushes an
    empty page body.
    """
    content_bytes = len(content.encode("utf-8"))
    if content_bytes > max_size:
        return (
            False,
            format_validation_error(
                "Content", f"exceeds maximum size of {max_size} bytes"
            ),
        )

    return (True, "")
