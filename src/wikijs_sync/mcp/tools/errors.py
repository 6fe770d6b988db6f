"""Error response builders for MCP tool handlers.

Structured error responses carry a corrective action so AI agents can
recover from errors without human intervention.
"""

import mcp.types as types
import requests

from ...core.client import PAGE_NOT_FOUND_CODE, WikiJSError


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_found, permission_denied,
            connection_error, validation_error, server_error, ...)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("not_found", "notes/a.md not found", "Check the vault path.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_wikijs_error(error: WikiJSError) -> types.CallToolResult:
    """Translate a WikiJS GraphQL error into a structured error response."""
    message = error.message.lower()

    match message:
        case _ if error.code == PAGE_NOT_FOUND_CODE or "does not exist" in message:
            return build_error_response(
                "not_found",
                error.message,
                "Run wiki_sync with direction 'wiki-to-obsidian' to refresh the vault.",
            )
        case m if "forbidden" in m or "unauthorized" in m or "denied" in m:
            return build_error_response(
                "permission_denied",
                error.message,
                "Check that the WIKIJS_API_KEY grants write:pages and read:pages.",
            )
        case m if "already exists" in m:
            return build_error_response(
                "already_exists",
                error.message,
                "Run wiki_sync in bidirectional mode so the existing page is updated.",
            )
        case _:
            return build_error_response(
                "server_error",
                error.message,
                "Check the WikiJS server logs or retry later.",
            )


def translate_request_error(
    error: requests.RequestException,
) -> types.CallToolResult:
    """Translate a transport-level failure into a structured error response."""
    return build_error_response(
        "connection_error",
        str(error),
        "Check WIKIJS_URL and network connectivity, then retry.",
    )
