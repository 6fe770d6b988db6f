"""Core WikiJS client functionality shared between CLI and MCP server."""

from .async_utils import batch_process, retry, run_sync
from .cache import TTLCache, content_checksum
from .client import WikiJSClient, WikiJSError
from .task_queue import AsyncTaskQueue

__all__ = [
    "AsyncTaskQueue",
    "TTLCache",
    "WikiJSClient",
    "WikiJSError",
    "batch_process",
    "content_checksum",
    "retry",
    "run_sync",
]
