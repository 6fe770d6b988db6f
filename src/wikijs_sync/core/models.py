"""Pydantic models for WikiJS pages as returned by the GraphQL API.

WikiJS speaks camelCase; the models expose snake_case attributes and
accept either spelling on input.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def parse_timestamp(value: str | None) -> float:
    """Convert an ISO 8601 string (``Z`` suffix allowed) to epoch seconds.

    Returns ``0.0`` for empty values.  Naive timestamps are taken as UTC.
    """
    if not value:
        return 0.0
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def format_timestamp(epoch: float) -> str:
    """Format epoch seconds as an ISO 8601 UTC string with ``Z`` suffix."""
    dt = datetime.fromtimestamp(epoch, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class WikiPage(BaseModel):
    """A page stored in WikiJS.

    ``content`` is ``None`` when the page came from a listing query, which
    does not return page bodies.
    """

    id: str
    path: str
    title: str = ""
    content: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_published: bool = Field(default=True, alias="isPublished")
    is_private: bool = Field(default=False, alias="isPrivate")
    locale: str = "en"
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    editor: str = "markdown"

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def updated_timestamp(self) -> float:
        """``updated_at`` as epoch seconds (``0.0`` when unknown)."""
        return parse_timestamp(self.updated_at)


class WikiPageInput(BaseModel):
    """Payload for creating or updating a page."""

    path: str
    title: str
    content: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_published: bool = True
    is_private: bool = False
    locale: str = "en"
    editor: str = "markdown"

    model_config = {"frozen": True}

    def to_variables(self) -> dict:
        """GraphQL mutation variables in WikiJS naming."""
        return {
            "path": self.path,
            "title": self.title,
            "content": self.content,
            "description": self.description or "",
            "tags": list(self.tags),
            "isPublished": self.is_published,
            "isPrivate": self.is_private,
            "locale": self.locale or "en",
            "editor": self.editor or "markdown",
        }


class PageResponse(BaseModel):
    """Outcome of a create/update mutation (WikiJS ``responseResult``)."""

    succeeded: bool
    error_code: str | int | None = Field(default=None, alias="errorCode")
    slug: str | None = None
    message: str | None = None
    page: WikiPage | None = None

    model_config = {"frozen": True, "populate_by_name": True}
