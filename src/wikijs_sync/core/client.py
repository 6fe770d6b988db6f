"""Blocking WikiJS GraphQL client.

All calls go through one ``POST {url}/graphql`` endpoint with a bearer
token.  Methods are synchronous; async callers wrap them with
``run_sync()``.

Path convention: the rest of the package uses remote paths with a
leading ``/`` (``/docs/guide``).  WikiJS stores them without it, so the
client strips the slash on the way out and adds it back on the way in.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import requests

from ..config import Config
from ..validators import validate_content, validate_wiki_path
from .models import PageResponse, WikiPage, WikiPageInput

logger = logging.getLogger(__name__)

# WikiJS error code for "This page does not exist."
PAGE_NOT_FOUND_CODE = 6003

_PAGE_FIELDS = """
    id
    path
    title
    description
    isPublished
    isPrivate
    locale
    createdAt
    updatedAt
    editor
"""

_RESPONSE_RESULT = """
    responseResult {
      succeeded
      errorCode
      slug
      message
    }
"""

CONNECTION_QUERY = """
query {
  system {
    info {
      currentVersion
    }
  }
}
"""

GET_PAGE_QUERY = (
    """
query GetPage($path: String!, $locale: String!) {
  pages {
    singleByPath(path: $path, locale: $locale) {
      %s
      content
      tags {
        tag
      }
    }
  }
}
"""
    % _PAGE_FIELDS
)

LIST_PAGES_QUERY = """
query ListPages($limit: Int!) {
  pages {
    list(limit: $limit, orderBy: ID) {
      id
      path
      title
      description
      tags
      isPublished
      isPrivate
      locale
      createdAt
      updatedAt
    }
  }
}
"""

CREATE_PAGE_MUTATION = """
mutation CreatePage(
  $path: String!
  $title: String!
  $content: String!
  $description: String!
  $tags: [String]!
  $isPublished: Boolean!
  $isPrivate: Boolean!
  $locale: String!
  $editor: String!
) {
  pages {
    create(
      path: $path
      title: $title
      content: $content
      description: $description
      tags: $tags
      isPublished: $isPublished
      isPrivate: $isPrivate
      locale: $locale
      editor: $editor
    ) {
      %s
      page {
        id
        path
        title
      }
    }
  }
}
""" % _RESPONSE_RESULT

UPDATE_PAGE_MUTATION = """
mutation UpdatePage(
  $id: Int!
  $path: String
  $title: String
  $content: String
  $description: String
  $tags: [String]
  $isPublished: Boolean
  $isPrivate: Boolean
  $locale: String
  $editor: String
) {
  pages {
    update(
      id: $id
      path: $path
      title: $title
      content: $content
      description: $description
      tags: $tags
      isPublished: $isPublished
      isPrivate: $isPrivate
      locale: $locale
      editor: $editor
    ) {
      %s
      page {
        id
        path
        title
      }
    }
  }
}
""" % _RESPONSE_RESULT


class WikiJSError(Exception):
    """A GraphQL-level error or an unsuccessful WikiJS mutation."""

    def __init__(self, message: str, code: int | str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


def to_remote_path(path: str) -> str:
    """Strip the leading slash WikiJS does not store."""
    return path.lstrip("/")


def from_remote_path(path: str) -> str:
    """Add the leading slash used throughout the package."""
    return "/" + path.lstrip("/")


class WikiJSClient:
    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.graphql_url = f"{config.wiki_url.rstrip('/')}/graphql"

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            }
        )
        session.verify = not self.config.insecure
        return session

    def _graphql_request(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """POST a GraphQL document and return its ``data`` member.

        Raises:
            requests.RequestException: On transport or HTTP errors.
            WikiJSError: If the response carries GraphQL ``errors``.
        """
        response = self._get_session().post(
            self.graphql_url,
            json={"query": query, "variables": variables or {}},
            timeout=(10, self.config.timeout),
        )
        response.raise_for_status()
        payload = response.json()

        errors = payload.get("errors") or []
        if errors:
            first = errors[0]
            extensions = first.get("extensions") or {}
            code = extensions.get("exception", {}).get(
                "code", extensions.get("code")
            )
            raise WikiJSError(
                first.get("message", "Unknown GraphQL error"), code
            )
        return payload.get("data") or {}

    @staticmethod
    def _parse_page(data: dict[str, Any]) -> WikiPage:
        """Build a ``WikiPage`` from a GraphQL page object."""
        raw_tags = data.get("tags") or []
        tags = [
            t["tag"] if isinstance(t, dict) else str(t)
            for t in raw_tags
            if t
        ]
        fields = dict(data)
        fields["id"] = str(data["id"])
        fields["path"] = from_remote_path(data.get("path", ""))
        fields["tags"] = tags
        for key in ("description", "editor", "locale"):
            if fields.get(key) is None:
                fields.pop(key, None)
        return WikiPage.model_validate(fields)

    def _parse_response(self, data: dict[str, Any]) -> PageResponse:
        result = dict(data.get("responseResult") or {})
        page = data.get("page")
        if page:
            result["page"] = self._parse_page(page)
        result.setdefault("succeeded", False)
        return PageResponse.model_validate(result)

    def test_connection(self) -> bool:
        """Probe the instance.  Returns ``False`` instead of raising."""
        try:
            data = self._graphql_request(CONNECTION_QUERY)
        except (requests.RequestException, WikiJSError, ValueError) as e:
            logger.warning("WikiJS connection test failed: %s", e)
            return False
        version = (
            data.get("system", {}).get("info", {}).get("currentVersion")
        )
        logger.debug("Connected to WikiJS %s", version)
        return bool(data)

    def get_page(self, path: str, locale: str = "en") -> WikiPage | None:
        """
        Get a page, with content, by its path.

        Returns:
            The page, or ``None`` if WikiJS reports it does not exist.
        """
        try:
            data = self._graphql_request(
                GET_PAGE_QUERY,
                {"path": to_remote_path(path), "locale": locale},
            )
        except WikiJSError as e:
            if e.code == PAGE_NOT_FOUND_CODE or "does not exist" in str(e):
                return None
            raise
        single = data.get("pages", {}).get("singleByPath")
        if not single:
            return None
        return self._parse_page(single)

    def list_pages(self, limit: int = 100, offset: int = 0) -> list[WikiPage]:
        """
        List pages ordered by id, without content.

        WikiJS has no offset argument, so ``offset + limit`` rows are
        fetched and the first ``offset`` are discarded.
        """
        data = self._graphql_request(
            LIST_PAGES_QUERY, {"limit": offset + limit}
        )
        rows = data.get("pages", {}).get("list") or []
        return [self._parse_page(row) for row in rows[offset:]]

    def create_page(self, page_input: WikiPageInput) -> PageResponse:
        """
        Create a new page.

        Raises:
            ValueError: If the path or content fails validation.
        """
        self._validate_input(page_input)
        variables = page_input.to_variables()
        variables["path"] = to_remote_path(page_input.path)
        data = self._graphql_request(CREATE_PAGE_MUTATION, variables)
        return self._parse_response(data.get("pages", {}).get("create", {}))

    def update_page(
        self, page_id: int | str, page_input: WikiPageInput
    ) -> PageResponse:
        """
        Update an existing page by id.

        Raises:
            ValueError: If the path or content fails validation.
        """
        self._validate_input(page_input)
        variables = page_input.to_variables()
        variables["path"] = to_remote_path(page_input.path)
        variables["id"] = int(page_id)
        data = self._graphql_request(UPDATE_PAGE_MUTATION, variables)
        return self._parse_response(data.get("pages", {}).get("update", {}))

    @staticmethod
    def _validate_input(page_input: WikiPageInput) -> None:
        is_valid, error = validate_wiki_path(page_input.path)
        if not is_valid:
            raise ValueError(error)
        is_valid, error = validate_content(page_input.content)
        if not is_valid:
            raise ValueError(error)
