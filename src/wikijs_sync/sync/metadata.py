"""Translate between Obsidian YAML frontmatter and WikiJS page metadata.

Frontmatter is the ``---`` delimited YAML block at the top of a note.
Parsing and dumping use PyYAML's safe loader/dumper.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

import yaml

from ..config_schema import CustomFieldMapping, MetadataMapping
from ..core.models import WikiPage

logger = logging.getLogger(__name__)

_FRONTMATTER = re.compile(r"^---\r?\n(.*?)\r?\n---", re.DOTALL)

CATEGORY_TAG_PREFIX = "category:"
_VALID_FIELD_TYPES = {"string", "number", "boolean", "date", "array"}


@dataclass
class WikiMetadata:
    """Page metadata derived from a note's frontmatter."""

    tags: list[str] = field(default_factory=list)
    description: str | None = None
    custom_data: dict[str, Any] = field(default_factory=dict)


class MetadataConverter:
    """Convert frontmatter according to a ``MetadataMapping``."""

    def __init__(self, mapping: MetadataMapping | None = None) -> None:
        self._mapping = mapping or MetadataMapping()

    def update_mapping(self, mapping: MetadataMapping) -> None:
        self._mapping = mapping

    # ------------------------------------------------------------------
    # Frontmatter parsing
    # ------------------------------------------------------------------

    def extract_frontmatter(self, content: str) -> tuple[dict[str, Any], str]:
        """Split *content* into ``(frontmatter, body)``.

        The body is stripped of surrounding whitespace when a frontmatter
        block is present.  A note without one, or with YAML that does not
        parse to a mapping, yields ``({}, content)``.
        """
        match = _FRONTMATTER.match(content)
        if not match:
            return {}, content

        try:
            parsed = yaml.safe_load(match.group(1)) or {}
        except yaml.YAMLError as e:
            logger.warning("Failed to parse frontmatter: %s", e)
            return {}, content

        if not isinstance(parsed, dict):
            logger.warning(
                "Frontmatter is a %s, not a mapping; ignoring it",
                type(parsed).__name__,
            )
            return {}, content

        return parsed, content[match.end() :].strip()

    def merge_frontmatter(
        self, content: str, frontmatter: dict[str, Any]
    ) -> str:
        """Overlay *frontmatter* on the frontmatter already in *content*.

        Keys only present locally survive; keys in *frontmatter* win.
        """
        existing: dict[str, Any] = {}
        body = content
        match = _FRONTMATTER.match(content)
        if match:
            try:
                loaded = yaml.safe_load(match.group(1)) or {}
                if isinstance(loaded, dict):
                    existing = loaded
            except yaml.YAMLError as e:
                logger.warning("Failed to parse existing frontmatter: %s", e)
            body = content[match.end() :]

        merged = {**existing, **frontmatter}
        dumped = yaml.safe_dump(
            merged, sort_keys=False, allow_unicode=True, default_flow_style=False
        )
        if body and not body.startswith("\n"):
            body = "\n" + body
        return f"---\n{dumped}---{body}"

    # ------------------------------------------------------------------
    # Obsidian -> Wiki
    # ------------------------------------------------------------------

    def obsidian_to_wiki(self, frontmatter: dict[str, Any] | None) -> WikiMetadata:
        result = WikiMetadata()
        if not frontmatter:
            return result

        if self._mapping.tags.enabled:
            result.tags = self._extract_tags(frontmatter)

        if frontmatter.get("description"):
            result.description = str(frontmatter["description"])
        elif frontmatter.get("summary"):
            result.description = str(frontmatter["summary"])

        for field_map in self._mapping.custom_fields:
            value = _get_nested(frontmatter, field_map.obsidian_field)
            if value is not None:
                _set_nested(
                    result.custom_data,
                    field_map.wiki_field,
                    _convert_value(value, field_map.type),
                )

        return result

    def _extract_tags(self, frontmatter: dict[str, Any]) -> list[str]:
        tags: list[str] = []
        raw = frontmatter.get("tags")
        if isinstance(raw, list):
            tags.extend(str(t) for t in raw if t is not None)
        elif isinstance(raw, str):
            tags.extend(t.strip() for t in raw.split(",") if t.strip())

        single = frontmatter.get("tag")
        if isinstance(single, list):
            tags.extend(str(t) for t in single if t is not None)
        elif single:
            tags.append(str(single))

        prefix = self._mapping.tags.prefix
        return [prefix + t for t in tags] if prefix else tags

    # ------------------------------------------------------------------
    # Wiki -> Obsidian
    # ------------------------------------------------------------------

    def wiki_to_obsidian(self, page: WikiPage) -> dict[str, Any]:
        frontmatter: dict[str, Any] = {"title": page.title}
        if page.created_at:
            frontmatter["created"] = _format_date(page.created_at)
        if page.updated_at:
            frontmatter["updated"] = _format_date(page.updated_at)

        if self._mapping.tags.enabled and page.tags:
            prefix = self._mapping.tags.prefix
            frontmatter["tags"] = [
                t[len(prefix) :] if prefix and t.startswith(prefix) else t
                for t in page.tags
            ]

        if page.description:
            frontmatter["description"] = page.description

        if self._mapping.categories.enabled and page.tags:
            categories = [
                t[len(CATEGORY_TAG_PREFIX) :]
                for t in page.tags
                if t.startswith(CATEGORY_TAG_PREFIX)
            ]
            if categories:
                frontmatter[self._mapping.categories.field_name] = categories

        return frontmatter

    @staticmethod
    def validate_field_mapping(mapping: CustomFieldMapping) -> bool:
        if not mapping.obsidian_field or not mapping.wiki_field:
            return False
        return mapping.type in _VALID_FIELD_TYPES


# ----------------------------------------------------------------------
# Module helpers
# ----------------------------------------------------------------------


def _convert_value(value: Any, value_type: str) -> Any:
    match value_type:
        case "string":
            return str(value)
        case "number":
            return float(value)
        case "boolean":
            return bool(value)
        case "date":
            if isinstance(value, datetime):
                return value.isoformat()
            if isinstance(value, date):
                return datetime(
                    value.year, value.month, value.day, tzinfo=timezone.utc
                ).isoformat()
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            return parsed.isoformat()
        case "array":
            return value if isinstance(value, list) else [value]
        case _:
            return value


def _get_nested(obj: dict[str, Any], dotted: str) -> Any:
    current: Any = obj
    for part in dotted.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return None
    return current


def _set_nested(obj: dict[str, Any], dotted: str, value: Any) -> None:
    parts = dotted.split(".")
    current = obj
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def _format_date(value: str) -> str:
    """``2024-03-01T10:00:00Z`` -> ``2024-03-01`` (UTC)."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date().isoformat()
