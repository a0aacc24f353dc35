"""Domain models for spec search.

Following Cosmic Python principles:
- Value Objects are immutable (frozen=True)
- Domain logic lives in domain layer
- No infrastructure dependencies

Every model here is created fresh for a single search call and discarded
once the response has been rendered by the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)


class SearchField(str, Enum):
    """Searchable document fields, in display priority order."""

    TITLE = "title"
    NAME = "name"
    TAGS = "tags"
    DESCRIPTION = "description"
    CONTENT = "content"

    @property
    def priority(self) -> int:
        return _FIELD_PRIORITY[self]


_FIELD_PRIORITY = {field: index for index, field in enumerate(SearchField)}


class Document(BaseModel):
    """A pre-loaded spec handed to the engine by a loader.

    The engine never mutates documents; loaders own parsing and path handling.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    name: str
    status: str
    priority: str | None = None
    tags: list[str] | None = None
    title: str | None = None
    description: str | None = None
    content: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Document:
        """Build a document from loosely typed loader output.

        Optional fields that fail their type check are dropped (and logged)
        so that one bad frontmatter value cannot take the whole search down.
        Required identity fields are still validated strictly.
        """
        values: dict[str, Any] = {
            "path": data.get("path"),
            "name": data.get("name"),
            "status": data.get("status"),
        }
        for key in ("priority", "title", "description", "content"):
            value = data.get(key)
            if value is None:
                continue
            if isinstance(value, str):
                values[key] = value
            else:
                _log_skipped_field(values["path"], key, value)

        tags = data.get("tags")
        if tags is not None:
            if isinstance(tags, (list, tuple)) and all(isinstance(tag, str) for tag in tags):
                values["tags"] = list(tags)
            else:
                _log_skipped_field(values["path"], "tags", tags)

        return cls(**values)

    def to_result_spec(self) -> SearchResultSpec:
        return SearchResultSpec(
            path=self.path,
            name=self.name,
            status=self.status,
            priority=self.priority,
            tags=self.tags,
            title=self.title,
            description=self.description,
        )


def _log_skipped_field(path: Any, key: str, value: Any) -> None:
    logger.warning(
        "Skipping malformed field %r on document %s (got %s)",
        key,
        path,
        type(value).__name__,
        extra={"document_path": path, "field": key},
    )


class FieldMatch(BaseModel):
    """Value object for a single field (or content line) that matched a query.

    ``text`` is the full field value for short fields and the extracted
    context window for content lines. ``highlights`` are ``[start, end)``
    offsets into ``text``; ``occurrences`` counts hits in the original,
    un-windowed text.
    """

    model_config = ConfigDict(frozen=True)

    field: SearchField
    text: str
    line_number: int | None = Field(default=None, ge=1)
    score: float = Field(ge=0.0, le=100.0)
    highlights: list[tuple[int, int]] = Field(default_factory=list)
    occurrences: int = Field(default=0, ge=0)


class SearchResultSpec(BaseModel):
    """Display subset of a document returned alongside its matches."""

    model_config = ConfigDict(frozen=True)

    path: str
    name: str
    status: str
    priority: str | None = None
    tags: list[str] | None = None
    title: str | None = None
    description: str | None = None


class SearchResult(BaseModel):
    """One scored document with its curated matches."""

    model_config = ConfigDict(frozen=True)

    spec: SearchResultSpec
    score: int = Field(ge=0, le=100)
    total_matches: int = Field(ge=0)
    matches: list[FieldMatch] = Field(default_factory=list)


class SearchMetadata(BaseModel):
    """Performance and bookkeeping information for a search call."""

    model_config = ConfigDict(frozen=True)

    total_results: int
    search_time_ms: float
    query: str
    specs_searched: int


class SearchResponse(BaseModel):
    """Value object for a complete search response.

    Results are ordered by descending score; ties keep input order.
    """

    model_config = ConfigDict(frozen=True)

    results: list[SearchResult]
    metadata: SearchMetadata
