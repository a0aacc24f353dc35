"""Domain layer: immutable value objects shared by the search pipeline."""

from spec_search.domain.search import (
    Document,
    FieldMatch,
    SearchField,
    SearchMetadata,
    SearchResponse,
    SearchResult,
    SearchResultSpec,
)


__all__ = [
    "Document",
    "FieldMatch",
    "SearchField",
    "SearchMetadata",
    "SearchResponse",
    "SearchResult",
    "SearchResultSpec",
]
