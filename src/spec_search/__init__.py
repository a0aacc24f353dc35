"""Relevance-ranked, in-memory search over structured spec documents.

Example:
    >>> from spec_search import Document, search
    >>> docs = [Document(path="042-oauth", name="042-oauth", status="planned", title="OAuth2 Flow")]
    >>> search("oauth2", docs).results[0].spec.name
    '042-oauth'
"""

from spec_search.config import Settings, get_settings
from spec_search.domain.search import (
    Document,
    FieldMatch,
    SearchField,
    SearchMetadata,
    SearchResponse,
    SearchResult,
    SearchResultSpec,
)
from spec_search.engine import SearchEngine, search, search_advanced
from spec_search.options import SearchOptions
from spec_search.search.query_parser import get_search_syntax_help, parse_query
from spec_search.search.scoring import DEFAULT_FIELD_WEIGHTS, ScoringConfig


__version__ = "0.1.0"

__all__ = [
    "DEFAULT_FIELD_WEIGHTS",
    "Document",
    "FieldMatch",
    "ScoringConfig",
    "SearchEngine",
    "SearchField",
    "SearchMetadata",
    "SearchOptions",
    "SearchResponse",
    "SearchResult",
    "SearchResultSpec",
    "Settings",
    "get_search_syntax_help",
    "get_settings",
    "parse_query",
    "search",
    "search_advanced",
]
