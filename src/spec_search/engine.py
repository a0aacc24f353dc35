"""Search orchestration: run the matching pipeline over a document collection.

Per call:
    tokenize -> (no terms: empty response)
    -> for each document: match fields -> score matches -> extract context
       for content lines -> curate -> aggregate score
    -> keep non-zero results -> stable sort by score (desc)

Every call is a pure function of (query, documents, options); nothing is
cached between calls.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from contextlib import nullcontext
import logging
import time
from typing import Any

from spec_search.config import Settings
from spec_search.domain.search import (
    Document,
    FieldMatch,
    SearchField,
    SearchMetadata,
    SearchResponse,
    SearchResult,
)
from spec_search.observability.context import search_scope
from spec_search.observability.metrics import SEARCH_LATENCY, SEARCH_REQUESTS, SEARCH_RESULTS, track_latency
from spec_search.observability.tracing import create_span
from spec_search.options import SearchOptions
from spec_search.search.curation import DEFAULT_MIN_LINE_DISTANCE, curate_matches
from spec_search.search.matching import group_hits_by_field, iter_field_hits, spec_contains_all_terms
from spec_search.search.query_parser import evaluate, parse_query
from spec_search.search.scoring import DEFAULT_SCORING, ScoringConfig, calculate_match_score, calculate_spec_score
from spec_search.search.snippet import extract_context, extract_smart_context
from spec_search.search.tokenizer import tokenize_query


logger = logging.getLogger(__name__)

DocumentLike = Document | Mapping[str, Any]
OptionsLike = SearchOptions | Mapping[str, Any] | None


class SearchEngine:
    """Relevance-ranked search over an in-memory collection of specs.

    Scoring constants and dedup distance are fixed per engine instance;
    per-call knobs come in through ``SearchOptions``.
    """

    def __init__(
        self,
        scoring: ScoringConfig = DEFAULT_SCORING,
        default_options: SearchOptions | None = None,
        *,
        min_line_distance: int = DEFAULT_MIN_LINE_DISTANCE,
        metrics_enabled: bool = True,
    ):
        if min_line_distance < 0:
            raise ValueError(f"min_line_distance must be >= 0, got {min_line_distance}")
        self.scoring = scoring
        self.default_options = default_options or SearchOptions()
        self.min_line_distance = min_line_distance
        self.metrics_enabled = metrics_enabled

    @classmethod
    def from_settings(cls, settings: Settings | None = None, scoring: ScoringConfig = DEFAULT_SCORING) -> SearchEngine:
        settings = settings or Settings()  # type: ignore[call-arg]
        return cls(
            scoring=scoring,
            default_options=settings.to_search_options(),
            metrics_enabled=settings.metrics_enabled,
        )

    def search(self, query: str, documents: Sequence[DocumentLike], options: OptionsLike = None) -> SearchResponse:
        """Search documents for a free-text query.

        Args:
            query: Raw query; whitespace-separated terms, all required.
            documents: Pre-loaded specs (``Document`` or plain mappings).
            options: Per-call overrides of the engine defaults.

        Returns:
            SearchResponse with results sorted by descending score.
        """
        resolved = self._resolve_options(options)
        terms = tokenize_query(query)
        require_all_across_fields = resolved.match_mode == "any"

        def run(docs: list[Document]) -> list[SearchResult]:
            return [
                result
                for document in docs
                if (not require_all_across_fields or spec_contains_all_terms(document, terms))
                and (result := self.score_document(document, terms, resolved)) is not None
            ]

        return self._execute(query, documents, terms, mode="simple", run=run)

    def search_advanced(
        self,
        query: str,
        documents: Sequence[DocumentLike],
        options: OptionsLike = None,
    ) -> SearchResponse:
        """Search with boolean operators, phrases and field filters.

        Plain queries behave exactly like :meth:`search`. Otherwise documents
        are filtered by the parsed expression first, then scored with the
        positive terms in ``"any"`` mode so each matching field still gets
        highlights. Filter-only queries (``status:planned``) return every
        matching document with score 0 and no field matches.
        """
        parsed = parse_query(query)
        if not parsed.has_advanced_syntax:
            return self.search(query, documents, options)

        if parsed.errors:
            logger.info("Query parsed with errors: %s", "; ".join(parsed.errors), extra={"query": query})

        resolved = self._resolve_options(options).model_copy(update={"match_mode": "any"})
        terms = parsed.terms
        ast = parsed.ast

        def run(docs: list[Document]) -> list[SearchResult]:
            if ast is None:
                return []
            results: list[SearchResult] = []
            for document in docs:
                if not evaluate(ast, document):
                    continue
                if not terms:
                    results.append(SearchResult(spec=document.to_result_spec(), score=0, total_matches=0))
                    continue
                result = self.score_document(document, terms, resolved)
                if result is not None:
                    results.append(result)
            return results

        return self._execute(query, documents, terms, mode="advanced", run=run, allow_empty_terms=True)

    def score_document(self, document: Document, terms: Sequence[str], options: SearchOptions) -> SearchResult | None:
        """Match, score, excerpt and curate one document.

        Returns None when nothing matched or the aggregate score is zero.
        """
        hits = list(iter_field_hits(document, terms, options.match_mode))
        if not hits:
            return None

        extract = extract_smart_context if options.smart_context else extract_context
        matches: list[FieldMatch] = []
        for search_field, field_hits in group_hits_by_field(hits).items():
            total = len(field_hits)
            for position, hit in enumerate(field_hits):
                score = calculate_match_score(search_field, hit.text, terms, total, position, self.scoring)
                text, highlights = hit.text, hit.highlights
                if search_field is SearchField.CONTENT:
                    window = extract(hit.text, terms, options.context_length)
                    text, highlights = window.text, window.highlights
                matches.append(
                    FieldMatch(
                        field=search_field,
                        text=text,
                        line_number=hit.line_number,
                        score=score,
                        highlights=highlights,
                        occurrences=hit.occurrences,
                    )
                )

        curated = curate_matches(matches, options.max_matches_per_spec, self.min_line_distance)
        aggregate = calculate_spec_score(curated, self.scoring)
        if aggregate <= 0:
            return None

        return SearchResult(
            spec=document.to_result_spec(),
            score=aggregate,
            total_matches=len(matches),
            matches=curated,
        )

    def _resolve_options(self, options: OptionsLike) -> SearchOptions:
        if options is None:
            return self.default_options
        if isinstance(options, SearchOptions):
            return options
        return SearchOptions.model_validate({**self.default_options.model_dump(), **options})

    def _execute(
        self,
        query: str,
        documents: Sequence[DocumentLike],
        terms: Sequence[str],
        *,
        mode: str,
        run: Callable[[list[Document]], list[SearchResult]],
        allow_empty_terms: bool = False,
    ) -> SearchResponse:
        started = time.perf_counter()
        with (
            search_scope(search_mode=mode),
            create_span(
                "spec_search.search",
                attributes={
                    "search.mode": mode,
                    "search.term_count": len(terms),
                    "search.documents": len(documents),
                },
            ) as span,
            track_latency(SEARCH_LATENCY, mode=mode) if self.metrics_enabled else nullcontext(),
        ):
            if not terms and not allow_empty_terms:
                results: list[SearchResult] = []
                outcome = "empty_query"
            else:
                results = _stable_rank(run(coerce_documents(documents)))
                outcome = "hit" if results else "miss"

            span.set_attribute("search.results", len(results))
            if self.metrics_enabled:
                SEARCH_REQUESTS.labels(mode=mode, outcome=outcome).inc()
                SEARCH_RESULTS.labels(mode=mode).observe(len(results))

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug(
                "Search completed: %d results for %d terms across %d specs in %.2fms",
                len(results),
                len(terms),
                len(documents),
                elapsed_ms,
            )

        return SearchResponse(
            results=results,
            metadata=SearchMetadata(
                total_results=len(results),
                search_time_ms=round(elapsed_ms, 3),
                query=query,
                specs_searched=len(documents),
            ),
        )


def _stable_rank(results: Iterable[SearchResult]) -> list[SearchResult]:
    # sorted() is stable: equal scores keep collection order.
    return sorted(results, key=lambda result: -result.score)


def coerce_documents(documents: Iterable[DocumentLike]) -> list[Document]:
    """Accept Document instances or loader mappings; anything else is a caller bug."""
    coerced: list[Document] = []
    for document in documents:
        if isinstance(document, Document):
            coerced.append(document)
        elif isinstance(document, Mapping):
            coerced.append(Document.from_mapping(document))
        else:
            raise TypeError(f"Expected Document or mapping, got {type(document).__name__}")
    return coerced


_default_engine = SearchEngine()


def search(query: str, documents: Sequence[DocumentLike], options: OptionsLike = None) -> SearchResponse:
    """Search with the default engine configuration."""
    return _default_engine.search(query, documents, options)


def search_advanced(query: str, documents: Sequence[DocumentLike], options: OptionsLike = None) -> SearchResponse:
    """Advanced-syntax search with the default engine configuration."""
    return _default_engine.search_advanced(query, documents, options)
