"""Field matching: containment tests, occurrence counts and highlight ranges.

All comparisons are case-insensitive substring matches, not word matches:
``"auth"`` matches ``"OAuth2"``. Highlight ranges are computed on the text
as given so offsets stay valid for display.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
import re
from typing import Literal

from spec_search.domain.search import Document, SearchField


MatchMode = Literal["all", "any"]


@dataclass(frozen=True)
class FieldHit:
    """A field value (or content line) that satisfied the match predicate.

    ``text`` is always the original, un-windowed text; context extraction
    happens later in the pipeline.
    """

    field: SearchField
    text: str
    occurrences: int
    highlights: list[tuple[int, int]] = field(default_factory=list)
    line_number: int | None = None


@lru_cache(maxsize=512)
def term_pattern(term: str) -> re.Pattern[str]:
    """Compiled case-insensitive literal pattern for a term."""
    return re.compile(re.escape(term), re.IGNORECASE)


def contains_all_terms(text: str, terms: Sequence[str]) -> bool:
    """True when every term occurs somewhere in text (AND)."""
    return all(term_pattern(term).search(text) for term in terms)


def contains_any_term(text: str, terms: Sequence[str]) -> bool:
    """True when at least one term occurs in text (OR)."""
    return any(term_pattern(term).search(text) for term in terms)


def count_occurrences(text: str, terms: Sequence[str]) -> int:
    """Sum of non-overlapping occurrences of each term."""
    return sum(sum(1 for _ in term_pattern(term).finditer(text)) for term in terms)


def merge_ranges(ranges: Sequence[tuple[int, int]]) -> list[tuple[int, int]]:
    """Sort ranges by start and merge any that touch or overlap."""
    merged: list[list[int]] = []
    for start, end in sorted(ranges, key=lambda item: item[0]):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [(start, end) for start, end in merged]


def find_match_positions(text: str, terms: Sequence[str]) -> list[tuple[int, int]]:
    """Highlight ranges for every occurrence of every term in text."""
    positions = [
        (match.start(), match.end()) for term in terms if term for match in term_pattern(term).finditer(text)
    ]
    return merge_ranges(positions)


def spec_contains_all_terms(document: Document, terms: Sequence[str]) -> bool:
    """Cross-field check: every term appears in at least one field.

    Term A may live in the title while term B lives in the body. Returns
    False for an empty term list.
    """
    if not terms:
        return False

    combined = " ".join(
        [
            document.title or "",
            document.name or "",
            " ".join(document.tags or []),
            document.description or "",
            document.content or "",
        ]
    )
    return contains_all_terms(combined, terms)


def _predicate(mode: MatchMode) -> Callable[[str, Sequence[str]], bool]:
    if mode == "all":
        return contains_all_terms
    if mode == "any":
        return contains_any_term
    raise ValueError(f"Unknown match mode: {mode!r}")


def _hit(search_field: SearchField, text: str, terms: Sequence[str], line_number: int | None = None) -> FieldHit:
    return FieldHit(
        field=search_field,
        text=text,
        occurrences=count_occurrences(text, terms),
        highlights=find_match_positions(text, terms),
        line_number=line_number,
    )


def iter_field_hits(document: Document, terms: Sequence[str], mode: MatchMode = "all") -> Iterator[FieldHit]:
    """Yield every matching field value of a document in field priority order.

    Tags are tested one by one, content one line at a time (1-based line
    numbers). A content line only matches on its own; terms spread over
    several lines never combine.
    """
    matches = _predicate(mode)

    for search_field, value in (
        (SearchField.TITLE, document.title),
        (SearchField.NAME, document.name),
    ):
        if value and matches(value, terms):
            yield _hit(search_field, value, terms)

    for tag in document.tags or []:
        if tag and matches(tag, terms):
            yield _hit(SearchField.TAGS, tag, terms)

    if document.description and matches(document.description, terms):
        yield _hit(SearchField.DESCRIPTION, document.description, terms)

    if document.content:
        for index, line in enumerate(document.content.split("\n")):
            if line and matches(line, terms):
                yield _hit(SearchField.CONTENT, line, terms, line_number=index + 1)


def group_hits_by_field(hits: Sequence[FieldHit]) -> dict[SearchField, list[FieldHit]]:
    """Group hits per field, preserving their original order."""
    grouped: dict[SearchField, list[FieldHit]] = {}
    for hit in hits:
        grouped.setdefault(hit.field, []).append(hit)
    return grouped
