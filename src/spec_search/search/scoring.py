"""Relevance scoring for field matches and whole documents.

Scoring factors for a single match:
- Field weight (title > name = tags > description > content)
- Exact whole-word bonus
- Position bonus (earlier matches in the same field score higher)
- Frequency penalty (many matches in one field are less specific)

The per-document score is a field-weighted average of the best match in
each field, so a document matching in title and tags is not ranked above a
title-only match just because it matched twice.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from functools import lru_cache
import math
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spec_search.domain.search import FieldMatch, SearchField


DEFAULT_FIELD_WEIGHTS: Mapping[SearchField, float] = {
    SearchField.TITLE: 100.0,
    SearchField.NAME: 70.0,
    SearchField.TAGS: 70.0,
    SearchField.DESCRIPTION: 50.0,
    SearchField.CONTENT: 10.0,
}


class ScoringConfig(BaseModel):
    """Immutable scoring constants.

    Defaults reproduce the reference ranking; alternate tables are meant for
    experiments and tests, not for per-request tuning.
    """

    model_config = ConfigDict(frozen=True)

    field_weights: dict[SearchField, float] = Field(default_factory=lambda: dict(DEFAULT_FIELD_WEIGHTS))
    exact_match_multiplier: float = Field(default=2.0, ge=1.0)
    position_bonus_start: float = Field(default=1.5, ge=1.0)
    position_bonus_step: float = Field(default=0.1, ge=0.0)
    position_bonus_floor: float = Field(default=1.0, gt=0.0)
    frequency_cap: float = Field(default=3.0, gt=0.0)
    score_scale: float = Field(default=10.0, gt=0.0)
    max_score: float = Field(default=100.0, gt=0.0)

    @field_validator("field_weights")
    @classmethod
    def _require_every_field(cls, value: dict[SearchField, float]) -> dict[SearchField, float]:
        missing = [field.value for field in SearchField if field not in value]
        if missing:
            raise ValueError(f"field_weights missing entries for: {', '.join(missing)}")
        negative = [field.value for field, weight in value.items() if weight < 0]
        if negative:
            raise ValueError(f"field_weights must be non-negative: {', '.join(negative)}")
        return value

    def weight_for(self, search_field: SearchField | str) -> float:
        """Weight of a field; unknown field names raise ValueError."""
        return self.field_weights[SearchField(search_field)]


DEFAULT_SCORING = ScoringConfig()


# ASCII word boundary (\b with re.ASCII) without also restricting case folding to ASCII
_ASCII_WORD = r"(?-i:[A-Za-z0-9_])"
_ASCII_BOUNDARY = rf"(?:(?<={_ASCII_WORD})(?!{_ASCII_WORD})|(?<!{_ASCII_WORD})(?={_ASCII_WORD}))"


@lru_cache(maxsize=512)
def _word_pattern(term: str) -> re.Pattern[str]:
    return re.compile(_ASCII_BOUNDARY + re.escape(term) + _ASCII_BOUNDARY, re.IGNORECASE)


def has_exact_word_match(text: str, terms: Iterable[str]) -> bool:
    """True when any term appears in text as a whole word."""
    return any(_word_pattern(term).search(text) for term in terms if term)


def calculate_match_score(
    search_field: SearchField | str,
    text: str,
    terms: Sequence[str],
    total_matches: int,
    match_position: int,
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    """Score a single field match on a 0-100 scale.

    Args:
        search_field: Field the match was found in.
        text: Original field text (the full line for content matches).
        terms: Normalized query terms.
        total_matches: Number of matches in this field of the document.
        match_position: Zero-based index of this match within the field.
        config: Scoring constants.

    Returns:
        Score between 0 and ``config.max_score``.
    """
    if total_matches < 1:
        raise ValueError(f"total_matches must be >= 1, got {total_matches}")
    if match_position < 0:
        raise ValueError(f"match_position must be >= 0, got {match_position}")

    score = config.weight_for(search_field)

    if has_exact_word_match(text, terms):
        score *= config.exact_match_multiplier

    position_bonus = max(
        config.position_bonus_floor,
        config.position_bonus_start - match_position * config.position_bonus_step,
    )
    score *= position_bonus

    score *= min(1.0, config.frequency_cap / total_matches)

    return min(config.max_score, score * config.score_scale)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_spec_score(matches: Sequence[FieldMatch], config: ScoringConfig = DEFAULT_SCORING) -> int:
    """Aggregate a document's curated matches into one 0-100 score.

    Keeps the best score per field and returns their field-weighted average,
    rounded half up. No matches scores 0.
    """
    if not matches:
        return 0

    best_per_field: dict[SearchField, float] = {}
    for match in matches:
        best_per_field[match.field] = max(best_per_field.get(match.field, 0.0), match.score)

    total_score = 0.0
    total_weight = 0.0
    for search_field, score in best_per_field.items():
        weight = config.weight_for(search_field)
        total_score += score * weight
        total_weight += weight

    if total_weight <= 0:
        return 0
    return round_half_up(total_score / total_weight)
