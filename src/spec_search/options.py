"""Per-call search options."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from spec_search.search.curation import DEFAULT_MAX_MATCHES_PER_SPEC
from spec_search.search.snippet import DEFAULT_CONTEXT_LENGTH


class SearchOptions(BaseModel):
    """Caller-tunable knobs for a single search call.

    Invalid values raise ``pydantic.ValidationError`` at construction time:
    a non-positive match cap or context length is a caller bug.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_matches_per_spec: int = Field(
        default=DEFAULT_MAX_MATCHES_PER_SPEC,
        gt=0,
        description="Cap on displayed matches per document",
    )
    context_length: int = Field(
        default=DEFAULT_CONTEXT_LENGTH,
        gt=0,
        description="Characters of context kept on each side of a content hit",
    )
    match_mode: Literal["all", "any"] = Field(
        default="all",
        description="'all': a field matches only if it holds every term; "
        "'any': one term is enough once the document holds all terms across fields",
    )
    smart_context: bool = Field(
        default=True,
        description="Snap content excerpts to nearby sentence boundaries",
    )
