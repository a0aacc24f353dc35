"""Match curation: de-duplicate nearby content hits and cap per-document output.

Non-content matches (title, name, tags, description) are never removed by
either pass; only content lines compete for the remaining slots.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging

from spec_search.domain.search import FieldMatch, SearchField


logger = logging.getLogger(__name__)

DEFAULT_MIN_LINE_DISTANCE = 3
DEFAULT_MAX_MATCHES_PER_SPEC = 5


def _display_order(match: FieldMatch) -> tuple[int, float]:
    return (match.field.priority, -match.score)


def deduplicate_matches(
    matches: Sequence[FieldMatch],
    min_distance: int = DEFAULT_MIN_LINE_DISTANCE,
) -> list[FieldMatch]:
    """Drop content matches that sit too close to a better one.

    Matches are visited best-first (score desc, then line asc). A content
    match is rejected when its line is within ``min_distance`` lines of a
    content line already kept. The survivors are returned in display order:
    field priority, then score desc.
    """
    if min_distance < 0:
        raise ValueError(f"min_distance must be >= 0, got {min_distance}")
    if not matches:
        return []

    ranked = sorted(matches, key=lambda match: (-match.score, match.line_number or 0))

    kept: list[FieldMatch] = []
    kept_lines: list[int] = []
    for match in ranked:
        if match.field is not SearchField.CONTENT:
            kept.append(match)
            continue

        line = match.line_number or 0
        if any(abs(line - used) <= min_distance for used in kept_lines):
            continue
        kept.append(match)
        kept_lines.append(line)

    if len(kept) < len(matches):
        logger.debug("Deduplicated %d nearby content matches", len(matches) - len(kept))

    return sorted(kept, key=_display_order)


def limit_matches(
    matches: Sequence[FieldMatch],
    max_matches: int = DEFAULT_MAX_MATCHES_PER_SPEC,
) -> list[FieldMatch]:
    """Keep every non-content match plus the best content matches that fit.

    Content matches fill ``max(0, max_matches - non_content)`` slots in score
    order. Non-content matches come first, grouped in field priority order.
    """
    if max_matches <= 0:
        raise ValueError(f"max_matches must be > 0, got {max_matches}")
    if len(matches) <= max_matches:
        return list(matches)

    non_content = sorted(
        (match for match in matches if match.field is not SearchField.CONTENT),
        key=lambda match: match.field.priority,
    )
    content = sorted(
        (match for match in matches if match.field is SearchField.CONTENT),
        key=lambda match: -match.score,
    )
    slots = max(0, max_matches - len(non_content))
    return non_content + content[:slots]


def curate_matches(
    matches: Sequence[FieldMatch],
    max_matches: int = DEFAULT_MAX_MATCHES_PER_SPEC,
    min_distance: int = DEFAULT_MIN_LINE_DISTANCE,
) -> list[FieldMatch]:
    """Deduplicate, then limit."""
    return limit_matches(deduplicate_matches(matches, min_distance), max_matches)
