"""Context extraction for long content lines.

Content matches are line-local, but a single markdown line can be a whole
paragraph. Lines longer than twice the context length are cut down to a
window around the earliest query term hit.

Two modes:
- Basic: fixed window of ``context_length`` characters either side.
- Smart: same window, nudged onto nearby sentence boundaries (". ") when
  one is within a short distance, so previews read as whole clauses.

Highlights are always recomputed against the final window text, ellipsis
markers included.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from spec_search.search.matching import find_match_positions, term_pattern


DEFAULT_CONTEXT_LENGTH = 80
# Max distance (chars) to look past the raw window for a sentence boundary
SENTENCE_BOUNDARY_WINDOW = 20
SENTENCE_TERMINATOR = ". "
ELLIPSIS = "..."


@dataclass(frozen=True)
class ContextWindow:
    """Excerpt text plus highlight ranges relative to that text."""

    text: str
    highlights: list[tuple[int, int]] = field(default_factory=list)


def find_first_match_position(line: str, terms: Sequence[str]) -> int:
    """Earliest case-insensitive hit of any term, or ``len(line)`` if none."""
    first = len(line)
    for term in terms:
        if not term:
            continue
        match = term_pattern(term).search(line)
        if match and match.start() < first:
            first = match.start()
    return first


def _needs_window(line: str, context_length: int) -> bool:
    return len(line) > context_length * 2


def _raw_window(line: str, terms: Sequence[str], context_length: int) -> tuple[int, int]:
    anchor = find_first_match_position(line, terms)
    start = max(0, anchor - context_length)
    end = min(len(line), anchor + context_length)
    return start, end


def snap_to_sentence_boundaries(
    line: str,
    start: int,
    end: int,
    max_distance: int = SENTENCE_BOUNDARY_WINDOW,
) -> tuple[int, int]:
    """Move a window onto nearby sentence boundaries.

    The start moves back to just after the closest preceding ". " if that
    terminator is less than ``max_distance`` characters away. The end moves
    forward to include the period of the next ". " under the same limit.
    """
    last_terminator = line.rfind(SENTENCE_TERMINATOR, 0, start)
    if last_terminator != -1 and start - last_terminator < max_distance:
        start = last_terminator + len(SENTENCE_TERMINATOR)

    next_terminator = line.find(SENTENCE_TERMINATOR, end)
    if next_terminator != -1 and next_terminator - end < max_distance:
        end = next_terminator + 1

    return start, end


def _build_window(line: str, start: int, end: int, terms: Sequence[str]) -> ContextWindow:
    text = line[start:end]
    if start > 0:
        text = ELLIPSIS + text
    if end < len(line):
        text = text + ELLIPSIS
    return ContextWindow(text=text, highlights=find_match_positions(text, terms))


def extract_context(
    line: str,
    terms: Sequence[str],
    context_length: int = DEFAULT_CONTEXT_LENGTH,
) -> ContextWindow:
    """Fixed-size window around the first term hit.

    Args:
        line: The full content line that matched.
        terms: Query terms to locate and highlight.
        context_length: Characters kept on each side of the hit.

    Returns:
        The (possibly ellipsized) excerpt and its highlight ranges.
    """
    if context_length < 1:
        raise ValueError(f"context_length must be > 0, got {context_length}")

    if not _needs_window(line, context_length):
        return ContextWindow(text=line, highlights=find_match_positions(line, terms))

    start, end = _raw_window(line, terms, context_length)
    return _build_window(line, start, end, terms)


def extract_smart_context(
    line: str,
    terms: Sequence[str],
    context_length: int = DEFAULT_CONTEXT_LENGTH,
    boundary_window: int = SENTENCE_BOUNDARY_WINDOW,
) -> ContextWindow:
    """Window around the first term hit, extended to nearby sentence ends.

    Behaves like :func:`extract_context` for short lines.
    """
    if context_length < 1:
        raise ValueError(f"context_length must be > 0, got {context_length}")

    if not _needs_window(line, context_length):
        return extract_context(line, terms, context_length)

    start, end = _raw_window(line, terms, context_length)
    start, end = snap_to_sentence_boundaries(line, start, end, boundary_window)
    return _build_window(line, start, end, terms)
