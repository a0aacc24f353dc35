"""Query tokenization for the substring matcher.

Terms are lowercased whitespace-delimited chunks. No stemming, stopword
removal or punctuation stripping happens here: the matcher does
case-insensitive substring containment, so a term like ``"api-v2"`` must
survive intact.
"""

from __future__ import annotations

import re


WHITESPACE_PATTERN = re.compile(r"\s+")


def tokenize_query(query: str) -> list[str]:
    """Split a raw query into lowercase terms.

    Repeated terms are kept; they match (and count) once per repetition.

    Examples:
        >>> tokenize_query("  Cache   Eviction ")
        ['cache', 'eviction']
        >>> tokenize_query("   ")
        []
    """
    normalized = query.strip().lower()
    if not normalized:
        return []
    return [term for term in WHITESPACE_PATTERN.split(normalized) if term]
