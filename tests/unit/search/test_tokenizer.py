"""Unit tests for query tokenization."""

import pytest

from spec_search.search.tokenizer import tokenize_query


pytestmark = pytest.mark.unit


def test_lowercases_and_splits_on_whitespace():
    assert tokenize_query("Cache  Eviction\tPolicy") == ["cache", "eviction", "policy"]


def test_trims_surrounding_whitespace():
    assert tokenize_query("   oauth2   ") == ["oauth2"]


@pytest.mark.parametrize("query", ["", "   ", "\t\n "])
def test_blank_queries_yield_no_terms(query):
    assert tokenize_query(query) == []


def test_duplicate_terms_are_kept():
    assert tokenize_query("foo FOO foo") == ["foo", "foo", "foo"]


def test_punctuation_stays_inside_terms():
    assert tokenize_query("api-v2 rs256.") == ["api-v2", "rs256."]
