"""
Tests for query normalization, token extraction and edit-distance similarity.
"""

import pytest

from catalog_search.parsing.query_normalizer import (
    extract_tokens,
    fuzzy_similarity,
    levenshtein_distance,
    normalize_query,
    query_tokens,
    similarity_ratio,
)


class TestExtractTokens:
    def test_lowercases_and_strips_punctuation(self):
        assert extract_tokens("Galaxy S24, 128GB!") == ["galaxy", "s24", "128gb"]

    def test_drops_single_characters(self):
        assert extract_tokens("a b cd - e") == ["cd"]

    def test_empty(self):
        assert extract_tokens("") == []
        assert extract_tokens(None) == []


class TestNormalizeQuery:
    def test_regional_term_rewritten(self):
        normalized, meta = normalize_query("Sasta phone")
        assert normalized == "cheap phone"
        assert meta["changed"] is True
        assert meta["regional_terms"] == {"sasta": "cheap"}

    def test_misspelling_corrected(self):
        normalized, meta = normalize_query("samsang leptop")
        assert normalized == "samsung laptop"
        assert meta["corrections"] == {"samsang": "samsung", "leptop": "laptop"}

    def test_word_boundaries_respected(self):
        # "rs" inside "covers" must stay untouched
        normalized, _ = normalize_query("covers")
        assert normalized == "covers"

    def test_both_tables_apply_in_sequence(self):
        normalized, _ = normalize_query("accha ifone")
        assert normalized == "good iphone"

    def test_unchanged_query(self):
        normalized, meta = normalize_query("  Laptop ")
        assert normalized == "laptop"
        assert meta["changed"] is False

    def test_query_tokens(self):
        assert query_tokens("sastey hedphones!") == ["cheap", "headphones"]


class TestEditDistance:
    @pytest.mark.parametrize("a,b,distance", [
        ("samsung", "samsung", 0),
        ("samsung", "samsang", 1),
        ("kitten", "sitting", 3),
        ("", "abc", 3),
        ("Dell", "dell", 0),
    ])
    def test_levenshtein(self, a, b, distance):
        assert levenshtein_distance(a, b) == distance

    def test_similarity_ratio(self):
        assert similarity_ratio("samsung", "samsang") == pytest.approx(1 - 1 / 7)
        assert similarity_ratio("", "") == 1.0
        assert similarity_ratio("abc", "") == 0.0


class TestFuzzySimilarity:
    def test_one_edit_against_title_token(self):
        score = fuzzy_similarity("samsyng", "Samsung Galaxy S24")
        assert score == pytest.approx(1 - 1 / 7)

    def test_below_threshold_is_zero(self):
        assert fuzzy_similarity("nokia", "Samsung Galaxy S24") == 0.0

    def test_two_edits_on_short_word_is_zero(self):
        # two edits over four characters is 0.5
        assert fuzzy_similarity("dxly", "Dell Inspiron") == 0.0
