"""
Query normalization utilities: regional-term rewriting, misspelling correction,
token extraction and edit-distance similarity.

Token extraction here is the single rule used both for indexing products and for
tokenizing queries.
"""

from __future__ import annotations

import re
from typing import Dict, List, Pattern, Tuple


# Colloquial Hinglish terms mapped to the English vocabulary used in the catalog.
REGIONAL_TERMS: Dict[str, str] = {
    "sasta": "cheap",
    "sastey": "cheap",
    "saste": "cheap",
    "accha": "good",
    "achha": "good",
    "acche": "good",
    "purana": "old",
    "paisa": "rupees",
    "rs": "rupees",
}

# Common misspellings of high-frequency brand and category terms.
MISSPELLINGS: Dict[str, str] = {
    "ifone": "iphone",
    "samsang": "samsung",
    "samsoong": "samsung",
    "leptop": "laptop",
    "hedphone": "headphone",
    "hedphones": "headphones",
    "moblile": "mobile",
    "mobil": "mobile",
    "charjer": "charger",
    "chargur": "charger",
    "covr": "cover",
    "cver": "cover",
}

MIN_TOKEN_LENGTH = 2
FUZZY_THRESHOLD = 0.7

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def _compile_table(table: Dict[str, str]) -> List[Tuple[str, Pattern[str], str]]:
    return [
        (term, re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE), replacement)
        for term, replacement in table.items()
    ]


_REGIONAL_PATTERNS = _compile_table(REGIONAL_TERMS)
_MISSPELLING_PATTERNS = _compile_table(MISSPELLINGS)


def extract_tokens(text: str) -> List[str]:
    """
    Split text into index tokens.

    Lower-cases, splits on whitespace, strips every non-alphanumeric character
    from each piece and drops pieces shorter than two characters. Order and
    duplicates are preserved.
    """
    if not text:
        return []
    tokens = []
    for piece in text.lower().split():
        token = _NON_ALNUM_RE.sub("", piece)
        if len(token) >= MIN_TOKEN_LENGTH:
            tokens.append(token)
    return tokens


def _apply_table(text: str, patterns: List[Tuple[str, Pattern[str], str]]) -> Tuple[str, Dict[str, str]]:
    applied: Dict[str, str] = {}
    for term, pattern, replacement in patterns:
        text, count = pattern.subn(replacement, text)
        if count:
            applied[term] = replacement
    return text, applied


def normalize_query(query: str) -> Tuple[str, Dict[str, object]]:
    """
    Normalize a raw query string.

    The whole string is trimmed and lower-cased, then the regional-term table is
    applied, then the misspelling table. Both passes run over the full string,
    one after the other.

    Returns:
        (normalized_query, metadata) where metadata records what was rewritten
    """
    original = query or ""
    normalized = original.strip().lower()

    normalized, regional = _apply_table(normalized, _REGIONAL_PATTERNS)
    normalized, corrections = _apply_table(normalized, _MISSPELLING_PATTERNS)

    metadata = {
        "changed": normalized != original.strip().lower(),
        "original_query": original,
        "normalized_query": normalized,
        "regional_terms": regional,
        "corrections": corrections,
    }
    return normalized, metadata


def query_tokens(query: str) -> List[str]:
    """Normalize a raw query and extract its search tokens."""
    normalized, _ = normalize_query(query)
    return extract_tokens(normalized)


def levenshtein_distance(a: str, b: str) -> int:
    """Compute Levenshtein distance between two strings."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    a = a.lower()
    b = b.lower()
    previous = list(range(len(b) + 1))
    for i in range(1, len(a) + 1):
        current = [i] + [0] * len(b)
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            current[j] = min(
                previous[j] + 1,  # deletion
                current[j - 1] + 1,  # insertion
                previous[j - 1] + cost,  # substitution
            )
        previous = current
    return previous[-1]


def similarity_ratio(a: str, b: str) -> float:
    """Compute similarity ratio in [0,1] based on Levenshtein distance."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    dist = levenshtein_distance(a, b)
    return 1.0 - dist / max(len(a), len(b))


def fuzzy_similarity(term: str, text: str, threshold: float = FUZZY_THRESHOLD) -> float:
    """
    Best similarity between ``term`` and ``text`` or any token of ``text``.

    Scores at or below ``threshold`` count as no match and return 0.
    """
    if not term or not text:
        return 0.0
    candidates = [text.lower()] + extract_tokens(text)
    best = max(similarity_ratio(term, candidate) for candidate in candidates)
    return best if best > threshold else 0.0
