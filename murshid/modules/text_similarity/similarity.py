# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Text Similarity
Composite similarity of two free-text fields from three views:

  TF-IDF cosine   token weights over the two-document corpus,
                  idf = ln(2 / df) + 1 so shared terms still count
  Jaccard         token-set overlap
  Bigram Jaccard  character 2-gram overlap of the cleaned strings,
                  tolerant of typos and token order

overall = tfidf·w_tfidf + jaccard·w_jaccard + ngram·w_ngram (0.5 / 0.3 / 0.2)

Every function here is pure and symmetric in its two arguments.
"""

from __future__ import annotations

import math
from collections import Counter

from pydantic import BaseModel, ConfigDict

from murshid.config import TextWeights
from murshid.modules.text_similarity.tokenizer import char_ngrams, clean_text, tokenize
from murshid.utils.scoring import round_score, weighted_sum

_DEFAULT_WEIGHTS = TextWeights()


class TextSimilarityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: float = 0.0
    tfidf: float = 0.0
    jaccard: float = 0.0
    ngram: float = 0.0
    exact_match: bool = False


_EMPTY = TextSimilarityResult()
_EXACT = TextSimilarityResult(overall=1.0, tfidf=1.0, jaccard=1.0, ngram=1.0, exact_match=True)


def term_frequency(tokens: list[str]) -> dict[str, float]:
    """Per-document normalised term frequency (count / token count)."""
    total = len(tokens)
    return {term: count / total for term, count in Counter(tokens).items()}


def tfidf_vectors(
    tokens1: list[str], tokens2: list[str]
) -> tuple[dict[str, float], dict[str, float]]:
    tf1 = term_frequency(tokens1)
    tf2 = term_frequency(tokens2)

    vec1: dict[str, float] = {}
    vec2: dict[str, float] = {}
    # Sorted so both argument orders accumulate floats identically
    for term in sorted(set(tf1) | set(tf2)):
        df = (term in tf1) + (term in tf2)
        idf = math.log(2 / df) + 1
        vec1[term] = tf1.get(term, 0.0) * idf
        vec2[term] = tf2.get(term, 0.0) * idf

    return vec1, vec2


def cosine_similarity(vec1: dict[str, float], vec2: dict[str, float]) -> float:
    keys = sorted(set(vec1) | set(vec2))
    dot = sum(vec1.get(k, 0.0) * vec2.get(k, 0.0) for k in keys)
    norm1 = math.sqrt(sum(vec1.get(k, 0.0) ** 2 for k in keys))
    norm2 = math.sqrt(sum(vec2.get(k, 0.0) ** 2 for k in keys))
    if norm1 == 0 or norm2 == 0:
        return 0.0
    # Guard against 1.0000000000000002 from float accumulation
    return min(1.0, dot / (norm1 * norm2))


def jaccard_similarity(items1: set[str], items2: set[str]) -> float:
    union = items1 | items2
    if not union:
        return 0.0
    return len(items1 & items2) / len(union)


def ngram_similarity(text1: str, text2: str, n: int = 2) -> float:
    return jaccard_similarity(char_ngrams(text1, n), char_ngrams(text2, n))


def text_similarity(
    text1: str | None,
    text2: str | None,
    weights: TextWeights = _DEFAULT_WEIGHTS,
) -> TextSimilarityResult:
    """
    Compare two free-text fields.

    Returns an all-zero result when either side is empty, and the exact-match
    result (all 1.0, exact_match=True) when both clean to the same non-empty
    string. Otherwise each sub-score and the weighted overall are rounded
    to 2 decimals.
    """
    if not text1 or not text2:
        return _EMPTY

    cleaned1 = clean_text(text1)
    if cleaned1 and cleaned1 == clean_text(text2):
        return _EXACT

    tokens1 = tokenize(text1)
    tokens2 = tokenize(text2)

    vec1, vec2 = tfidf_vectors(tokens1, tokens2)
    tfidf = cosine_similarity(vec1, vec2)
    jaccard = jaccard_similarity(set(tokens1), set(tokens2))
    ngram = ngram_similarity(text1, text2, 2)

    overall = weighted_sum([
        (tfidf, weights.tfidf),
        (jaccard, weights.jaccard),
        (ngram, weights.ngram),
    ])

    return TextSimilarityResult(
        overall=round_score(overall),
        tfidf=round_score(tfidf),
        jaccard=round_score(jaccard),
        ngram=round_score(ngram),
        exact_match=False,
    )
