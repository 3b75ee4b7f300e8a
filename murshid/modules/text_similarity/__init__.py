# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Text Similarity Module
Public API for text comparison and attribute fusion.
"""

from murshid.modules.text_similarity.attributes import (
    AttributeSet,
    compare_attributes,
)
from murshid.modules.text_similarity.similarity import (
    TextSimilarityResult,
    cosine_similarity,
    jaccard_similarity,
    ngram_similarity,
    text_similarity,
    tfidf_vectors,
)
from murshid.modules.text_similarity.tokenizer import (
    STOP_WORDS,
    clean_text,
    stem_word,
    tokenize,
)

__all__ = [
    # Tokenizer
    "STOP_WORDS",
    "clean_text",
    "stem_word",
    "tokenize",
    # Similarity
    "TextSimilarityResult",
    "text_similarity",
    "tfidf_vectors",
    "cosine_similarity",
    "jaccard_similarity",
    "ngram_similarity",
    # Attribute fusion
    "AttributeSet",
    "compare_attributes",
]
