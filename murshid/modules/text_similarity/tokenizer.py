# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Text Normalisation and Tokenisation
English-only light processing for short report fields:

  clean_text   digits removed, punctuation → space, lowercase, single spaces
  tokenize     whitespace split → drop 1-char tokens → drop stop-words
               → light suffix stemming → drop 1-char stems
  char_ngrams  overlapping character windows over the cleaned string
"""

from __future__ import annotations

import re

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
    "be", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "can", "this", "that", "these",
    "those", "i", "you", "he", "she", "it", "we", "they", "what", "which",
    "who", "when", "where", "why", "how", "all", "each", "every", "both",
    "few", "more", "most", "other", "some", "such", "no", "not", "only",
    "own", "same", "so", "than", "too", "very", "just", "about", "into",
    "through", "during", "before", "after", "above", "below", "between",
    "under", "again", "further", "then", "once",
})

# Checked in order; the first suffix that fits is stripped
SUFFIXES: tuple[str, ...] = (
    "ing", "ed", "es", "s", "ly", "er", "est", "tion", "ness", "ment",
)

_MIN_STEM_INPUT_LEN = 4

_DIGITS_RE = re.compile(r"[0-9]")
_PUNCT_RE = re.compile(r"[.,;:?!'\"()\-]")
_SPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    text = _DIGITS_RE.sub("", text)
    text = _PUNCT_RE.sub(" ", text)
    return _SPACE_RE.sub(" ", text.lower()).strip()


def stem_word(word: str) -> str:
    """
    Strip at most one common suffix.
    Words shorter than 4 characters are returned unchanged, and a suffix is
    only removed when the word is longer than the suffix plus two characters.
    """
    if len(word) < _MIN_STEM_INPUT_LEN:
        return word
    for suffix in SUFFIXES:
        if word.endswith(suffix) and len(word) > len(suffix) + 2:
            return word[: -len(suffix)]
    return word


def tokenize(text: str) -> list[str]:
    words = [w for w in clean_text(text).split(" ") if len(w) > 1]
    stems = [stem_word(w) for w in words if w not in STOP_WORDS]
    return [s for s in stems if len(s) > 1]


def char_ngrams(text: str, n: int = 2) -> set[str]:
    cleaned = clean_text(text)
    return {cleaned[i:i + n] for i in range(len(cleaned) - n + 1)}
