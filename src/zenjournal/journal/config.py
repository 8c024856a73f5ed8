"""Configuration dataclasses for journal search.

Pure data containers with sensible defaults; override from the ``search``
section of the YAML config or constructor args.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SearchConfig:
    """Settings for ranked (TF-IDF) search.

    Attributes:
        max_results: Maximum entries to return per query.
        tfidf_max_features: Vocabulary cap for the vectorizer.
        tfidf_ngram_range: N-gram range (min, max).
        tfidf_min_df: Minimum document frequency. A personal journal is a
            small corpus, so terms seen once still count.
        tfidf_max_df: Maximum document frequency ratio.
    """

    max_results: int = 25
    tfidf_max_features: int = 10000
    tfidf_ngram_range: tuple[int, int] = (1, 2)
    tfidf_min_df: int = 1
    tfidf_max_df: float = 1.0
