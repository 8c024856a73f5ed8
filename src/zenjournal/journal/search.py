"""Entry search for the sidebar.

:func:`filter_entries` is the everyday filter: a case-insensitive substring
over each entry's text and tags, optionally narrowed to one tag.
:class:`EntrySearcher` adds relevance-ranked TF-IDF search and needs
scikit-learn (``pip install zenjournal[search]``).
"""

from __future__ import annotations

from loguru import logger

from .config import SearchConfig
from .models import Entry, EntrySet, SearchFilters


def _newest_first(entries: list[Entry]) -> list[Entry]:
    return sorted(entries, key=lambda e: e.date, reverse=True)


def matches(entry: Entry, filters: SearchFilters) -> bool:
    if filters.tag and filters.tag not in entry.tags:
        return False
    query = filters.query.strip().lower()
    if not query:
        return True
    if query in entry.plain_text.lower():
        return True
    return any(query in tag.lower() for tag in entry.tags)


def filter_entries(entries: EntrySet, filters: SearchFilters | None = None) -> list[Entry]:
    """Entries matching *filters*, newest date first."""
    filters = filters or SearchFilters()
    return _newest_first([e for e in entries.values() if matches(e, filters)])


def all_tags(entries: EntrySet) -> list[str]:
    """Sorted distinct tags across all entries."""
    return sorted({tag for entry in entries.values() for tag in entry.tags})


def _sklearn_tfidf():
    try:
        from sklearn.feature_extraction.text import TfidfVectorizer
        from sklearn.metrics.pairwise import linear_kernel
    except ImportError as e:
        raise ImportError("Ranked search needs scikit-learn: pip install 'zenjournal[search]'") from e
    return TfidfVectorizer, linear_kernel


class EntrySearcher:
    """Relevance-ranked search over the journal.

    Call :meth:`refresh` with the current entries whenever the sidebar opens;
    the vectorizer is refit only when an entry was added, removed or edited
    since the last call.

        searcher = EntrySearcher()
        searcher.refresh(session.entries)
        hits = searcher.search("beach trip", tag="travel")
    """

    def __init__(self, config: SearchConfig | None = None):
        self.config = config or SearchConfig()
        self._fingerprint: frozenset[tuple[str, int]] = frozenset()
        self._indexed: list[Entry] = []
        self._vectorizer = None
        self._matrix = None

    @property
    def is_built(self) -> bool:
        return self._matrix is not None

    def refresh(self, entries: EntrySet) -> bool:
        """Re-index *entries* if they changed; returns True when a rebuild happened.

        Blank entries are left out; a journal with nothing written leaves the
        searcher unbuilt.
        """
        fingerprint = frozenset((e.id, e.updated_at) for e in entries.values())
        if fingerprint == self._fingerprint:
            return False
        self._fingerprint = fingerprint
        self._indexed = _newest_first([e for e in entries.values() if e.plain_text.strip()])
        if not self._indexed:
            self._vectorizer = self._matrix = None
            return True

        TfidfVectorizer, _ = _sklearn_tfidf()
        cfg = self.config
        self._vectorizer = TfidfVectorizer(
            max_features=cfg.tfidf_max_features,
            ngram_range=cfg.tfidf_ngram_range,
            min_df=cfg.tfidf_min_df,
            max_df=cfg.tfidf_max_df,
            sublinear_tf=True,
        )
        # tags count as words of the entry
        self._matrix = self._vectorizer.fit_transform([" ".join([e.plain_text, *e.tags]) for e in self._indexed])
        logger.debug(f"Search index rebuilt over {len(self._indexed)} entries")
        return True

    def search(self, query: str, top_k: int | None = None, *, tag: str | None = None) -> list[tuple[Entry, float]]:
        """``(entry, score)`` pairs, best first. Entries scoring zero are omitted."""
        if not self.is_built or not query.strip():
            return []
        _, linear_kernel = _sklearn_tfidf()
        # TfidfVectorizer rows are L2-normalised, so the dot product is the cosine
        scores = linear_kernel(self._vectorizer.transform([query]), self._matrix)[0]
        ranked = sorted(
            ((entry, float(score)) for entry, score in zip(self._indexed, scores) if score > 0),
            key=lambda pair: pair[1],
            reverse=True,
        )
        if tag:
            ranked = [(entry, score) for entry, score in ranked if tag in entry.tags]
        return ranked[: top_k or self.config.max_results]
