"""In-memory TF-IDF index with cosine-similarity ranking.

Weights use a smoothed IDF, ``ln((N + 1) / (df + 1))``, so they are never
negative and stay defined for terms that occur in every document.

Document magnitudes depend on IDF, and IDF changes whenever any document is
added or removed. Mutations therefore only mark the index dirty; the first
query afterwards recomputes every magnitude in one pass. This is the only
state carried between calls besides the term tables themselves.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Mapping

import numpy as np

from .tokenize import tokenize


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredPath:
    path: str
    score: float

    def to_dict(self) -> dict[str, object]:
        return {"path": self.path, "score": self.score}


@dataclass
class DocumentVector:
    path: str
    term_freqs: Counter[str]
    total_terms: int
    magnitude: float = 0.0


class TfIdfIndex:
    def __init__(self) -> None:
        self._documents: dict[str, DocumentVector] = {}
        self._doc_freqs: Counter[str] = Counter()
        self._dirty = True

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, path: object) -> bool:
        return path in self._documents

    @property
    def total_documents(self) -> int:
        return len(self._documents)

    def document_frequency(self, term: str) -> int:
        return self._doc_freqs.get(term, 0)

    def tokenize(self, text: str) -> list[str]:
        return tokenize(text)

    def build_index(self, documents: Mapping[str, str] | Iterable[tuple[str, str]]) -> None:
        items = documents.items() if isinstance(documents, Mapping) else documents
        self._documents.clear()
        self._doc_freqs.clear()
        for path, content in items:
            self._add(path, content)
        self._dirty = True
        logger.debug("Indexed %d documents (%d distinct terms)", len(self._documents), len(self._doc_freqs))

    def update_document(self, path: str, content: str) -> None:
        self._add(path, content)
        self._dirty = True

    def remove_document(self, path: str) -> None:
        self._remove(path)
        self._dirty = True

    def search(self, query: str, limit: int = 10) -> list[ScoredPath]:
        """Rank documents by cosine similarity to a free-text query."""
        tokens = tokenize(query)
        if not tokens:
            return []

        self._ensure_magnitudes()

        query_freqs = Counter(tokens)
        query_weights = {t: self._weight(t, c, len(tokens)) for t, c in query_freqs.items()}
        query_mag = _norm(query_weights.values())
        if query_mag == 0:
            return []

        scored: list[tuple[str, float]] = []
        for path, doc in self._documents.items():
            if doc.magnitude == 0:
                continue
            dot = 0.0
            for term, qw in query_weights.items():
                freq = doc.term_freqs.get(term)
                if freq:
                    dot += qw * self._weight(term, freq, doc.total_terms)
            scored.append((path, dot / (query_mag * doc.magnitude)))

        return _rank(scored, limit)

    def find_similar(self, path: str, limit: int = 10) -> list[ScoredPath]:
        """Rank the other documents by cosine similarity to ``path``."""
        doc = self._documents.get(path)
        if doc is None:
            return []

        self._ensure_magnitudes()
        if doc.magnitude == 0:
            return []

        scored: list[tuple[str, float]] = []
        for other_path, other in self._documents.items():
            if other_path == path or other.magnitude == 0:
                continue
            scored.append((other_path, self._dot(doc, other) / (doc.magnitude * other.magnitude)))

        return _rank(scored, limit)

    def _add(self, path: str, content: str) -> None:
        # A path seen twice replaces its earlier entry.
        self._remove(path)
        tokens = tokenize(content)
        term_freqs = Counter(tokens)
        # Document frequency counts documents, not occurrences.
        self._doc_freqs.update(term_freqs.keys())
        self._documents[path] = DocumentVector(path=path, term_freqs=term_freqs, total_terms=len(tokens))

    def _remove(self, path: str) -> None:
        doc = self._documents.pop(path, None)
        if doc is None:
            return
        for term in doc.term_freqs:
            n = self._doc_freqs[term] - 1
            if n <= 0:
                del self._doc_freqs[term]
            else:
                self._doc_freqs[term] = n

    def _weight(self, term: str, freq: int, total_terms: int) -> float:
        tf = freq / total_terms
        idf = math.log((len(self._documents) + 1) / (self._doc_freqs.get(term, 0) + 1))
        return tf * idf

    def _dot(self, a: DocumentVector, b: DocumentVector) -> float:
        # Walk the shorter vector.
        small, large = (a, b) if len(a.term_freqs) <= len(b.term_freqs) else (b, a)
        dot = 0.0
        for term, freq in small.term_freqs.items():
            other = large.term_freqs.get(term)
            if other:
                dot += self._weight(term, freq, small.total_terms) * self._weight(term, other, large.total_terms)
        return dot

    def _ensure_magnitudes(self) -> None:
        if not self._dirty:
            return
        for doc in self._documents.values():
            doc.magnitude = _norm(self._weight(t, c, doc.total_terms) for t, c in doc.term_freqs.items())
        self._dirty = False


def _norm(weights: Iterable[float]) -> float:
    arr = np.fromiter(weights, dtype=np.float64)
    if arr.size == 0:
        return 0.0
    return float(np.linalg.norm(arr))


def _rank(scored: list[tuple[str, float]], limit: int) -> list[ScoredPath]:
    out: list[ScoredPath] = []
    for path, score in scored:
        # Float error can push a perfect match a hair above 1.
        rounded = min(round(score, 4), 1.0)
        if rounded > 0:
            out.append(ScoredPath(path=path, score=rounded))
    out.sort(key=lambda r: r.score, reverse=True)
    return out[: max(0, int(limit))]
