# lexlocal/retriever.py

import logging
import math
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import faiss
import numpy as np

from lexlocal.config import Config
from lexlocal.keywords import build_ngrams
from lexlocal.ollama_client import OllamaClient
from lexlocal.schemas import CandidateArticle, CaseMatch, KeywordSet
from lexlocal.scoring import RelevanceScorer
from lexlocal.store import LegalStore

logger = logging.getLogger(__name__)


def cosine_similarity(vec_a: Optional[Sequence[float]], vec_b: Optional[Sequence[float]]) -> float:
    """
    dot(a, b) / (|a| * |b|), and 0.0 when either side is empty,
    zero-length or the dimensions disagree.
    """
    if vec_a is None or vec_b is None or len(vec_a) == 0 or len(vec_b) == 0:
        return 0.0
    if len(vec_a) != len(vec_b):
        return 0.0
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))


def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
    # zero rows stay zero, so their inner product with anything is 0
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    return np.divide(matrix, norms, out=np.zeros_like(matrix), where=norms > 0)


def top_k_cosine(query: Sequence[float], vectors: Sequence[Sequence[float]], k: int) -> List[Tuple[int, float]]:
    """
    Brute-force cosine search: (row index, similarity) for the k best rows.

    IndexFlatIP over unit vectors is exact cosine. It scans every row, which
    is fine for a few thousand chunks; swap in an IVF/HNSW index here once
    the corpus outgrows that.
    """
    if k <= 0 or not vectors:
        return []
    q = _normalize_rows(np.asarray([query], dtype=np.float32))
    m = _normalize_rows(np.asarray(vectors, dtype=np.float32))

    index = faiss.IndexFlatIP(m.shape[1])
    index.add(m)
    scores, idxs = index.search(q, min(k, m.shape[0]))

    out: List[Tuple[int, float]] = []
    for score, idx in zip(scores[0], idxs[0]):
        if idx < 0:
            continue
        out.append((int(idx), float(np.clip(score, -1.0, 1.0))))
    return out


class IndexKind(str, Enum):
    """Which statute search runs for a request. Picked once, never retried."""
    NGRAM = "ngram"
    FULL_TEXT = "full_text"
    SCAN = "scan"


class CandidateRetriever:
    """
    Statute search in three tiers:

    - NGRAM: trigram inverted index, 15% gram overlap + literal keyword check,
      ranked by RelevanceScorer
    - FULL_TEXT: FTS5 MATCH on the important keywords, FTS rank order
    - SCAN: substring scan of the whole language, ranked by RelevanceScorer

    A tier only runs when the index of the tier above it does not exist.
    An empty result from the chosen tier is the answer; nothing falls through.
    """

    def __init__(self, store: LegalStore, config: Config):
        self.store = store
        self.config = config

    def select_index_kind(self) -> IndexKind:
        if self.store.ngram_index_populated():
            return IndexKind.NGRAM
        if self.store.fulltext_index_exists():
            return IndexKind.FULL_TEXT
        return IndexKind.SCAN

    def retrieve(
        self,
        keywords: KeywordSet,
        language: str,
        limit: Optional[int] = None,
    ) -> List[CandidateArticle]:
        if not keywords.actionable:
            # nothing specific enough to search for; don't touch the store
            return []

        limit = limit or self.config.max_context_articles
        scorer = RelevanceScorer(language)
        kind = self.select_index_kind()
        logger.debug("Statute search tier: %s", kind.value)

        if kind is IndexKind.NGRAM:
            return self._search_ngrams(keywords.important, language, scorer, limit)
        if kind is IndexKind.FULL_TEXT:
            return self._search_fulltext(keywords.important, language, scorer, limit)
        return self._search_scan(keywords.important, language, scorer, limit)

    def _search_ngrams(
        self,
        important: List[str],
        language: str,
        scorer: RelevanceScorer,
        limit: int,
    ) -> List[CandidateArticle]:
        top = important[: self.config.ngram_keyword_count]

        grams: List[str] = []
        for keyword in top:
            for g in build_ngrams(keyword):
                if g not in grams:
                    grams.append(g)

        min_matches = max(math.ceil(len(grams) * self.config.ngram_min_match_ratio), 1)
        survivors = self.store.articles_by_ngrams(language, grams, min_matches, top)
        logger.debug("Trigram tier: %d grams, need %d, %d survivors", len(grams), min_matches, len(survivors))
        return scorer.rank(survivors, important, limit=limit)

    def _search_fulltext(
        self,
        important: List[str],
        language: str,
        scorer: RelevanceScorer,
        limit: int,
    ) -> List[CandidateArticle]:
        rows = self.store.articles_by_fulltext(language, important, limit)
        # keep the FTS order, the score is informational here
        return [
            a.model_copy(update={"relevance_score": scorer.score(a, important)})
            for a in rows
        ]

    def _search_scan(
        self,
        important: List[str],
        language: str,
        scorer: RelevanceScorer,
        limit: int,
    ) -> List[CandidateArticle]:
        rows = self.store.articles_by_scan(language, important)
        return scorer.rank(rows, important, limit=limit)


class JurisprudenceRetriever:
    """
    Case law search.

    1. no embedded chunk in this language -> go to 3
    2. embed the question, cosine against every embedded chunk, keep the best
    3. nothing usable from 2 -> keyword search over whole case text,
       newest decision first

    OllamaError from the embedding call propagates.
    """

    def __init__(self, store: LegalStore, client: OllamaClient, config: Config):
        self.store = store
        self.client = client
        self.config = config

    def retrieve(
        self,
        question: str,
        keywords: KeywordSet,
        language: str,
        limit: Optional[int] = None,
    ) -> List[CaseMatch]:
        limit = limit or self.config.jurisprudence_top_k

        matches: List[CaseMatch] = []
        if self.store.has_case_embeddings(language):
            matches = self._by_similarity(question, language, limit)

        if not matches:
            matches = self._by_text(keywords, language, limit)
        return matches

    def _by_similarity(self, question: str, language: str, limit: int) -> List[CaseMatch]:
        # a failed embedding call ends the request, it is not "no embeddings"
        query_vec = self.client.embed(question[: self.config.embedding_input_chars])
        if not query_vec:
            return []

        pairs = [
            (chunk, case)
            for chunk, case in self.store.embedded_chunks(language)
            if chunk.embedding and len(chunk.embedding) == len(query_vec)
        ]
        if not pairs:
            logger.warning("No chunk embedding matches query dimension %d", len(query_vec))
            return []

        best = top_k_cosine(query_vec, [chunk.embedding for chunk, _ in pairs], limit)
        return [
            CaseMatch(case=pairs[i][1], text=pairs[i][0].chunk_text, similarity=score)
            for i, score in best
        ]

    def _by_text(self, keywords: KeywordSet, language: str, limit: int) -> List[CaseMatch]:
        cases = self.store.cases_by_text(language, keywords.all, limit)
        return [CaseMatch(case=c, text=c.full_text or "") for c in cases]
