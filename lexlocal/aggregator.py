# lexlocal/aggregator.py

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, Field

from lexlocal.config import Config
from lexlocal.context import ContextAssembler
from lexlocal.errors import RetrievalError
from lexlocal.retriever import CandidateRetriever, JurisprudenceRetriever
from lexlocal.schemas import CandidateArticle, CaseMatch, KeywordSet
from lexlocal.store import LegalStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AggregatedContext(BaseModel):
    context: str = ""
    articles: List[CandidateArticle] = Field(default_factory=list)   # the ones in `context`
    matches: List[CaseMatch] = Field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.articles or self.matches)


class SourceAggregator:
    """
    "all" mode: statutes and case law side by side.

    Both searches are read-only and independent, so they run in two threads
    and are joined before anything is generated. A branch that blows up is
    logged and counts as empty; the other branch still answers.
    """

    def __init__(
        self,
        store: LegalStore,
        statutes: CandidateRetriever,
        cases: JurisprudenceRetriever,
        config: Config,
    ):
        self.store = store
        self.statutes = statutes
        self.cases = cases
        self.config = config

    @staticmethod
    def _guarded(name: str, fn: Callable[[], List[T]]) -> Tuple[List[T], Optional[Exception]]:
        try:
            return fn(), None
        except Exception as e:
            logger.exception("%s retrieval failed, continuing without it", name)
            return [], e

    def _statute_branch(self, keywords: KeywordSet, language: str) -> List[CandidateArticle]:
        return self.statutes.retrieve(keywords, language, limit=self.config.combined_statute_k)

    def _case_branch(self, question: str, keywords: KeywordSet, language: str) -> List[CaseMatch]:
        if not self.store.jurisprudence_available():
            return []
        return self.cases.retrieve(question, keywords, language, limit=self.config.combined_case_k)

    def gather(self, question: str, keywords: KeywordSet, language: str) -> AggregatedContext:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="lexlocal-retrieve") as pool:
            statute_future = pool.submit(
                self._guarded, "Statute", lambda: self._statute_branch(keywords, language)
            )
            case_future = pool.submit(
                self._guarded, "Jurisprudence", lambda: self._case_branch(question, keywords, language)
            )
            articles, statute_error = statute_future.result()
            matches, case_error = case_future.result()

        if statute_error is not None and case_error is not None:
            raise RetrievalError(
                f"statute search: {statute_error}; case law search: {case_error}"
            ) from statute_error

        logger.debug("Combined search: %d statute(s), %d case(s)", len(articles), len(matches))
        if not articles and not matches:
            return AggregatedContext()

        assembler = ContextAssembler(self.config, language)
        articles = articles[: self.config.combined_statute_k]
        matches = matches[: self.config.combined_case_k]
        context, kept = assembler.assemble(assembler.combined_passages(articles, matches))

        # passages are statutes first, then cases
        kept_articles = articles[:kept]
        kept_matches = matches[: max(kept - len(articles), 0)]
        return AggregatedContext(context=context, articles=kept_articles, matches=kept_matches)
