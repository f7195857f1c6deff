# lexlocal/formatter.py

from typing import List, Optional, Sequence
from urllib.parse import quote

from lexlocal.config import Config
from lexlocal.schemas import (
    AskResponse,
    CandidateArticle,
    CaseMatch,
    ErrorResponse,
    SourceCitation,
    SourceType,
)

SERVICE_UNAVAILABLE = "service unavailable"
INTERNAL_ERROR = "internal error"


def law_url(numac: str) -> str:
    return f"/laws/{quote(numac, safe='')}"


def case_url(case_number: str) -> str:
    return f"/jurisprudence/{quote(case_number, safe=':.')}"


class ResponseFormatter:
    """
    Same answer shape whatever pipeline ran.

    Sources only carry public identifiers (NUMAC, ECLI) and links built from
    them; store row ids never leave the process.
    """

    def __init__(self, config: Config):
        self.config = config

    def statute_sources(self, articles: Sequence[CandidateArticle]) -> List[SourceCitation]:
        return [
            SourceCitation(
                type=SourceType.STATUTE,
                title=a.article_title or a.law_title or f"NUMAC {a.numac}",
                numac=a.numac,
                law_title=a.law_title,
                url=law_url(a.numac),
                relevance=a.relevance_score,
            )
            for a in articles
        ]

    def case_sources(self, matches: Sequence[CaseMatch]) -> List[SourceCitation]:
        """One citation per decision; the first (best) chunk of a case wins."""
        sources: List[SourceCitation] = []
        seen = set()
        for m in matches:
            if m.case.ecli in seen:
                continue
            seen.add(m.case.ecli)
            sources.append(
                SourceCitation(
                    type=SourceType.CASE_LAW,
                    title=m.case.ecli,
                    court=m.case.court,
                    date=m.case.decision_date,
                    url=m.case.url or case_url(m.case.ecli),
                    relevance=m.similarity,
                )
            )
        return sources

    def answer(
        self,
        text: str,
        sources: List[SourceCitation],
        language: str,
        elapsed: float,
    ) -> AskResponse:
        return AskResponse(
            answer=text,
            sources=sources,
            language=language,
            response_time=round(elapsed, 2),
            model=self.config.model,
        )

    def canned(self, text: str, language: str, elapsed: float) -> AskResponse:
        """Fixed answer with no sources (nothing found, feature missing)."""
        return self.answer(text, [], language, elapsed)

    @staticmethod
    def error(message: str, details: Optional[str] = None) -> ErrorResponse:
        return ErrorResponse(error=message, details=details)
