# lexlocal/context.py

import logging
from typing import List, Sequence, Tuple

from lexlocal.config import Config
from lexlocal.schemas import CandidateArticle, CaseMatch, ContextPassage, SourceType

logger = logging.getLogger(__name__)

PASSAGE_SEPARATOR = "\n\n---\n\n"
ELLIPSIS = "..."

TAGS = {
    SourceType.STATUTE: "[STATUTE]",
    SourceType.CASE_LAW: "[CASE LAW]",
}

_LABELS = {
    "nl": {"law": "Wet", "article": "Artikel", "case": "RECHTSPRAAK", "unknown_law": "Onbekende wet"},
    "fr": {"law": "Loi", "article": "Article", "case": "JURISPRUDENCE", "unknown_law": "Loi inconnue"},
}


def truncate(text: str, limit: int) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


class ContextAssembler:
    """
    Turns retrieved statutes / cases into the text block the model sees.

    Each passage is a citation header plus a truncated body. Passages are
    added whole, in rank order, until the next one would blow the character
    budget; a passage is never cut in half.
    """

    def __init__(self, config: Config, language: str = "nl"):
        self.config = config
        self.language = language if language in _LABELS else "nl"
        self.labels = _LABELS[self.language]

    def statute_passage(self, article: CandidateArticle, excerpt_chars: int, tagged: bool = False) -> ContextPassage:
        header = (
            f"{self.labels['law']}: {article.law_title or self.labels['unknown_law']}\n"
            f"{self.labels['article']}: {article.article_title or ''}\n"
            f"NUMAC: {article.numac}"
        )
        if tagged:
            header = f"{TAGS[SourceType.STATUTE]} {header}"
        return ContextPassage(
            source_type=SourceType.STATUTE,
            header=header,
            text=truncate(article.article_text, excerpt_chars),
        )

    def case_passage(self, match: CaseMatch, excerpt_chars: int, tagged: bool = False) -> ContextPassage:
        case = match.case
        header = f"[{self.labels['case']} {case.ecli}] {case.court or ''}, {case.decision_date or ''}"
        if tagged:
            header = f"{TAGS[SourceType.CASE_LAW]} {header}"
        return ContextPassage(
            source_type=SourceType.CASE_LAW,
            header=header,
            text=truncate(match.text, excerpt_chars),
        )

    def statute_passages(self, articles: Sequence[CandidateArticle]) -> List[ContextPassage]:
        # by default only the best article goes in: one focused article
        # gets better answers out of a small model than five loose ones
        top = articles[: self.config.statute_context_articles]
        return [self.statute_passage(a, self.config.statute_excerpt_chars) for a in top]

    def case_passages(self, matches: Sequence[CaseMatch]) -> List[ContextPassage]:
        top = matches[: self.config.jurisprudence_top_k]
        return [self.case_passage(m, self.config.case_excerpt_chars) for m in top]

    def combined_passages(
        self,
        articles: Sequence[CandidateArticle],
        matches: Sequence[CaseMatch],
    ) -> List[ContextPassage]:
        passages = [
            self.statute_passage(a, self.config.combined_statute_chars, tagged=True)
            for a in articles[: self.config.combined_statute_k]
        ]
        passages += [
            self.case_passage(m, self.config.combined_case_chars, tagged=True)
            for m in matches[: self.config.combined_case_k]
        ]
        return passages

    def assemble(self, passages: Sequence[ContextPassage]) -> Tuple[str, int]:
        """
        Join passages within the budget.
        Returns the block and how many passages made it in.
        """
        budget = self.config.context_char_budget
        parts: List[str] = []
        used = 0
        for passage in passages:
            rendered = passage.render()
            extra = len(rendered) + (len(PASSAGE_SEPARATOR) if parts else 0)
            if used + extra > budget:
                logger.debug("Context budget reached, dropping %d passage(s)", len(passages) - len(parts))
                break
            parts.append(rendered)
            used += extra
        return PASSAGE_SEPARATOR.join(parts), len(parts)
