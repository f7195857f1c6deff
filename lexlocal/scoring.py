# lexlocal/scoring.py

import re
from typing import Dict, List, Optional, Sequence, Tuple

from lexlocal.schemas import CandidateArticle

# a digit right after a space: "15 jaar", "binnen 30 dagen"
_SPACED_DIGIT = re.compile(r" \d")

TITLE_WEIGHT = 10
TEXT_WEIGHT = 5
LAW_TITLE_WEIGHT = 3
NUMBER_BOOST = 8
QUANTIFIER_BOOST = 6
DURATION_BOOST = 4
CERTAINTY_BOOST = 3

QUANTIFIER_TERMS: Dict[str, Tuple[str, ...]] = {
    "nl": ("aantal", "minimum", "maximum", "ten minste"),
    "fr": ("nombre", "minimum", "maximum", "au moins"),
}
DURATION_TERMS: Dict[str, Tuple[str, ...]] = {
    "nl": ("dagen",),
    "fr": ("jours",),
}
CERTAINTY_TERMS: Dict[str, Tuple[str, ...]] = {
    "nl": ("bedraagt", "vastgesteld", "bepaald"),
    "fr": ("s'élève", "fixé", "déterminé"),
}


def _contains_any(haystack: str, needles: Sequence[str]) -> bool:
    return any(n in haystack for n in needles)


class RelevanceScorer:
    """
    Sum of independent weighted yes/no checks over one article.

    Keyword hits count per keyword; the boosts count once. The boosts push
    articles that probably hold a literal, numeric answer above articles
    that are merely on topic.
    """

    def __init__(self, language: str = "nl"):
        self.language = language if language in QUANTIFIER_TERMS else "nl"

    def score(self, article: CandidateArticle, important_keywords: Sequence[str]) -> float:
        title = (article.article_title or "").lower()
        text = (article.article_text or "").lower()
        law_title = (article.law_title or "").lower()

        total = 0
        for kw in important_keywords:
            kw = kw.lower()
            if kw in title:
                total += TITLE_WEIGHT
            if kw in text:
                total += TEXT_WEIGHT
            if kw in law_title:
                total += LAW_TITLE_WEIGHT

        if _SPACED_DIGIT.search(text):
            total += NUMBER_BOOST
        if _contains_any(text, QUANTIFIER_TERMS[self.language]):
            total += QUANTIFIER_BOOST
        if _contains_any(text, DURATION_TERMS[self.language]):
            total += DURATION_BOOST
        if _contains_any(text, CERTAINTY_TERMS[self.language]):
            total += CERTAINTY_BOOST

        return float(total)

    def rank(
        self,
        articles: Sequence[CandidateArticle],
        important_keywords: Sequence[str],
        limit: Optional[int] = None,
    ) -> List[CandidateArticle]:
        """
        Score every article and sort best first.
        sorted() is stable, so equal scores keep retrieval order.
        """
        scored = [
            a.model_copy(update={"relevance_score": self.score(a, important_keywords)})
            for a in articles
        ]
        ranked = sorted(scored, key=lambda a: a.relevance_score, reverse=True)
        if limit is not None:
            ranked = ranked[:limit]
        return ranked
