# lexlocal/keywords.py

import logging
import re
from typing import Dict, FrozenSet, List

from lexlocal.schemas import KeywordSet

logger = logging.getLogger(__name__)

# letters and digits survive, everything else becomes a space.
# keeps FTS operators, quotes and LIKE wildcards out of the keywords.
_NON_WORD = re.compile(r"[^\w\s]|_", re.UNICODE)

MIN_KEYWORD_LENGTH = 3
IMPORTANT_KEYWORD_LENGTH = 6
MAX_KEYWORDS = 7

STOPWORDS: Dict[str, FrozenSet[str]] = {
    "nl": frozenset("""
        de het een is zijn wat hoe wie waar wanneer
        voor van op in aan met als bij naar
        kan moet mag ik heb hebben
        die dat dit deze welke wordt worden werd
        niet geen ook nog maar dan
    """.split()),
    "fr": frozenset("""
        le la les un une des est sont que qui quoi quel quelle quels quelles
        comment pour par sur dans avec comme chez vers
        peut doit dois puis ai avoir suis etre être
        ce cette ces du au aux et ou ne pas plus
    """.split()),
}


def build_ngrams(text: str, gram_size: int = 3) -> List[str]:
    """
    All overlapping substrings of length gram_size, lowercased,
    first-seen order, no duplicates.
    """
    s = (text or "").lower()
    if len(s) < gram_size:
        return []
    grams: List[str] = []
    seen = set()
    for i in range(len(s) - gram_size + 1):
        g = s[i:i + gram_size]
        if g not in seen:
            seen.add(g)
            grams.append(g)
    return grams


class KeywordExtractor:
    """
    Question -> ranked keyword set.

    No stemming, no synonyms: the keywords are matched literally against
    the store, so what comes out here is exactly what gets searched.
    """

    def __init__(self, max_keywords: int = MAX_KEYWORDS):
        self.max_keywords = max_keywords

    def extract(self, question: str, language: str = "nl") -> KeywordSet:
        safe_text = _NON_WORD.sub(" ", question or "")
        stopwords = STOPWORDS.get(language, STOPWORDS["nl"])

        keywords: List[str] = []
        for token in safe_text.lower().split():
            if len(token) < MIN_KEYWORD_LENGTH or token in stopwords:
                continue
            if token in keywords:
                continue
            keywords.append(token)
            if len(keywords) >= self.max_keywords:
                break

        important = [k for k in keywords if len(k) >= IMPORTANT_KEYWORD_LENGTH]
        logger.debug("Keywords: %s | important: %s", keywords, important)
        return KeywordSet(all=keywords, important=important)
