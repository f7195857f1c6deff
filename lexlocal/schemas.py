# lexlocal/schemas.py

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


LANGUAGE_IDS = {"nl": 1, "fr": 2}


class Source(str, Enum):
    LEGISLATION = "legislation"
    JURISPRUDENCE = "jurisprudence"
    ALL = "all"


class SourceType(str, Enum):
    STATUTE = "statute"
    CASE_LAW = "case_law"


class AskRequest(BaseModel):
    question: str                 # user question, Dutch or French
    language: str = "nl"          # "nl" | "fr", checked by the pipeline
    source: Source = Source.LEGISLATION

    @field_validator("source", mode="before")
    @classmethod
    def default_unknown_source(cls, value):
        # anything we don't recognise searches legislation
        try:
            return Source(value)
        except ValueError:
            return Source.LEGISLATION


class KeywordSet(BaseModel):
    all: List[str] = Field(default_factory=list)        # ordered, deduplicated, at most 7
    important: List[str] = Field(default_factory=list)  # subset with len >= 6

    @property
    def actionable(self) -> bool:
        return bool(self.important)


class CandidateArticle(BaseModel):
    article_id: int               # store row id, never shown to users
    numac: str                    # public identifier of the parent law
    article_title: Optional[str] = None
    article_text: str = ""
    law_title: Optional[str] = None
    relevance_score: float = 0.0


class CourtCase(BaseModel):
    case_id: int
    case_number: str              # ECLI or ARR: number
    court: Optional[str] = None
    decision_date: Optional[str] = None
    url: Optional[str] = None
    language_id: int = 1
    full_text: Optional[str] = None

    @property
    def ecli(self) -> str:
        return self.case_number


class CaseChunk(BaseModel):
    chunk_id: int
    case_id: int
    chunk_index: int = 0
    chunk_text: str
    embedding: Optional[List[float]] = None


class CaseMatch(BaseModel):
    """A court case picked by the jurisprudence retriever, with the text to quote."""
    case: CourtCase
    text: str
    similarity: Optional[float] = None   # only set on the vector path


class ContextPassage(BaseModel):
    source_type: SourceType
    header: str                   # citation lines: law/article/NUMAC or court/date/ECLI
    text: str                     # already truncated body

    def render(self) -> str:
        return f"{self.header}\n\n{self.text}"


class SourceCitation(BaseModel):
    type: SourceType
    title: str
    url: str
    numac: Optional[str] = None
    law_title: Optional[str] = None
    court: Optional[str] = None
    date: Optional[str] = None
    relevance: Optional[float] = None


class AskResponse(BaseModel):
    answer: str
    sources: List[SourceCitation]
    language: str
    response_time: float          # seconds
    model: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
