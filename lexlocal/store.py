# lexlocal/store.py

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple, Union

from lexlocal.schemas import LANGUAGE_IDS, CandidateArticle, CaseChunk, CourtCase

logger = logging.getLogger(__name__)


_ARTICLE_SELECT = """
    SELECT
        a.id AS id,
        a.article_title AS article_title,
        a.article_text AS article_text,
        a.content_numac AS numac,
        l.title AS law_title
"""

_LEGISLATION_JOIN = """
    LEFT JOIN legislation l
        ON l.numac = a.content_numac AND l.language_id = a.language_id
"""

_CASE_COLUMNS = "k.id, k.case_number, k.court, k.decision_date, k.url, k.language_id, k.full_text"


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _placeholders(n: int) -> str:
    return ", ".join("?" * n)


def _article_from_row(row: sqlite3.Row) -> CandidateArticle:
    return CandidateArticle(
        article_id=row["id"],
        numac=row["numac"] or "",
        article_title=row["article_title"],
        article_text=row["article_text"] or "",
        law_title=row["law_title"],
    )


def _case_from_row(row: Sequence) -> CourtCase:
    case_id, case_number, court, decision_date, url, language_id, full_text = row[:7]
    return CourtCase(
        case_id=case_id,
        case_number=case_number,
        court=court,
        decision_date=str(decision_date) if decision_date is not None else None,
        url=url,
        language_id=language_id,
        full_text=full_text,
    )


class LegalStore:
    """
    Read-only view of the local legal database (SQLite).

    Every method opens its own read-only connection, so one store can be
    shared by threads. Every value that comes from a question is bound
    as a parameter; only placeholder lists are built in Python.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(f"file:{self.db_path.as_posix()}?mode=ro", uri=True)
        conn.row_factory = sqlite3.Row
        # SQLite's lower() only folds ASCII; keywords arrive Python-lowercased
        conn.create_function("ulower", 1, _unicode_lower, deterministic=True)
        try:
            yield conn
        finally:
            conn.close()

    @staticmethod
    def language_id(language: str) -> int:
        return LANGUAGE_IDS.get(language, 1)

    # ------------------------------------------------------------------
    # introspection
    # ------------------------------------------------------------------
    def table_exists(self, name: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type IN ('table', 'view') AND name = ?",
                (name,),
            ).fetchone()
        return row is not None

    def ngram_index_populated(self) -> bool:
        if not self.table_exists("articles_text_ngrams"):
            return False
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM articles_text_ngrams LIMIT 1").fetchone()
        return row is not None

    def fulltext_index_exists(self) -> bool:
        return self.table_exists("articles_fts")

    def jurisprudence_available(self) -> bool:
        return self.table_exists("cases") and self.table_exists("case_chunks")

    def article_count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]

    # ------------------------------------------------------------------
    # statutes
    # ------------------------------------------------------------------
    def articles_by_ngrams(
        self,
        language: str,
        grams: Sequence[str],
        min_matches: int,
        literal_keywords: Sequence[str],
    ) -> List[CandidateArticle]:
        """
        Articles hitting at least `min_matches` distinct grams whose text also
        contains one of `literal_keywords`. Unranked, in row order.
        """
        if not grams or not literal_keywords:
            return []
        literal = " OR ".join("instr(ulower(a.article_text), ?) > 0" for _ in literal_keywords)
        sql = f"""
            {_ARTICLE_SELECT}
            FROM articles a
            JOIN (
                SELECT article_id
                FROM articles_text_ngrams
                WHERE gram IN ({_placeholders(len(grams))})
                GROUP BY article_id
                HAVING COUNT(DISTINCT gram) >= ?
            ) hits ON hits.article_id = a.id
            {_LEGISLATION_JOIN}
            WHERE a.language_id = ?
              AND ({literal})
            ORDER BY a.id
        """
        params = [*grams, min_matches, self.language_id(language), *literal_keywords]
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_article_from_row(r) for r in rows]

    def articles_by_fulltext(
        self,
        language: str,
        keywords: Sequence[str],
        limit: int,
    ) -> List[CandidateArticle]:
        """FTS5 MATCH with the keywords ORed, in the index's own rank order."""
        if not keywords:
            return []
        # keywords are letters/digits only; quoting keeps them literal terms
        match = " OR ".join(f'"{k}"' for k in keywords)
        sql = f"""
            {_ARTICLE_SELECT}
            FROM articles_fts
            JOIN articles a ON a.id = articles_fts.rowid
            {_LEGISLATION_JOIN}
            WHERE a.language_id = ?
              AND articles_fts MATCH ?
            ORDER BY articles_fts.rank
            LIMIT ?
        """
        with self._connect() as conn:
            rows = conn.execute(sql, (self.language_id(language), match, limit)).fetchall()
        return [_article_from_row(r) for r in rows]

    def articles_by_scan(self, language: str, keywords: Sequence[str]) -> List[CandidateArticle]:
        """Every article whose text, title or law title contains any keyword."""
        if not keywords:
            return []
        per_keyword = (
            "(instr(ulower(a.article_text), ?) > 0"
            " OR instr(ulower(a.article_title), ?) > 0"
            " OR instr(ulower(l.title), ?) > 0)"
        )
        condition = " OR ".join(per_keyword for _ in keywords)
        sql = f"""
            {_ARTICLE_SELECT}
            FROM articles a
            {_LEGISLATION_JOIN}
            WHERE a.language_id = ?
              AND ({condition})
            ORDER BY a.id
        """
        params: list = [self.language_id(language)]
        for k in keywords:
            params.extend([k, k, k])
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_article_from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # jurisprudence
    # ------------------------------------------------------------------
    def has_case_embeddings(self, language: str) -> bool:
        sql = """
            SELECT 1
            FROM case_chunks c
            JOIN cases k ON k.id = c.case_id
            WHERE k.language_id = ?
              AND c.embedding IS NOT NULL AND c.embedding != ''
            LIMIT 1
        """
        with self._connect() as conn:
            row = conn.execute(sql, (self.language_id(language),)).fetchone()
        return row is not None

    def embedded_chunks(self, language: str) -> List[Tuple[CaseChunk, CourtCase]]:
        """All chunks of the language that carry an embedding, with their case."""
        sql = f"""
            SELECT c.id, c.case_id, c.chunk_index, c.chunk_text, c.embedding, {_CASE_COLUMNS}
            FROM case_chunks c
            JOIN cases k ON k.id = c.case_id
            WHERE k.language_id = ?
              AND c.embedding IS NOT NULL AND c.embedding != ''
            ORDER BY c.id
        """
        with self._connect() as conn:
            rows = conn.execute(sql, (self.language_id(language),)).fetchall()

        out: List[Tuple[CaseChunk, CourtCase]] = []
        for row in rows:
            try:
                vector = [float(x) for x in json.loads(row[4])]
            except (TypeError, ValueError) as e:
                logger.warning("Skipping chunk %s with unreadable embedding: %s", row[0], e)
                continue
            chunk = CaseChunk(
                chunk_id=row[0],
                case_id=row[1],
                chunk_index=row[2] or 0,
                chunk_text=row[3] or "",
                embedding=vector,
            )
            out.append((chunk, _case_from_row(tuple(row)[5:])))
        return out

    def cases_by_text(self, language: str, keywords: Sequence[str], limit: int) -> List[CourtCase]:
        """Cases whose full text contains any keyword, newest decision first."""
        if not keywords:
            return []
        condition = " OR ".join("instr(ulower(k.full_text), ?) > 0" for _ in keywords)
        sql = f"""
            SELECT {_CASE_COLUMNS}
            FROM cases k
            WHERE k.language_id = ?
              AND ({condition})
            ORDER BY k.decision_date DESC, k.id
            LIMIT ?
        """
        params = [self.language_id(language), *keywords, limit]
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_case_from_row(tuple(r)) for r in rows]
