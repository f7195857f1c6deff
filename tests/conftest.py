"""
Shared fixtures: a small seeded SQLite store and a mocked model service.
"""

import json
import sqlite3
from unittest.mock import Mock

import pytest

from lexlocal.build_index import build_fulltext_index, build_ngram_index, fts5_available, init_schema
from lexlocal.config import Config
from lexlocal.ollama_client import OllamaClient
from lexlocal.store import LegalStore


LEGISLATION = [
    # numac, language_id, title
    ("1971031602", 1, "Arbeidswet van 16 maart 1971"),
    ("1971031602", 2, "Loi sur le travail du 16 mars 1971"),
    ("1975120101", 1, "Wegcode"),
]

ARTICLES = [
    # id, language_id, numac, title, text
    (1, 1, "1971031602", "Art. 3",
     "Kinderen jonger dan 15 jaar mogen niet worden aangeworven. "
     "De minimum leeftijd om arbeid te verrichten bedraagt 15 jaar."),
    (2, 1, "1975120101", "Art. 12",
     "De bestuurder moet zijn voertuig op de rechterzijde van de rijbaan houden."),
    (3, 1, "1971031602", "Art. 9",
     "Het minimum loon wordt door de Koning geregeld."),
    (4, 2, "1971031602", "Art. 3",
     "Les enfants de moins de 15 ans ne peuvent pas être mis au travail. "
     "L'âge minimum est fixé à 15 ans."),
]

CASES = [
    # id, case_number, court, decision_date, url, language_id, full_text
    (1, "ECLI:BE:CASS:2019:ARR.123", "Hof van Cassatie", "2019-03-15",
     "https://juportal.be/content/ECLI:BE:CASS:2019:ARR.123", 1,
     "De arbeidsovereenkomst moet schriftelijk en in klare bewoordingen zijn opgesteld."),
    (2, "ECLI:BE:GHCC:2020:ARR.045", "Grondwettelijk Hof", "2020-06-01", None, 1,
     "De opzegging van de arbeidsovereenkomst door de werkgever moet worden gemotiveerd."),
    (3, "ECLI:BE:CASS:2018:ARR.777", "Cour de cassation", "2018-01-10", None, 2,
     "Le contrat de travail doit être constaté par écrit."),
]

CHUNKS = [
    # id, case_id, chunk_index, text, embedding
    (1, 1, 0, "De arbeidsovereenkomst moet schriftelijk en in klare bewoordingen zijn opgesteld.", [1.0, 0.0, 0.0]),
    (2, 1, 1, "Het middel kan niet worden aangenomen.", [0.0, 1.0, 0.0]),
    (3, 2, 0, "De opzegging van de arbeidsovereenkomst moet worden gemotiveerd.", [0.9, 0.1, 0.0]),
    (4, 3, 0, "Le contrat de travail doit être constaté par écrit.", [1.0, 0.0, 0.0]),
]


def seed_store(
    db_path,
    ngrams: bool = False,
    fts: bool = False,
    cases: bool = True,
    embeddings: bool = True,
):
    """Write a small legal database to db_path and return its LegalStore."""
    conn = sqlite3.connect(db_path)
    try:
        init_schema(conn, with_ngram_table=ngrams)
        conn.executemany("INSERT INTO legislation (numac, language_id, title) VALUES (?, ?, ?)", LEGISLATION)
        conn.executemany(
            "INSERT INTO articles (id, language_id, content_numac, article_title, article_text) VALUES (?, ?, ?, ?, ?)",
            ARTICLES,
        )
        if cases:
            conn.executemany(
                "INSERT INTO cases (id, case_number, court, decision_date, url, language_id, full_text) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                CASES,
            )
            conn.executemany(
                "INSERT INTO case_chunks (id, case_id, chunk_index, chunk_text, embedding) VALUES (?, ?, ?, ?, ?)",
                [(i, c, n, t, json.dumps(e) if embeddings else None) for i, c, n, t, e in CHUNKS],
            )
        else:
            conn.execute("DROP TABLE case_chunks")
            conn.execute("DROP TABLE cases")
        conn.commit()
        if ngrams:
            build_ngram_index(conn)
        if fts:
            build_fulltext_index(conn)
    finally:
        conn.close()
    return LegalStore(db_path)


def has_fts5() -> bool:
    conn = sqlite3.connect(":memory:")
    try:
        return fts5_available(conn)
    finally:
        conn.close()


requires_fts5 = pytest.mark.skipif(not has_fts5(), reason="SQLite built without FTS5")


@pytest.fixture
def config(tmp_path):
    return Config(db_path=tmp_path / "legal.db", model="test-model")


@pytest.fixture
def scan_store(config):
    """No trigram table, no FTS: the retriever has to scan."""
    return seed_store(config.db_path)


@pytest.fixture
def ngram_store(config):
    return seed_store(config.db_path, ngrams=True)


@pytest.fixture
def mock_client():
    """Model service that is up, has test-model, answers 'Antwoord.' and embeds to [1, 0, 0]."""
    client = Mock(spec=OllamaClient)
    client.is_alive.return_value = True
    client.generate.return_value = {"response": "Antwoord. Bron: Art. 3, NUMAC 1971031602."}
    client.embed.return_value = [1.0, 0.0, 0.0]
    client.list_models.return_value = ["test-model:latest", "nomic-embed-text:latest"]
    return client
