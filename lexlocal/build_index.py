# lexlocal/build_index.py

import argparse
import json
import sqlite3
from pathlib import Path
from typing import Optional

from lexlocal.config import CONFIG, Config
from lexlocal.keywords import build_ngrams
from lexlocal.ollama_client import OllamaClient


SCHEMA = """
CREATE TABLE IF NOT EXISTS legislation (
    id INTEGER PRIMARY KEY,
    numac TEXT NOT NULL,
    language_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    UNIQUE (numac, language_id)
);
CREATE TABLE IF NOT EXISTS articles (
    id INTEGER PRIMARY KEY,
    language_id INTEGER NOT NULL,
    content_numac TEXT NOT NULL,
    article_title TEXT,
    article_text TEXT
);
CREATE INDEX IF NOT EXISTS index_articles_on_language_id ON articles (language_id);
CREATE TABLE IF NOT EXISTS articles_text_ngrams (
    gram TEXT NOT NULL,
    article_id INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS index_ngrams_on_gram ON articles_text_ngrams (gram);
CREATE TABLE IF NOT EXISTS cases (
    id INTEGER PRIMARY KEY,
    case_number TEXT NOT NULL,
    court TEXT,
    decision_date TEXT,
    url TEXT,
    language_id INTEGER NOT NULL,
    full_text TEXT
);
CREATE TABLE IF NOT EXISTS case_chunks (
    id INTEGER PRIMARY KEY,
    case_id INTEGER NOT NULL REFERENCES cases (id),
    chunk_index INTEGER NOT NULL,
    chunk_text TEXT NOT NULL,
    embedding TEXT
);
"""


def init_schema(conn: sqlite3.Connection, with_ngram_table: bool = True) -> None:
    """
    Create the store tables. The trigram table is optional so a store can
    be left without it (the retriever then uses FTS5 or a scan).
    """
    statements = [s for s in SCHEMA.split(";") if s.strip()]
    for stmt in statements:
        if not with_ngram_table and "articles_text_ngrams" in stmt:
            continue
        conn.execute(stmt)
    conn.commit()


def build_ngram_index(conn: sqlite3.Connection) -> int:
    """
    Rebuild articles_text_ngrams: one row per distinct trigram per article.
    Returns the number of rows written.
    """
    conn.execute(
        "CREATE TABLE IF NOT EXISTS articles_text_ngrams (gram TEXT NOT NULL, article_id INTEGER NOT NULL)"
    )
    conn.execute("CREATE INDEX IF NOT EXISTS index_ngrams_on_gram ON articles_text_ngrams (gram)")
    conn.execute("DELETE FROM articles_text_ngrams")

    written = 0
    rows = conn.execute("SELECT id, article_text FROM articles").fetchall()
    for article_id, text in rows:
        grams = build_ngrams(text or "")
        conn.executemany(
            "INSERT INTO articles_text_ngrams (gram, article_id) VALUES (?, ?)",
            [(g, article_id) for g in grams],
        )
        written += len(grams)
    conn.commit()
    return written


def fts5_available(conn: sqlite3.Connection) -> bool:
    try:
        conn.execute("CREATE VIRTUAL TABLE temp._fts5_probe USING fts5(x)")
        conn.execute("DROP TABLE temp._fts5_probe")
    except sqlite3.OperationalError:
        return False
    return True


def build_fulltext_index(conn: sqlite3.Connection) -> bool:
    """
    (Re)create articles_fts as an external-content FTS5 table over articles.
    Returns False when this SQLite has no FTS5.
    """
    if not fts5_available(conn):
        return False
    conn.execute("DROP TABLE IF EXISTS articles_fts")
    conn.execute(
        "CREATE VIRTUAL TABLE articles_fts USING fts5("
        "article_title, article_text, content='articles', content_rowid='id')"
    )
    conn.execute("INSERT INTO articles_fts (articles_fts) VALUES ('rebuild')")
    conn.commit()
    return True


def embed_case_chunks(
    conn: sqlite3.Connection,
    client: OllamaClient,
    config: Config,
    only_missing: bool = True,
) -> int:
    """
    Fill case_chunks.embedding through the local embedding model.
    Returns the number of chunks embedded.
    """
    sql = "SELECT id, chunk_text FROM case_chunks"
    if only_missing:
        sql += " WHERE embedding IS NULL OR embedding = ''"
    rows = conn.execute(sql).fetchall()

    done = 0
    for chunk_id, text in rows:
        vector = client.embed((text or "")[: config.embedding_input_chars])
        conn.execute("UPDATE case_chunks SET embedding = ? WHERE id = ?", (json.dumps(vector), chunk_id))
        done += 1
        if done % 100 == 0:
            conn.commit()
            print(f"   embedded {done}/{len(rows)} chunks")
    conn.commit()
    return done


def main(argv: Optional[list] = None):
    """
    1. Make sure the tables exist
    2. Rebuild the trigram index
    3. Rebuild the FTS5 index (if this SQLite has FTS5)
    4. Optionally embed case chunks with the local model

    After this the retriever can use its fastest tier.
    """
    parser = argparse.ArgumentParser(description="Build search indexes for the local legal store.")
    parser.add_argument("--db", type=Path, default=CONFIG.db_path)
    parser.add_argument("--embed", action="store_true", help="embed case chunks that have no embedding yet")
    args = parser.parse_args(argv)

    args.db.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(args.db)
    try:
        print("[1/4] Checking schema ...")
        init_schema(conn)

        print("[2/4] Building trigram index ...")
        n = build_ngram_index(conn)
        print(f"   Wrote {n} trigram rows.")

        print("[3/4] Building FTS5 index ...")
        if build_fulltext_index(conn):
            print("   articles_fts rebuilt.")
        else:
            print("   FTS5 not available in this SQLite, skipped.")

        if args.embed:
            print("[4/4] Embedding case chunks ...")
            with OllamaClient(CONFIG) as client:
                done = embed_case_chunks(conn, client, CONFIG)
            print(f"   Embedded {done} chunks.")
        else:
            print("[4/4] Skipping embeddings (pass --embed).")
    finally:
        conn.close()

    print("Index build complete.")
    print(f"   Database: {args.db}")


if __name__ == "__main__":
    main()
