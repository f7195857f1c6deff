# lexlocal/config.py

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).resolve().parent.parent


class Config(BaseSettings):
    """
    All knobs of the pipeline in one place.

    Build one instance and hand it to every component; nothing reads
    module-level defaults behind your back. Values can be overridden
    with LEXLOCAL_* environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEXLOCAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

    # === Paths ===
    db_path: Path = ROOT_DIR / "data" / "legal.db"

    # === Local model service (Ollama) ===
    model: str = "mistral"
    service_endpoint: str = "http://localhost:11434"
    embedding_model: str = "nomic-embed-text"
    request_timeout_s: float = 60.0

    # === Limits ===
    max_question_length: int = 500
    # candidates returned by any statute tier
    max_context_articles: int = 5
    # articles that actually go into the prompt (1 keeps the model focused)
    statute_context_articles: int = 1
    jurisprudence_top_k: int = 3
    # "all" mode takes this many from each side
    combined_statute_k: int = 2
    combined_case_k: int = 2

    # === Context sizes (characters) ===
    statute_excerpt_chars: int = 500
    case_excerpt_chars: int = 1500
    combined_statute_chars: int = 800
    combined_case_chars: int = 1000
    context_char_budget: int = 6000
    embedding_input_chars: int = 500

    # === Trigram tier ===
    ngram_min_match_ratio: float = 0.15
    ngram_keyword_count: int = 3

    # === Generation ===
    # law answers should be boring and repeatable
    temperature: float = 0.1
    top_p: float = 0.8
    strict_top_p: float = 0.7
    repeat_penalty: float = 1.5
    num_predict: int = 150

    log_level: str = "INFO"


CONFIG = Config()
