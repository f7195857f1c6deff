# lexlocal/main.py

import logging
from functools import lru_cache
from typing import List, Union

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lexlocal.config import CONFIG
from lexlocal.errors import QuestionValidationError
from lexlocal.formatter import SERVICE_UNAVAILABLE
from lexlocal.ollama_client import OllamaError
from lexlocal.pipeline import LegalAssistant
from lexlocal.schemas import AskRequest, AskResponse, ErrorResponse

logging.basicConfig(
    level=CONFIG.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="lexlocal",
    description="Belgian legislation and case law questions, answered only from the local database.",
    version="1.0.0",
)

# CORS so the citation browser can call it from another port
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache()
def get_assistant() -> LegalAssistant:
    """One assistant per process, built on first use."""
    return LegalAssistant(CONFIG)


def model_installed(model: str, installed: List[str]) -> bool:
    # "mistral" matches the "mistral:latest" tag Ollama reports
    name = model.split(":")[0]
    return any(m == model or m.split(":")[0] == name for m in installed)


@app.get("/health")
def health(assistant: LegalAssistant = Depends(get_assistant)):
    ollama = "running" if assistant.generator.is_available() else "stopped"
    models: List[str] = []
    if ollama == "running":
        try:
            models = assistant.client.list_models()
        except OllamaError as e:
            logger.warning("Could not list Ollama models: %s", e)
    try:
        articles_count = assistant.store.article_count()
    except Exception as e:
        logger.warning("Could not count articles: %s", e)
        articles_count = None
    return {
        "status": "ok",
        "version": app.version,
        "ollama": ollama,
        "model": assistant.config.model,
        "model_installed": model_installed(assistant.config.model, models),
        "articles_count": articles_count,
    }


@app.post("/ask", response_model=Union[AskResponse, ErrorResponse])
def ask(req: AskRequest, assistant: LegalAssistant = Depends(get_assistant)):
    """
    1. Validate the question (400 on bad input)
    2. Retrieve statutes and/or case law, generate a grounded answer
    3. Return the answer with its sources, or an error object
    """
    try:
        result = assistant.ask(req.question, language=req.language, source=req.source)
    except QuestionValidationError as e:
        return JSONResponse(status_code=400, content=ErrorResponse(error=str(e)).model_dump(exclude_none=True))

    if isinstance(result, ErrorResponse):
        status = 503 if result.error == SERVICE_UNAVAILABLE else 500
        return JSONResponse(status_code=status, content=result.model_dump(exclude_none=True))
    return result
