# lexlocal/llm_engine.py

import logging
from typing import Any, Dict

from lexlocal.config import Config
from lexlocal.errors import GenerationError, ServiceUnavailableError
from lexlocal.ollama_client import OllamaClient, OllamaError
from lexlocal.prompts import build_prompt
from lexlocal.schemas import Source

logger = logging.getLogger(__name__)


class GroundedAnswerGenerator:
    """
    1. Wrap the assembled context in a strict, language-specific prompt.
    2. Ask the local model once (no streaming, no retry).
    3. Hand back the raw text, lightly cleaned.

    Anything that goes wrong on the wire becomes ServiceUnavailableError,
    an unreadable answer becomes GenerationError. There is no path that
    answers without the model and the context.
    """

    def __init__(self, client: OllamaClient, config: Config):
        self.client = client
        self.config = config

    def is_available(self) -> bool:
        return self.client.is_alive()

    def sampling_options(self, source: Source) -> Dict[str, Any]:
        # case law and combined answers must quote, so sample even narrower
        top_p = self.config.top_p if source is Source.LEGISLATION else self.config.strict_top_p
        return {
            "temperature": self.config.temperature,
            "top_p": top_p,
            "repeat_penalty": self.config.repeat_penalty,
            "num_predict": self.config.num_predict,
        }

    def _postprocess_answer(self, raw_answer: str) -> str:
        """
        Drop immediate repeats of the same line (small models loop)
        and surrounding whitespace.
        """
        cleaned = []
        for line in raw_answer.strip().splitlines():
            if cleaned and line.strip() and line.strip() == cleaned[-1].strip():
                continue
            cleaned.append(line)
        return "\n".join(cleaned).strip()

    def generate(self, source: Source, language: str, question: str, context: str) -> str:
        prompt = build_prompt(source, language, context, question)

        try:
            data = self.client.generate(prompt, self.sampling_options(source), model=self.config.model)
        except OllamaError as e:
            if e.unreachable:
                logger.error("Ollama unreachable at %s: %s", self.config.service_endpoint, e)
            else:
                logger.error("Generation request failed: %s", e)
            if e.malformed:
                raise GenerationError(str(e)) from e
            raise ServiceUnavailableError(status_code=e.status_code) from e

        answer = data.get("response")
        if not isinstance(answer, str):
            raise GenerationError("Model response has no 'response' text")
        return self._postprocess_answer(answer)
