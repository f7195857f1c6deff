# lexlocal/pipeline.py

import logging
import re
import time
from typing import Optional, Union

from lexlocal.aggregator import SourceAggregator
from lexlocal.config import Config
from lexlocal.context import ContextAssembler
from lexlocal.errors import QuestionValidationError, ServiceUnavailableError
from lexlocal.formatter import INTERNAL_ERROR, SERVICE_UNAVAILABLE, ResponseFormatter
from lexlocal.keywords import KeywordExtractor
from lexlocal.llm_engine import GroundedAnswerGenerator
from lexlocal.ollama_client import OllamaClient
from lexlocal.prompts import JURISPRUDENCE_UNAVAILABLE, not_found
from lexlocal.retriever import CandidateRetriever, JurisprudenceRetriever
from lexlocal.schemas import LANGUAGE_IDS, AskResponse, ErrorResponse, KeywordSet, Source
from lexlocal.store import LegalStore

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

Answer = Union[AskResponse, ErrorResponse]


def log_safe(text: str, limit: int = 80) -> str:
    """Single-line, truncated copy of user/model text for the logs."""
    head = _CONTROL_CHARS.sub(" ", text[:limit])
    return head + "..." if len(text) > limit else head


class LegalAssistant:
    """
    question -> keywords -> statutes / case law -> context -> model -> answer

    One call to ask() is one self-contained request: nothing is cached or
    written between calls.
    """

    def __init__(
        self,
        config: Config,
        store: Optional[LegalStore] = None,
        client: Optional[OllamaClient] = None,
    ):
        self.config = config
        self.store = store or LegalStore(config.db_path)
        self.client = client or OllamaClient(config)

        self.extractor = KeywordExtractor()
        self.statutes = CandidateRetriever(self.store, config)
        self.cases = JurisprudenceRetriever(self.store, self.client, config)
        self.aggregator = SourceAggregator(self.store, self.statutes, self.cases, config)
        self.generator = GroundedAnswerGenerator(self.client, config)
        self.formatter = ResponseFormatter(config)

    def validate(self, question: Optional[str], language: str) -> str:
        question = (question or "").strip()
        if not question:
            raise QuestionValidationError("Question is required")
        if len(question) > self.config.max_question_length:
            raise QuestionValidationError(
                f"Question too long (max {self.config.max_question_length} characters)"
            )
        if language not in LANGUAGE_IDS:
            raise QuestionValidationError("Language must be nl or fr")
        return question

    def ask(
        self,
        question: str,
        language: str = "nl",
        source: Union[Source, str] = Source.LEGISLATION,
    ) -> Answer:
        """
        Raises QuestionValidationError for bad input. Every other failure
        comes back as an ErrorResponse, never as a partial answer.
        """
        question = self.validate(question, language)
        try:
            source = Source(source)
        except ValueError:
            source = Source.LEGISLATION

        start = time.perf_counter()
        logger.info("Q: '%s' (%s, source: %s)", log_safe(question), language, source.value)

        try:
            if not self.generator.is_available():
                logger.warning("Ollama not running at %s", self.config.service_endpoint)
                return self.formatter.error(SERVICE_UNAVAILABLE)

            keywords = self.extractor.extract(question, language)
            if source is Source.JURISPRUDENCE:
                response = self._ask_jurisprudence(question, keywords, language, start)
            elif source is Source.ALL:
                response = self._ask_all(question, keywords, language, start)
            else:
                response = self._ask_legislation(question, keywords, language, start)
        except ServiceUnavailableError:
            return self.formatter.error(SERVICE_UNAVAILABLE)
        except Exception as e:
            logger.exception("Question failed")
            return self.formatter.error(INTERNAL_ERROR, details=str(e))

        logger.info(
            "%d sources, %.2fs total | A: %s",
            len(response.sources),
            response.response_time,
            log_safe(response.answer),
        )
        return response

    def _generate(self, source: Source, language: str, question: str, context: str) -> str:
        llm_start = time.perf_counter()
        answer = self.generator.generate(source, language, question, context)
        logger.debug("LLM answered in %.2fs", time.perf_counter() - llm_start)
        return answer

    def _ask_legislation(self, question: str, keywords: KeywordSet, language: str, start: float) -> AskResponse:
        articles = self.statutes.retrieve(keywords, language)
        if not articles:
            logger.warning("No articles found")
            return self.formatter.canned(not_found(Source.LEGISLATION, language), language, time.perf_counter() - start)

        assembler = ContextAssembler(self.config, language)
        context, kept = assembler.assemble(assembler.statute_passages(articles))
        if not kept:
            return self.formatter.canned(not_found(Source.LEGISLATION, language), language, time.perf_counter() - start)

        answer = self._generate(Source.LEGISLATION, language, question, context)
        sources = self.formatter.statute_sources(articles[:kept])
        return self.formatter.answer(answer, sources, language, time.perf_counter() - start)

    def _ask_jurisprudence(self, question: str, keywords: KeywordSet, language: str, start: float) -> AskResponse:
        if not self.store.jurisprudence_available():
            return self.formatter.canned(JURISPRUDENCE_UNAVAILABLE[language], language, time.perf_counter() - start)

        matches = self.cases.retrieve(question, keywords, language)
        if not matches:
            logger.warning("No case law found")
            return self.formatter.canned(not_found(Source.JURISPRUDENCE, language), language, time.perf_counter() - start)

        assembler = ContextAssembler(self.config, language)
        context, kept = assembler.assemble(assembler.case_passages(matches))
        if not kept:
            return self.formatter.canned(not_found(Source.JURISPRUDENCE, language), language, time.perf_counter() - start)

        answer = self._generate(Source.JURISPRUDENCE, language, question, context)
        sources = self.formatter.case_sources(matches[:kept])
        return self.formatter.answer(answer, sources, language, time.perf_counter() - start)

    def _ask_all(self, question: str, keywords: KeywordSet, language: str, start: float) -> AskResponse:
        gathered = self.aggregator.gather(question, keywords, language)
        if gathered.empty:
            logger.warning("Nothing found in statutes or case law")
            return self.formatter.canned(not_found(Source.ALL, language), language, time.perf_counter() - start)

        answer = self._generate(Source.ALL, language, question, gathered.context)
        sources = self.formatter.statute_sources(gathered.articles) + self.formatter.case_sources(gathered.matches)
        return self.formatter.answer(answer, sources, language, time.perf_counter() - start)
