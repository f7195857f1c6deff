# lexlocal/errors.py

from typing import Optional


class LexLocalError(Exception):
    """Base class for everything the pipeline raises on purpose."""


class QuestionValidationError(LexLocalError):
    """Bad input. Raised before any retrieval happens."""


class ServiceUnavailableError(LexLocalError):
    """The local model service is down, timed out or refused the request."""

    def __init__(self, message: str = "service unavailable", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationError(LexLocalError):
    """The model service answered, but not with something we can read."""


class RetrievalError(LexLocalError):
    """Every retrieval branch of a combined search failed."""
