# lexlocal/ollama_client.py
"""
Thin HTTP client for the local Ollama service.

One request per call: no streaming, no retries. Whoever calls this decides
what a failure means for the current question.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from lexlocal.config import Config

logger = logging.getLogger(__name__)


class OllamaError(Exception):
    """Transport or protocol failure talking to Ollama."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        unreachable: bool = False,
        malformed: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        # never got an HTTP answer (connection refused, timeout)
        self.unreachable = unreachable
        # got a 2xx but could not read the body
        self.malformed = malformed


class OllamaClient:
    def __init__(self, config: Config, client: Optional[httpx.Client] = None):
        self.config = config
        self.base_url = config.service_endpoint.rstrip("/")
        self._client = client or httpx.Client(timeout=config.request_timeout_s)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self._client.close()

    def list_models(self) -> List[str]:
        try:
            response = self._client.get(f"{self.base_url}/api/tags")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise OllamaError(f"Ollama returned {e.response.status_code}", status_code=e.response.status_code)
        except httpx.HTTPError as e:
            raise OllamaError(f"Failed to connect to Ollama: {e}", unreachable=True)
        return [m.get("name", "") for m in data.get("models", [])]

    def is_alive(self) -> bool:
        """Liveness probe: does /api/tags answer with a 2xx?"""
        try:
            response = self._client.get(f"{self.base_url}/api/tags")
        except httpx.HTTPError as e:
            logger.warning("Ollama liveness probe failed: %s", e)
            return False
        return response.is_success

    def generate(self, prompt: str, options: Dict[str, Any], model: Optional[str] = None) -> Dict[str, Any]:
        """
        POST /api/generate with stream disabled.

        Returns the decoded JSON body; pulling the text out of it is the
        caller's job.
        """
        payload = {
            "model": model or self.config.model,
            "prompt": prompt,
            "stream": False,
            "options": options,
        }
        return self._post_json("/api/generate", payload)

    def embed(self, text: str, model: Optional[str] = None) -> List[float]:
        payload = {
            "model": model or self.config.embedding_model,
            "prompt": text,
        }
        data = self._post_json("/api/embeddings", payload)
        embedding = data.get("embedding")
        if not isinstance(embedding, list):
            raise OllamaError("Embedding response has no 'embedding' list", malformed=True)
        return [float(x) for x in embedding]

    def _post_json(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.post(f"{self.base_url}{path}", json=payload)
        except httpx.TimeoutException as e:
            raise OllamaError(f"Ollama timeout on {path}: {e}", unreachable=True)
        except httpx.HTTPError as e:
            raise OllamaError(f"Ollama HTTP error on {path}: {e}", unreachable=True)

        if not response.is_success:
            raise OllamaError(
                f"Ollama returned {response.status_code} on {path}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise OllamaError(f"Ollama sent invalid JSON on {path}: {e}", status_code=response.status_code, malformed=True)
        if not isinstance(data, dict):
            raise OllamaError(f"Ollama sent unexpected JSON on {path}", status_code=response.status_code, malformed=True)
        return data
