"""Tests for the Ollama HTTP client, against httpx.MockTransport."""

import json

import httpx
import pytest

from lexlocal.config import Config
from lexlocal.ollama_client import OllamaClient, OllamaError


def make_client(handler, **overrides):
    cfg = Config(service_endpoint="http://ollama.test:11434/", model="test-model", **overrides)
    return OllamaClient(cfg, client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_is_alive_true_on_2xx():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={"models": []})

    with make_client(handler) as client:
        assert client.is_alive() is True
    assert seen == ["/api/tags"]


def test_is_alive_false_on_error_status():
    with make_client(lambda request: httpx.Response(500)) as client:
        assert client.is_alive() is False


def test_is_alive_false_when_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with make_client(handler) as client:
        assert client.is_alive() is False


def test_list_models():
    payload = {"models": [{"name": "mistral:latest"}, {"name": "nomic-embed-text:latest"}]}
    with make_client(lambda request: httpx.Response(200, json=payload)) as client:
        assert client.list_models() == ["mistral:latest", "nomic-embed-text:latest"]


def test_generate_sends_non_streaming_request():
    captured = {}

    def handler(request):
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "Antwoord", "done": True})

    options = {"temperature": 0.1, "top_p": 0.8, "repeat_penalty": 1.5, "num_predict": 150}
    with make_client(handler) as client:
        data = client.generate("PROMPT", options)

    assert data["response"] == "Antwoord"
    assert captured["path"] == "/api/generate"
    assert captured["body"] == {
        "model": "test-model",
        "prompt": "PROMPT",
        "stream": False,
        "options": options,
    }


def test_generate_non_2xx_carries_status():
    with make_client(lambda request: httpx.Response(503, text="loading")) as client:
        with pytest.raises(OllamaError) as info:
            client.generate("p", {})

    assert info.value.status_code == 503
    assert not info.value.unreachable
    assert not info.value.malformed


def test_generate_timeout_is_unreachable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with make_client(handler) as client:
        with pytest.raises(OllamaError) as info:
            client.generate("p", {})

    assert info.value.unreachable


def test_generate_invalid_json_is_malformed():
    with make_client(lambda request: httpx.Response(200, text="not json")) as client:
        with pytest.raises(OllamaError) as info:
            client.generate("p", {})

    assert info.value.malformed


def test_generate_non_object_json_is_malformed():
    with make_client(lambda request: httpx.Response(200, json=["a", "b"])) as client:
        with pytest.raises(OllamaError) as info:
            client.generate("p", {})

    assert info.value.malformed


def test_embed_uses_embedding_model():
    captured = {}

    def handler(request):
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"embedding": [0.5, 1, -2]})

    with make_client(handler, embedding_model="embedder") as client:
        vector = client.embed("vraag")

    assert vector == [0.5, 1.0, -2.0]
    assert captured == {"path": "/api/embeddings", "body": {"model": "embedder", "prompt": "vraag"}}


def test_embed_without_vector_is_malformed():
    with make_client(lambda request: httpx.Response(200, json={"error": "no model"})) as client:
        with pytest.raises(OllamaError) as info:
            client.embed("vraag")

    assert info.value.malformed
