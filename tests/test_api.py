"""HTTP layer: status codes and payload shapes of /ask and /health."""

import pytest
from fastapi.testclient import TestClient

from lexlocal.main import app, get_assistant, model_installed
from lexlocal.ollama_client import OllamaError
from lexlocal.pipeline import LegalAssistant


@pytest.fixture
def assistant(config, scan_store, mock_client):
    return LegalAssistant(config, store=scan_store, client=mock_client)


@pytest.fixture
def client(assistant):
    app.dependency_overrides[get_assistant] = lambda: assistant
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_ask_returns_answer_with_sources(client):
    r = client.post("/ask", json={"question": "Wat is de minimum leeftijd om te werken?", "language": "nl"})

    assert r.status_code == 200
    body = r.json()
    assert body["answer"].startswith("Antwoord.")
    assert body["model"] == "test-model"
    assert body["language"] == "nl"
    assert isinstance(body["response_time"], float)
    assert [s["numac"] for s in body["sources"]] == ["1971031602"]
    assert body["sources"][0]["type"] == "statute"
    assert body["sources"][0]["url"] == "/laws/1971031602"
    # store row ids stay internal
    assert "article_id" not in body["sources"][0]


def test_ask_defaults_unknown_source(client):
    r = client.post("/ask", json={"question": "Wat is de minimum leeftijd om te werken?", "source": "wiki"})

    assert r.status_code == 200
    assert r.json()["sources"][0]["type"] == "statute"


def test_too_long_question_is_400(client):
    r = client.post("/ask", json={"question": "x" * 501})

    assert r.status_code == 400
    assert "too long" in r.json()["error"]


def test_bad_language_is_400(client):
    r = client.post("/ask", json={"question": "Wat?", "language": "en"})

    assert r.status_code == 400


def test_dead_service_is_503(client, mock_client):
    mock_client.is_alive.return_value = False

    r = client.post("/ask", json={"question": "Wat is de minimum leeftijd om te werken?"})

    assert r.status_code == 503
    assert r.json() == {"error": "service unavailable"}


def test_unreadable_answer_is_500(client, mock_client):
    mock_client.generate.return_value = {"unexpected": True}

    r = client.post("/ask", json={"question": "Wat is de minimum leeftijd om te werken?"})

    assert r.status_code == 500
    assert r.json()["error"] == "internal error"
    assert r.json()["details"]


def test_health(client):
    r = client.get("/health")

    assert r.status_code == 200
    assert r.json() == {
        "status": "ok",
        "version": "1.0.0",
        "ollama": "running",
        "model": "test-model",
        "model_installed": True,
        "articles_count": 4,
    }


def test_health_reports_stopped_service(client, mock_client):
    mock_client.is_alive.return_value = False

    body = client.get("/health").json()

    assert body["ollama"] == "stopped"
    assert body["model_installed"] is False
    mock_client.list_models.assert_not_called()


def test_health_reports_missing_model(client, mock_client):
    mock_client.list_models.return_value = ["llama3:8b"]

    assert client.get("/health").json()["model_installed"] is False


def test_health_survives_model_list_failure(client, mock_client):
    mock_client.list_models.side_effect = OllamaError("boom", status_code=500)

    body = client.get("/health").json()

    assert body["ollama"] == "running"
    assert body["model_installed"] is False


def test_model_installed_matches_tag_and_bare_name():
    assert model_installed("mistral", ["mistral:latest"])
    assert model_installed("mistral:7b", ["mistral:7b"])
    assert not model_installed("mistral", ["mixtral:latest"])
