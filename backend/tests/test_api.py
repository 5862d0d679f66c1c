"""HTTP API tests using httpx.ASGITransport with dependency overrides."""

import httpx
import pytest

from conftest import FakeAnalyzer, FakeGenerator, FakeUploader
from veoprompt import __version__
from veoprompt.api import routes
from veoprompt.api.app import app
from veoprompt.api.routes import get_openrouter_client, get_pipeline
from veoprompt.config import Settings
from veoprompt.errors import TerminalProviderError
from veoprompt.orchestrator.pipeline import VideoPromptPipeline
from veoprompt.services.json_generation import OpenRouterClient


def _override_pipeline(pipeline):
    async def _get_pipeline():
        yield pipeline

    app.dependency_overrides[get_pipeline] = _get_pipeline


@pytest.fixture(autouse=True)
def reset_overrides():
    yield
    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_process_success(sample_prompt):
    uploader = FakeUploader()
    _override_pipeline(VideoPromptPipeline(uploader, FakeAnalyzer(text="A kite rises."), FakeGenerator()))

    async with _client() as client:
        response = await client.post(
            "/api/process",
            files={"file": ("kite.mp4", b"\x00" * 2048, "video/mp4")},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["veo_prompt"] == sample_prompt
    assert body["analysis_text"] == "A kite rises."
    assert uploader.uploaded[0].filename == "kite.mp4"
    assert uploader.uploaded[0].size == 2048


@pytest.mark.asyncio
async def test_process_without_file_is_400():
    _override_pipeline(VideoPromptPipeline(FakeUploader(), FakeAnalyzer(), FakeGenerator()))

    async with _client() as client:
        response = await client.post("/api/process", data={"note": "no video here"})

    assert response.status_code == 400
    assert "file" in response.json()["error"]


@pytest.mark.asyncio
async def test_process_wrong_type_is_400():
    uploader = FakeUploader()
    _override_pipeline(VideoPromptPipeline(uploader, FakeAnalyzer(), FakeGenerator()))

    async with _client() as client:
        response = await client.post(
            "/api/process",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

    assert response.status_code == 400
    assert "MP4" in response.json()["error"]
    assert uploader.uploaded == []


@pytest.mark.asyncio
async def test_provider_failure_is_502():
    error = TerminalProviderError("The OpenRouter API key is invalid. Check OPENROUTER_API_KEY and retry.")
    _override_pipeline(VideoPromptPipeline(FakeUploader(), FakeAnalyzer(), FakeGenerator(error=error)))

    async with _client() as client:
        response = await client.post(
            "/api/process",
            files={"file": ("kite.mp4", b"\x00" * 16, "video/mp4")},
        )

    assert response.status_code == 502
    assert response.json() == {"error": error.message}


@pytest.mark.asyncio
async def test_schema_failure_is_500_with_raw():
    _override_pipeline(VideoPromptPipeline(FakeUploader(), FakeAnalyzer(), FakeGenerator(raw='{"version": "x"}')))

    async with _client() as client:
        response = await client.post(
            "/api/process",
            files={"file": ("kite.mp4", b"\x00" * 16, "video/mp4")},
        )

    assert response.status_code == 500
    body = response.json()
    assert body["raw"] == '{"version": "x"}'
    assert "Missing required fields" in body["error"]


@pytest.mark.asyncio
async def test_unexpected_failure_is_500_with_details():
    _override_pipeline(VideoPromptPipeline(FakeUploader(), FakeAnalyzer(error=KeyError("text")), FakeGenerator()))

    async with _client() as client:
        response = await client.post(
            "/api/process",
            files={"file": ("kite.mp4", b"\x00" * 16, "video/mp4")},
        )

    assert response.status_code == 500
    assert "KeyError" in response.json()["details"]


@pytest.mark.asyncio
async def test_describe_process_endpoint():
    async with _client() as client:
        response = await client.get("/api/process")

    assert response.status_code == 200
    body = response.json()
    assert body["endpoint"] == "/api/process"
    assert body["method"] == "POST"


@pytest.mark.asyncio
async def test_health():
    async with _client() as client:
        response = await client.get("/api/health")

    assert response.json() == {"status": "ok", "version": __version__}


@pytest.mark.asyncio
async def test_models_endpoint():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [
            {"id": "openai/gpt-4o", "name": "GPT-4o", "context_length": 128000, "pricing": {}},
            {"name": "entry without id"},
        ]})

    async def _get_client():
        yield OpenRouterClient(api_key="sk-or-test", transport=httpx.MockTransport(handler))

    app.dependency_overrides[get_openrouter_client] = _get_client

    async with _client() as client:
        response = await client.get("/api/models")

    assert response.status_code == 200
    assert response.json() == {
        "models": [{"id": "openai/gpt-4o", "name": "GPT-4o", "context_length": 128000}]
    }


@pytest.mark.asyncio
async def test_missing_file_is_400_even_without_credentials(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(routes, "get_settings", Settings)

    async with _client() as client:
        no_file = await client.post("/api/process", data={"note": "no video here"})
        wrong_type = await client.post(
            "/api/process",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

    assert no_file.status_code == 400
    assert no_file.json() == {"error": "No file found. Upload a video in the 'file' field."}
    assert wrong_type.status_code == 400
    assert "MP4" in wrong_type.json()["error"]


@pytest.mark.asyncio
async def test_models_without_key_is_empty_list():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"data": []})

    async def _get_client():
        yield OpenRouterClient(api_key=None, transport=httpx.MockTransport(handler))

    app.dependency_overrides[get_openrouter_client] = _get_client

    async with _client() as client:
        response = await client.get("/api/models")

    assert response.status_code == 200
    assert response.json() == {"models": []}
    assert requests == []
