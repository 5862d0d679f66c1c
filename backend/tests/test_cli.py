"""CLI tests using Typer's CliRunner with the pipeline factory patched out."""

import json

import httpx
import pytest
from typer.testing import CliRunner

from conftest import SAMPLE_PROMPT, FakeAnalyzer, FakeGenerator, FakeUploader
from veoprompt.cli import commands
from veoprompt.config import Settings
from veoprompt.orchestrator.pipeline import VideoPromptPipeline
from veoprompt.services.json_generation import OpenRouterClient

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(commands, "get_settings", Settings)


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "kite.mp4"
    path.write_bytes(b"\x00" * 4096)
    return path


def _patch_pipeline(monkeypatch, pipeline):
    calls = []

    def fake_build_pipeline(settings, **kwargs):
        calls.append(kwargs)
        return pipeline

    monkeypatch.setattr(commands, "build_pipeline", fake_build_pipeline)
    return calls


def test_process_writes_output_file(monkeypatch, tmp_path, video_file):
    uploader = FakeUploader()
    pipeline = VideoPromptPipeline(uploader, FakeAnalyzer(), FakeGenerator())
    calls = _patch_pipeline(monkeypatch, pipeline)
    output = tmp_path / "prompt.json"

    result = runner.invoke(commands.app, [
        "process", str(video_file), "--output", str(output),
        "--model", "gemini-2.5-pro", "--json-model", "openai/gpt-4o", "--cleanup",
    ])

    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text()) == SAMPLE_PROMPT
    assert uploader.uploaded[0].filename == "kite.mp4"
    assert uploader.uploaded[0].mime_type == "video/mp4"
    assert calls[0]["analysis_model"] == "gemini-2.5-pro"
    assert calls[0]["generation_model"] == "openai/gpt-4o"
    assert calls[0]["cleanup"] is True


def test_process_rejects_non_video(monkeypatch, tmp_path):
    calls = _patch_pipeline(monkeypatch, None)
    notes = tmp_path / "notes.txt"
    notes.write_text("not a video")

    result = runner.invoke(commands.app, ["process", str(notes)])

    assert result.exit_code == 2
    assert "MP4" in result.output
    assert calls == []


def test_process_rejects_unknown_backend(monkeypatch, video_file):
    calls = _patch_pipeline(monkeypatch, None)

    result = runner.invoke(commands.app, ["process", str(video_file), "--backend", "s3"])

    assert result.exit_code == 2
    assert calls == []


def test_process_schema_failure_shows_raw_output(monkeypatch, video_file):
    pipeline = VideoPromptPipeline(FakeUploader(), FakeAnalyzer(), FakeGenerator(raw="not json"))
    _patch_pipeline(monkeypatch, pipeline)

    result = runner.invoke(commands.app, ["process", str(video_file)])

    assert result.exit_code == 1
    assert "Pipeline failed" in result.output
    assert "not json" in result.output


def test_validate_accepts_fenced_prompt(tmp_path):
    raw = tmp_path / "raw.txt"
    raw.write_text("```json\n" + json.dumps(SAMPLE_PROMPT) + "\n```")

    result = runner.invoke(commands.app, ["validate", str(raw)])

    assert result.exit_code == 0
    assert "Valid" in result.output


def test_validate_reports_missing_fields(tmp_path):
    raw = tmp_path / "raw.txt"
    raw.write_text('{"version": "t2v-universal-1.0"}')

    result = runner.invoke(commands.app, ["validate", str(raw)])

    assert result.exit_code == 1
    assert "Missing required fields" in result.output


def test_template_prints_generation_prompt(tmp_path):
    analysis = tmp_path / "analysis.txt"
    analysis.write_text("A red kite rises over a grassy ridge.")

    result = runner.invoke(commands.app, ["template", str(analysis)])

    assert result.exit_code == 0
    assert "===INPUT===" in result.output
    assert result.output.rstrip().endswith("A red kite rises over a grassy ridge.")


def test_template_rejects_empty_analysis(tmp_path):
    analysis = tmp_path / "analysis.txt"
    analysis.write_text("   \n")

    result = runner.invoke(commands.app, ["template", str(analysis)])

    assert result.exit_code == 1


def test_models_filters_by_search(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [
            {"id": "openai/gpt-4o", "name": "GPT-4o", "context_length": 128000},
            {"id": "anthropic/claude-3.5-sonnet", "name": "Claude 3.5 Sonnet", "context_length": 200000},
        ]})

    monkeypatch.setattr(
        commands,
        "build_openrouter_client",
        lambda settings: OpenRouterClient(api_key="sk-or-test", transport=httpx.MockTransport(handler)),
    )

    result = runner.invoke(commands.app, ["models", "--search", "gpt"])

    assert result.exit_code == 0
    assert "openai/gpt-4o" in result.output
    assert "claude" not in result.output
