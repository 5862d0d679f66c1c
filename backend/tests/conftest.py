"""Shared fixtures and fakes for the veoprompt test suite."""

import copy
import json
from types import SimpleNamespace
from typing import Optional

import pytest

from veoprompt.schemas.video import AnalysisResult, StoredVideoLocator, VideoAsset
from veoprompt.services.storage_uploader import VideoUploader

PROVIDER_ENV_VARS = (
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GOOGLE_CLOUD_PROJECT",
    "GOOGLE_CLOUD_LOCATION",
    "GCS_BUCKET",
    "OPENROUTER_API_KEY",
    "OPENROUTER_MODEL",
    "OPENROUTER_SITE_URL",
    "VEOPROMPT_CONFIG_FILE",
)

SAMPLE_PROMPT = {
    "version": "t2v-universal-1.0",
    "engine_hint": "veo-3",
    "meta": {"title": "Red kite over a ridge", "duration": "8s", "aspect_ratio": "16:9", "fps": 24},
    "globals": {"style_tags": ["photoreal"], "visual_mode": "live_action"},
    "subject": {"agents": ["red kite"], "key_elements": ["ridge"], "phenomena": ["wind"]},
    "scene": {"environment": "upland ridge, late afternoon", "camera": {"shot_type": "wide"}},
    "action": {"overall": "A red kite RISES from SCREEN-LEFT and CONTINUES TO RISE."},
    "audio": {"mode": "diegetic", "ambient": ["light wind"], "cues": ["wing flap", "distant call"]},
    "timeline": {"events": [{"t": 0.0}, {"t": 2.5}, {"t": 5.2}], "notes": []},
    "technical": {"constraints": {"priority_action_by": 5.2}, "negatives": ["no watermarks"]},
}


class FakeSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self, clock: Optional["FakeClock"] = None):
        self.delays: list[float] = []
        self.clock = clock

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.clock is not None:
            self.clock.now += seconds


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeModels:
    """Stand-in for client.aio.models with scripted outcomes per model.

    Each scripted item is either a string (the response text) or an
    exception instance to raise.
    """

    def __init__(self, script: dict[str, list]):
        self.script = {model: list(items) for model, items in script.items()}
        self.calls: list[str] = []
        self.requests: list[dict] = []

    async def generate_content(self, model, contents, config=None):
        self.calls.append(model)
        self.requests.append({"model": model, "contents": contents})
        outcome = self.script[model].pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return SimpleNamespace(text=outcome, candidates=None)


def make_genai_client(models=None, files=None):
    return SimpleNamespace(aio=SimpleNamespace(models=models, files=files))


class FakeUploader(VideoUploader):
    def __init__(self, fail_delete: bool = False, error: Optional[Exception] = None):
        self.uploaded: list[VideoAsset] = []
        self.deleted: list[StoredVideoLocator] = []
        self.fail_delete = fail_delete
        self.error = error

    async def upload(self, asset: VideoAsset) -> StoredVideoLocator:
        if self.error is not None:
            raise self.error
        self.uploaded.append(asset)
        return StoredVideoLocator(
            uri="gs://test-bucket/uploads/1_clip.mp4",
            mime_type=asset.mime_type,
            handle="uploads/1_clip.mp4",
        )

    async def delete(self, locator: StoredVideoLocator) -> None:
        self.deleted.append(locator)
        if self.fail_delete:
            raise RuntimeError("bucket went away")


class FakeAnalyzer:
    def __init__(self, text: str = "A red kite rises over a grassy ridge.", error: Optional[Exception] = None, on_call=None):
        self.text = text
        self.error = error
        self.on_call = on_call
        self.calls: list[StoredVideoLocator] = []

    async def analyze(self, locator, model=None):
        self.calls.append(locator)
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error
        return AnalysisResult(text=self.text, model=model or "gemini-2.5-flash")


class FakeGenerator:
    def __init__(self, raw: Optional[str] = None, error: Optional[Exception] = None):
        self.raw = raw if raw is not None else json.dumps(SAMPLE_PROMPT)
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt, model=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.raw


@pytest.fixture(autouse=True)
def clean_provider_env(monkeypatch):
    """Keep host credentials out of tests."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_prompt() -> dict:
    return copy.deepcopy(SAMPLE_PROMPT)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def mp4_asset() -> VideoAsset:
    return VideoAsset(data=b"\x00" * 1024, mime_type="video/mp4", filename="clip.mp4")
