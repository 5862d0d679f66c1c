"""Data carriers that flow between pipeline stages.

These are plain dataclasses rather than Pydantic models: they never cross
a serialization boundary and ``VideoAsset`` holds raw bytes.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class VideoAsset:
    """Raw uploaded video, owned by the orchestrator for one run."""

    data: bytes
    mime_type: str
    filename: str
    size: int = -1

    def __post_init__(self):
        if self.size < 0:
            self.size = len(self.data)


@dataclass(frozen=True)
class StoredVideoLocator:
    """Durable reference to an uploaded video.

    uri is what the analysis model receives (``gs://...`` or a Files API
    URI). handle is what the uploader needs to delete it again.
    """

    uri: str
    mime_type: str
    handle: Optional[str] = None
    backend: str = "gcs"


@dataclass(frozen=True)
class AnalysisResult:
    """Non-empty description of the video plus the model that wrote it."""

    text: str
    model: str


@dataclass
class PipelineResult:
    """Successful pipeline output."""

    veo_prompt: dict
    analysis_text: str
    analysis_model: str = ""
    step_durations: dict[str, float] = field(default_factory=dict)
