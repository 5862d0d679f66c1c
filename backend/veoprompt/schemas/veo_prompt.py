"""Pydantic models for the generated Veo 3 prompt.

Only the presence of the ten top-level keys is enforced. Nested values
are kept as-is so that model-specific extensions survive validation.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_FIELDS: tuple[str, ...] = (
    "version",
    "engine_hint",
    "meta",
    "globals",
    "subject",
    "scene",
    "action",
    "audio",
    "timeline",
    "technical",
)


class VeoPrompt(BaseModel):
    """Shape-checked Veo 3 prompt object.

    The ``globals`` key is stored on ``globals_`` to avoid shadowing the
    builtin; dump with ``by_alias=True`` to get the wire shape back.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: Any = Field(description="Prompt template version, e.g. 't2v-universal-1.0'")
    engine_hint: Any = Field(description="Target engine, e.g. 'veo-3'")
    meta: Any = Field(description="Title, duration, aspect ratio, fps, language and notes")
    globals_: Any = Field(alias="globals", description="Style tags, visual mode and safety flags")
    subject: Any = Field(description="Agents, key elements and phenomena")
    scene: Any = Field(description="Environment, camera, lighting and mood")
    action: Any = Field(description="One-sentence summary of the continuous shot")
    audio: Any = Field(description="Audio mode, ambient bed and 2-5 cues")
    timeline: Any = Field(description="3-5 timed events plus notes")
    technical: Any = Field(description="Exit constraints, negatives and quality controls")


class ValidationResult(BaseModel):
    """Outcome of validating raw generation output."""

    success: bool
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    raw: Optional[str] = None
    missing_fields: list[str] = Field(default_factory=list)
