"""API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ProcessResponse(BaseModel):
    """Successful /api/process response."""

    veo_prompt: dict[str, Any] = Field(description="Validated Veo 3 JSON prompt")
    analysis_text: str = Field(description="Gemini's description of the uploaded video")


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str = Field(description="User-facing message with a remediation step")
    raw: Optional[str] = Field(default=None, description="Unparsed model output, for schema failures")
    details: Optional[str] = Field(default=None, description="Diagnostic detail for unexpected failures")


class ModelInfo(BaseModel):
    """Subset of an OpenRouter model listing entry."""

    id: str
    name: Optional[str] = None
    context_length: Optional[int] = None


class ModelsResponse(BaseModel):
    models: list[ModelInfo]
