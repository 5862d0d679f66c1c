"""API route handlers."""

import logging
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from veoprompt import __version__
from veoprompt.config import get_settings
from veoprompt.errors import InputValidationError
from veoprompt.orchestrator.factory import build_openrouter_client, build_pipeline
from veoprompt.orchestrator.pipeline import VideoPromptPipeline
from veoprompt.schemas.api import ErrorResponse, ModelInfo, ModelsResponse, ProcessResponse
from veoprompt.schemas.video import VideoAsset
from veoprompt.services.file_validator import validate_video_file
from veoprompt.services.json_generation import OpenRouterClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

DEFAULT_UPLOAD_NAME = "uploaded_video"
DEFAULT_UPLOAD_MIME = "video/mp4"


async def get_upload(file: Optional[UploadFile] = File(None)) -> UploadFile:
    """Reject missing, oversize or wrong-type uploads before any client is built.

    Declared ahead of get_pipeline in the route signature, so a bad upload
    gets a 400 even when provider credentials are missing.
    """
    if file is None:
        raise InputValidationError("No file found. Upload a video in the 'file' field.")

    if file.size is not None:
        validation = validate_video_file(
            file.size,
            file.content_type or DEFAULT_UPLOAD_MIME,
            file.filename or DEFAULT_UPLOAD_NAME,
        )
        if not validation.valid:
            raise InputValidationError(validation.reason)
    return file


async def get_pipeline() -> AsyncIterator[VideoPromptPipeline]:
    """Per-request pipeline built from the process settings."""
    pipeline = build_pipeline(get_settings())
    try:
        yield pipeline
    finally:
        await pipeline.close()


async def get_openrouter_client() -> AsyncIterator[OpenRouterClient]:
    client = build_openrouter_client(get_settings())
    try:
        yield client
    finally:
        await client.close()


@router.post(
    "/process",
    response_model=ProcessResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def process_video(
    file: UploadFile = Depends(get_upload),
    pipeline: VideoPromptPipeline = Depends(get_pipeline),
):
    """Analyze an uploaded video and return a Veo 3 JSON prompt.

    Pipeline errors are rendered by the PipelineError handler in app.py.
    """
    filename = file.filename or DEFAULT_UPLOAD_NAME
    mime_type = file.content_type or DEFAULT_UPLOAD_MIME

    data = await file.read()
    logger.info(f"Processing upload {filename} ({len(data)} bytes, {mime_type})")

    result = await pipeline.run(VideoAsset(data=data, mime_type=mime_type, filename=filename))
    return ProcessResponse(veo_prompt=result.veo_prompt, analysis_text=result.analysis_text)


@router.get("/process")
async def describe_process_endpoint():
    """Describe the process endpoint."""
    return {
        "endpoint": "/api/process",
        "method": "POST",
        "description": "Veo 3 video prompt generation API",
        "parameters": {
            "file": "video/* multipart field (max 2GB; MP4, MOV, AVI, MKV, WebM)",
        },
        "response": {
            "veo_prompt": "Generated Veo 3 JSON prompt",
            "analysis_text": "Video analysis from Gemini",
        },
    }


@router.get("/models", response_model=ModelsResponse)
async def list_models(client: OpenRouterClient = Depends(get_openrouter_client)):
    """List OpenRouter models available to the configured key."""
    entries = await client.list_models()
    models = [
        ModelInfo.model_validate(entry)
        for entry in entries
        if isinstance(entry, dict) and entry.get("id")
    ]
    return ModelsResponse(models=models)


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
    }
