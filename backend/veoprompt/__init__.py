"""Veo Prompt - turn an uploaded video into a structured Veo 3 JSON prompt.

The pipeline uploads a video, asks Gemini for a detailed description,
embeds that description into a fixed template and asks an OpenRouter
model for a strict JSON prompt object.

Call validate_credentials() during application startup to surface
missing provider keys before the first request.
"""

import logging

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def validate_credentials(settings=None) -> list[str]:
    """Report which provider credentials are missing from configuration.

    Does not raise: every client re-checks its own credentials on first use,
    so this is only an early warning for entry points.

    Returns:
        List of human-readable warnings (empty when fully configured).
    """
    if settings is None:
        from veoprompt.config import get_settings
        settings = get_settings()

    warnings = []
    backend = settings.pipeline.analysis_backend
    if backend == "gemini_files" and not settings.gemini.api_key:
        warnings.append(
            "Gemini API key is not set. Set GEMINI_API_KEY or VEOPROMPT_GEMINI__API_KEY."
        )
    if backend == "vertex_gcs":
        if not settings.google_cloud.project_id:
            warnings.append(
                "Google Cloud project is not set. Set GOOGLE_CLOUD_PROJECT for Vertex AI analysis."
            )
        if not settings.storage.gcs_bucket:
            warnings.append(
                "GCS bucket is not set. Set GCS_BUCKET to upload videos for Vertex AI analysis."
            )
    if not settings.openrouter.api_key:
        warnings.append(
            "OpenRouter API key is not set. Set OPENROUTER_API_KEY."
        )

    for message in warnings:
        logger.warning(message)
    return warnings
