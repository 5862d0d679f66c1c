"""Build a fully wired pipeline from Settings.

Two analysis strategies share the VisionAnalysisClient contract:

- ``gemini_files``: upload to the Gemini Files API, poll until ACTIVE,
  analyze through the Developer API (needs gemini.api_key).
- ``vertex_gcs``: upload to Cloud Storage and pass the gs:// URI straight
  to Gemini on Vertex AI (needs storage.gcs_bucket and
  google_cloud.project_id).
"""

import logging
from typing import Optional

from veoprompt.config import Settings
from veoprompt.orchestrator.pipeline import VideoPromptPipeline
from veoprompt.services.gemini_files import GeminiFileUploader
from veoprompt.services.genai_client import get_genai_client
from veoprompt.services.json_generation import OpenRouterClient, is_retryable_generation_error
from veoprompt.services.retry import RetryPolicy
from veoprompt.services.storage_uploader import GCSVideoUploader, VideoUploader
from veoprompt.services.vision_analysis import VisionAnalysisClient, is_transient_analysis_error

logger = logging.getLogger(__name__)

ANALYSIS_BACKENDS = ("gemini_files", "vertex_gcs")


def build_openrouter_client(settings: Settings) -> OpenRouterClient:
    cfg = settings.openrouter
    return OpenRouterClient(
        api_key=cfg.api_key,
        base_url=cfg.base_url,
        default_model=cfg.model,
        temperature=cfg.temperature,
        site_url=cfg.site_url,
        app_title=cfg.app_title,
        timeout=cfg.timeout,
        retry_policy=RetryPolicy.linear(
            max_retries=cfg.max_retries,
            step=cfg.retry_delay,
            retryable=is_retryable_generation_error,
        ),
    )


def build_pipeline(
    settings: Settings,
    backend: Optional[str] = None,
    cleanup: Optional[bool] = None,
    analysis_model: Optional[str] = None,
    generation_model: Optional[str] = None,
) -> VideoPromptPipeline:
    """Create a pipeline for the configured (or overridden) strategy.

    Raises:
        ValueError: If backend is not a known strategy.
        ConfigurationError: If the strategy's credentials are missing.
    """
    backend = backend or settings.pipeline.analysis_backend
    if backend not in ANALYSIS_BACKENDS:
        raise ValueError(f"Unknown analysis backend '{backend}'. Choose one of: {', '.join(ANALYSIS_BACKENDS)}")

    gemini_cfg = settings.gemini
    use_vertex = backend == "vertex_gcs"
    client = get_genai_client(settings, vertexai=use_vertex)

    uploader: VideoUploader
    if use_vertex:
        uploader = GCSVideoUploader(
            bucket_name=settings.storage.gcs_bucket,
            prefix=settings.storage.upload_prefix,
        )
    else:
        uploader = GeminiFileUploader(
            client,
            poll_interval=gemini_cfg.poll_interval,
            poll_timeout=gemini_cfg.poll_timeout,
            default_display_name=gemini_cfg.display_name,
        )

    analyzer = VisionAnalysisClient(
        client,
        models=gemini_cfg.models,
        retry_policy=RetryPolicy.exponential(
            max_retries=gemini_cfg.max_retries_per_model,
            base_delay=gemini_cfg.retry_base_delay,
            retryable=is_transient_analysis_error,
        ),
    )

    logger.debug("Built %s pipeline (models=%s)", backend, gemini_cfg.models)
    return VideoPromptPipeline(
        uploader=uploader,
        analyzer=analyzer,
        generator=build_openrouter_client(settings),
        cleanup=settings.pipeline.cleanup_uploads if cleanup is None else cleanup,
        analysis_model=analysis_model,
        generation_model=generation_model,
    )
