"""Gemini video analysis with per-model retry and model fallback.

The analysis step asks Gemini for a free-text description of a stored
video. Each candidate model is retried on transient failures with
exponential backoff; any other failure moves straight on to the next
model. When every model fails, the last error is mapped onto a
user-facing PipelineError.
"""

import logging
import re
from typing import Any, Optional, Sequence

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from veoprompt.errors import (
    EmptyResponseError,
    ErrorKind,
    PipelineError,
    TerminalProviderError,
    TransientProviderError,
)
from veoprompt.schemas.video import AnalysisResult, StoredVideoLocator
from veoprompt.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

ANALYSIS_INSTRUCTION = (
    "Describe this video in as much detail as possible. "
    "Output nothing but the description."
)

DEFAULT_MODELS = ("gemini-2.5-flash", "gemini-2.5-pro")

_TRANSIENT_MARKERS = ("unavailable", "overloaded", "try again", "internal", "timeout", "503", "500")
_CREDENTIAL_PATTERN = re.compile(r"api[ _]key|unauthenticated|permission[ _]denied|\b401\b")
_QUOTA_PATTERN = re.compile(r"quota|resource[ _]exhausted|\brate\b|rate[ _-]limit|\b429\b|too many requests")
_FORMAT_PATTERN = re.compile(r"\bformat\b|\bmime\b|unsupported")


def is_transient_analysis_error(exc: BaseException) -> bool:
    """Return True if a Gemini failure is worth retrying on the same model."""
    if isinstance(exc, PipelineError):
        return isinstance(exc, TransientProviderError)
    if isinstance(exc, genai_errors.ServerError):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def classify_analysis_error(exc: BaseException) -> PipelineError:
    """Map the last analysis failure onto the user-facing taxonomy.

    Errors that are already PipelineErrors pass through unchanged.
    """
    if isinstance(exc, PipelineError):
        return exc

    message = str(exc)
    lowered = message.lower()

    if _CREDENTIAL_PATTERN.search(lowered):
        return TerminalProviderError(
            "The Gemini API key is invalid. Check GEMINI_API_KEY (or your Google Cloud credentials) and retry.",
            kind=ErrorKind.INVALID_CREDENTIALS,
            detail=message,
        )
    if _QUOTA_PATTERN.search(lowered):
        return TransientProviderError(
            "Gemini usage quota reached. Wait a while and retry.",
            kind=ErrorKind.QUOTA_EXCEEDED,
            detail=message,
        )
    if _FORMAT_PATTERN.search(lowered):
        return TerminalProviderError(
            "This video format is not supported for analysis. Try MP4, MOV or AVI.",
            kind=ErrorKind.UNSUPPORTED_FORMAT,
            detail=message,
        )
    if "overloaded" in lowered or "unavailable" in lowered or is_transient_analysis_error(exc):
        return TransientProviderError(
            "Gemini is overloaded right now. Wait a moment and retry.",
            kind=ErrorKind.SERVICE_UNAVAILABLE,
            detail=message,
        )
    return TerminalProviderError(
        f"Video analysis failed: {message}. Retry, or try a different video.",
        kind=ErrorKind.GENERIC_FAILURE,
        detail=message,
    )


def extract_response_text(response: Any) -> str:
    """Pull the text out of a generate_content response.

    Tries the SDK's ``text`` accessor first, then walks
    candidates -> content -> parts for SDK versions or responses where
    the accessor is missing or empty.
    """
    try:
        text = getattr(response, "text", None)
    except (ValueError, AttributeError):
        text = None
    if isinstance(text, str) and text.strip():
        return text.strip()

    pieces: list[str] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            part_text = getattr(part, "text", None)
            if isinstance(part_text, str):
                pieces.append(part_text)
    return "".join(pieces).strip()


class VisionAnalysisClient:
    """Asks Gemini to describe a stored video.

    Works with both locator shapes: a Files API URI (Developer API client)
    or a gs:// URI (Vertex AI client).
    """

    def __init__(
        self,
        client: genai.Client,
        models: Sequence[str] = DEFAULT_MODELS,
        retry_policy: Optional[RetryPolicy] = None,
        instruction: str = ANALYSIS_INSTRUCTION,
    ):
        self.client = client
        self.models = list(models) or list(DEFAULT_MODELS)
        self.retry_policy = retry_policy or RetryPolicy.exponential(
            max_retries=2, retryable=is_transient_analysis_error
        )
        self.instruction = instruction

    async def describe(self, locator: StoredVideoLocator, model: str) -> str:
        """Issue one generation call against one model.

        Raises:
            EmptyResponseError: If the model returned no text.
        """
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=[
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_text(text=self.instruction),
                        types.Part.from_uri(file_uri=locator.uri, mime_type=locator.mime_type),
                    ],
                )
            ],
        )
        text = extract_response_text(response)
        if not text:
            raise EmptyResponseError(
                f"Gemini ({model}) returned an empty description. Retry, or try a shorter video."
            )
        return text

    async def analyze(self, locator: StoredVideoLocator, model: Optional[str] = None) -> AnalysisResult:
        """Describe the video, retrying and falling back across models.

        Args:
            locator: Where the video is stored.
            model: Optional single model that replaces the fallback list.

        Raises:
            PipelineError: Classified last error once every model has failed.
        """
        candidates = [model] if model else self.models
        last_error: Optional[BaseException] = None

        for candidate in candidates:
            try:
                text = await self.retry_policy.call(self.describe, locator, candidate)
            except Exception as e:
                last_error = e
                logger.warning(f"Analysis with {candidate} failed: {type(e).__name__}: {e}")
                continue

            logger.info(f"Analysis with {candidate} returned {len(text)} characters")
            return AnalysisResult(text=text, model=candidate)

        raise classify_analysis_error(last_error or RuntimeError("no analysis models configured"))
