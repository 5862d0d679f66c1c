"""Main pipeline orchestrator with per-step timing and cleanup.

Coordinates one video-to-prompt run with:
- State machine transitions (idle -> uploading -> analyzing -> generating -> completed)
- Cancellation checks at every stage boundary
- Per-step timing and logging
- Wrapping of unclassified exceptions into UnexpectedError
- Best-effort deletion of the uploaded video
- Progress callback interface for CLI/API integration
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol

from veoprompt.errors import (
    InputValidationError,
    PipelineCancelled,
    PipelineError,
    UnexpectedError,
)
from veoprompt.orchestrator.state import STATE_MESSAGES, InvalidTransition, can_transition
from veoprompt.schemas.video import AnalysisResult, PipelineResult, StoredVideoLocator, VideoAsset
from veoprompt.services.file_validator import validate_video_file
from veoprompt.services.prompt_template import build_generation_prompt
from veoprompt.services.response_validator import require_veo_prompt
from veoprompt.services.storage_uploader import VideoUploader

logger = logging.getLogger(__name__)


class Analyzer(Protocol):
    async def analyze(self, locator: StoredVideoLocator, model: Optional[str] = None) -> AnalysisResult: ...


class Generator(Protocol):
    async def generate(self, prompt: str, model: Optional[str] = None) -> str: ...


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


@dataclass
class PipelineRun:
    """Mutable record of a single run. Never shared between runs."""

    state: str = "idle"
    history: List[str] = field(default_factory=lambda: ["idle"])
    step_log: Dict[str, float] = field(default_factory=dict)
    error: Optional[PipelineError] = None

    def advance(self, target: str) -> None:
        if not can_transition(self.state, target):
            raise InvalidTransition(f"Cannot move from '{self.state}' to '{target}'")
        self.state = target
        self.history.append(target)

    def fail(self, error: PipelineError) -> None:
        self.error = error
        if can_transition(self.state, "error"):
            self.state = "error"
            self.history.append("error")


def _check_cancelled(cancel_event: Optional[CancelSignal], stage: str) -> None:
    """Raise PipelineCancelled if the caller asked to stop."""
    if cancel_event is not None and cancel_event.is_set():
        raise PipelineCancelled(f"Processing was cancelled before {stage}. Submit the video again to restart.")


class VideoPromptPipeline:
    """Sequences validation, upload, analysis, templating, generation and validation.

    Components are injected so each strategy (Files API or Cloud Storage)
    and each test double plugs in the same way.
    """

    def __init__(
        self,
        uploader: VideoUploader,
        analyzer: Analyzer,
        generator: Generator,
        cleanup: bool = False,
        analysis_model: Optional[str] = None,
        generation_model: Optional[str] = None,
    ):
        self.uploader = uploader
        self.analyzer = analyzer
        self.generator = generator
        self.cleanup = cleanup
        self.analysis_model = analysis_model
        self.generation_model = generation_model

    async def run(
        self,
        asset: VideoAsset,
        progress_callback: Optional[Callable[[str], None]] = None,
        cancel_event: Optional[CancelSignal] = None,
        run: Optional[PipelineRun] = None,
    ) -> PipelineResult:
        """Turn an uploaded video into a validated Veo prompt.

        Args:
            asset: The uploaded video.
            progress_callback: Optional callback for status updates (e.g., CLI spinner)
            cancel_event: Optional asyncio.Event; checked between stages.
            run: Optional PipelineRun to record state into (created if omitted).

        Returns:
            PipelineResult with the prompt object and analysis text.

        Raises:
            PipelineError: Classified error from the failing stage, or
                UnexpectedError wrapping anything unclassified.
        """
        run = run or PipelineRun()
        locator: Optional[StoredVideoLocator] = None
        cancelled = False
        pipeline_start = time.monotonic()

        def enter(state: str) -> None:
            run.advance(state)
            logger.info(f"Pipeline state: {state}")
            if progress_callback:
                progress_callback(STATE_MESSAGES.get(state, state))

        try:
            # Step 1: Validate and upload
            _check_cancelled(cancel_event, "upload")
            enter("uploading")
            step_start = time.monotonic()

            validation = validate_video_file(asset.size, asset.mime_type, asset.filename)
            if not validation.valid:
                raise InputValidationError(validation.reason)

            locator = await self.uploader.upload(asset)
            run.step_log["upload"] = time.monotonic() - step_start
            logger.info(f"Upload step completed in {run.step_log['upload']:.2f}s: {locator.uri}")

            # Step 2: Analysis
            _check_cancelled(cancel_event, "analysis")
            enter("analyzing")
            step_start = time.monotonic()

            analysis = await self.analyzer.analyze(locator, model=self.analysis_model)
            run.step_log["analysis"] = time.monotonic() - step_start
            logger.info(
                f"Analysis step completed in {run.step_log['analysis']:.2f}s "
                f"({analysis.model}, {len(analysis.text)} chars)"
            )

            # Step 3: Template, generate, validate
            _check_cancelled(cancel_event, "generation")
            enter("generating")
            step_start = time.monotonic()

            prompt = build_generation_prompt(analysis.text)
            raw_output = await self.generator.generate(prompt, model=self.generation_model)
            veo_prompt = require_veo_prompt(raw_output)
            run.step_log["generation"] = time.monotonic() - step_start
            logger.info(f"Generation step completed in {run.step_log['generation']:.2f}s")

            enter("completed")
            run.step_log["total"] = time.monotonic() - pipeline_start
            logger.info(f"Pipeline completed successfully in {run.step_log['total']:.2f}s")

            return PipelineResult(
                veo_prompt=veo_prompt,
                analysis_text=analysis.text,
                analysis_model=analysis.model,
                step_durations=dict(run.step_log),
            )

        except PipelineCancelled as e:
            cancelled = True
            logger.info(f"Pipeline cancelled in state {run.state}")
            run.fail(e)
            raise

        except asyncio.CancelledError:
            cancelled = True
            logger.info(f"Pipeline task cancelled in state {run.state}")
            run.fail(PipelineCancelled("Processing was cancelled. Submit the video again to restart."))
            raise

        except PipelineError as e:
            logger.error(f"Pipeline failed in state {run.state}: {type(e).__name__}: {e.message}")
            run.fail(e)
            raise

        except Exception as e:
            logger.error(f"Pipeline failed in state {run.state}: {type(e).__name__}: {str(e)}")
            wrapped = UnexpectedError(
                "An unexpected error occurred while processing the video. Retry the request.",
                detail=f"{type(e).__name__}: {e}",
            )
            run.fail(wrapped)
            raise wrapped from e

        finally:
            if locator is not None and (self.cleanup or cancelled):
                await self._cleanup(locator)

    async def _cleanup(self, locator: StoredVideoLocator) -> None:
        """Delete the uploaded video; failures are logged and dropped."""
        try:
            await self.uploader.delete(locator)
        except Exception as e:
            logger.warning(f"Cleanup of {locator.uri} failed: {type(e).__name__}: {e}")

    async def close(self) -> None:
        """Release network clients held by the components."""
        for component in (self.generator, self.analyzer, self.uploader):
            close = getattr(component, "close", None)
            if close is not None:
                await close()
