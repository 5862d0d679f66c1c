"""Gemini Files API uploader (upload-and-poll).

Uploaded files start in PROCESSING and cannot be referenced by a
generation call until they become ACTIVE, so upload() polls the file
status before returning the locator.
"""

import asyncio
import io
import logging
import time
from typing import Awaitable, Callable, Optional

from google import genai
from google.genai import types

from veoprompt.errors import ErrorKind, FileProcessingError, StorageError
from veoprompt.schemas.video import StoredVideoLocator, VideoAsset
from veoprompt.services.storage_uploader import VideoUploader

logger = logging.getLogger(__name__)


def _state_name(state) -> str:
    """Normalize a FileState enum, plain string or None to an upper-case name."""
    if state is None:
        return ""
    value = getattr(state, "value", state)
    return str(value).upper()


def normalize_file_name(handle: str) -> str:
    """Reduce a Files API URI to its 'files/<id>' resource name."""
    if "/files/" in handle:
        return "files/" + handle.split("/files/", 1)[1].split("?", 1)[0]
    return handle


def classify_upload_error(exc: Exception) -> StorageError:
    """Map an upload failure onto a user-facing StorageError."""
    message = str(exc)
    lowered = message.lower()
    if "quota" in lowered or "limit" in lowered:
        return StorageError(
            "Upload quota reached on the Gemini Files API. Wait a few minutes and retry.",
            kind=ErrorKind.QUOTA_EXCEEDED,
            detail=message,
        )
    if "expired" in lowered:
        return StorageError(
            "The uploaded file has expired. Upload the video again.",
            kind=ErrorKind.UPLOAD_EXPIRED,
            detail=message,
        )
    if "size" in lowered:
        return StorageError(
            "The video exceeds the 2 GB upload limit. Compress the video and retry.",
            kind=ErrorKind.FILE_TOO_LARGE,
            detail=message,
        )
    return StorageError(f"File upload failed: {message}. Retry the upload.", detail=message)


class GeminiFileUploader(VideoUploader):
    """Uploads videos to the Gemini Files API and waits for activation."""

    def __init__(
        self,
        client: genai.Client,
        poll_interval: float = 1.0,
        poll_timeout: float = 60.0,
        default_display_name: str = "uploaded_video",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self.default_display_name = default_display_name
        self._sleep = sleep
        self._clock = clock

    async def upload(self, asset: VideoAsset) -> StoredVideoLocator:
        display_name = asset.filename or self.default_display_name
        logger.info(
            "Uploading %s (%d bytes, %s) to Gemini Files API",
            display_name, asset.size, asset.mime_type,
        )
        try:
            uploaded = await self.client.aio.files.upload(
                file=io.BytesIO(asset.data),
                config=types.UploadFileConfig(
                    mime_type=asset.mime_type,
                    display_name=display_name,
                ),
            )
        except Exception as e:
            logger.error(f"Files API upload failed: {type(e).__name__}: {e}")
            raise classify_upload_error(e) from e

        name = getattr(uploaded, "name", None)
        if not name:
            return StoredVideoLocator(
                uri=uploaded.uri,
                mime_type=uploaded.mime_type or asset.mime_type,
                handle=None,
                backend="gemini_files",
            )

        try:
            active = await self.wait_for_active(name)
        except BaseException:
            # The file already exists remotely; the caller never gets a locator for it
            await self.delete(StoredVideoLocator(
                uri=uploaded.uri,
                mime_type=uploaded.mime_type or asset.mime_type,
                handle=name,
                backend="gemini_files",
            ))
            raise
        return StoredVideoLocator(
            uri=active.uri,
            mime_type=active.mime_type or asset.mime_type,
            handle=name,
            backend="gemini_files",
        )

    async def wait_for_active(self, name: str) -> types.File:
        """Poll files.get until the file is ACTIVE.

        Raises:
            FileProcessingError: If the file FAILED or did not activate in time.
        """
        start = self._clock()
        polls = 0
        while True:
            file = await self.client.aio.files.get(name=name)
            polls += 1
            state = _state_name(file.state)

            if state == "ACTIVE":
                logger.info(f"File {name} active after {polls} poll(s)")
                return file

            if state == "FAILED":
                error = getattr(file, "error", None)
                reason = getattr(error, "message", None) or "File processing failed"
                raise FileProcessingError(
                    f"Gemini could not process the video: {reason}. "
                    "Check that the file is a playable video and upload it again.",
                    detail=reason,
                )

            if self._clock() - start > self.poll_timeout:
                raise FileProcessingError(
                    "Video processing is taking too long. Wait a moment and retry.",
                    kind=ErrorKind.FILE_PROCESSING_TIMEOUT,
                )

            logger.debug(f"File {name} state={state or 'UNKNOWN'}, polling again")
            await self._sleep(self.poll_interval)

    async def delete(self, locator: StoredVideoLocator) -> None:
        handle = locator.handle or locator.uri
        if not handle:
            return
        name = normalize_file_name(handle)
        try:
            await self.client.aio.files.delete(name=name)
            logger.info(f"Deleted Gemini file {name}")
        except Exception as e:
            logger.warning(f"Failed to delete Gemini file {name}: {e}")
