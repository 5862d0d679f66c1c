"""Durable storage for uploaded videos.

Defines the VideoUploader interface shared by both analysis strategies
and the Cloud Storage implementation used by the Vertex AI path. The
Gemini Files API implementation lives in gemini_files.py.
"""

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from google.cloud import storage

from veoprompt.errors import ConfigurationError, StorageError
from veoprompt.schemas.video import StoredVideoLocator, VideoAsset

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class VideoUploader(ABC):
    """Uploads a video and can delete it again."""

    @abstractmethod
    async def upload(self, asset: VideoAsset) -> StoredVideoLocator:
        """Persist the asset and return a locator the analysis model can read.

        Raises:
            StorageError: If the upload fails.
            ConfigurationError: If the destination is not configured.
        """
        ...

    @abstractmethod
    async def delete(self, locator: StoredVideoLocator) -> None:
        """Best-effort removal of an uploaded asset. Never raises."""
        ...


def sanitize_filename(filename: str) -> str:
    """Replace every character outside [A-Za-z0-9._-] with '_'."""
    cleaned = _UNSAFE_CHARS.sub("_", filename or "")
    return cleaned or "video"


def build_destination(filename: str, prefix: str = "uploads", now_ms: Optional[int] = None) -> str:
    """Object path of the form '{prefix}/{epoch_millis}_{sanitized_name}'."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    prefix = prefix.strip("/")
    name = f"{now_ms}_{sanitize_filename(filename)}"
    return f"{prefix}/{name}" if prefix else name


class GCSVideoUploader(VideoUploader):
    """Cloud Storage uploader for direct-reference analysis via Vertex AI.

    Writes the whole payload in one request with the declared content
    type. The storage client is created lazily so that constructing the
    uploader never touches credentials.
    """

    def __init__(
        self,
        bucket_name: Optional[str],
        prefix: str = "uploads",
        client: Optional[storage.Client] = None,
        clock_ms: Optional[Callable[[], int]] = None,
    ):
        self.bucket_name = bucket_name
        self.prefix = prefix
        self._client = client
        self._clock_ms = clock_ms

    @property
    def client(self) -> storage.Client:
        """Lazy-load client on first use."""
        if self._client is None:
            self._client = storage.Client()
        return self._client

    def _require_bucket(self) -> str:
        if not self.bucket_name:
            raise ConfigurationError(
                "Cloud Storage bucket is not configured. "
                "Set GCS_BUCKET (or storage.gcs_bucket in config.yaml) to use Vertex AI analysis."
            )
        return self.bucket_name

    async def upload(self, asset: VideoAsset) -> StoredVideoLocator:
        bucket_name = self._require_bucket()
        now_ms = self._clock_ms() if self._clock_ms else None
        destination = build_destination(asset.filename, self.prefix, now_ms=now_ms)
        content_type = asset.mime_type or "video/mp4"

        logger.info(
            "Uploading %s (%d bytes) to gs://%s/%s",
            asset.filename, asset.size, bucket_name, destination,
        )
        try:
            blob = self.client.bucket(bucket_name).blob(destination)
            await asyncio.to_thread(blob.upload_from_string, asset.data, content_type=content_type)
        except Exception as e:
            logger.error(f"GCS upload failed: {type(e).__name__}: {e}")
            raise StorageError(
                f"Could not upload the video to Cloud Storage: {e}. "
                "Check that the bucket exists and the service account can write to it, then retry.",
                detail=str(e),
            ) from e

        return StoredVideoLocator(
            uri=f"gs://{bucket_name}/{destination}",
            mime_type=content_type,
            handle=destination,
            backend="gcs",
        )

    async def delete(self, locator: StoredVideoLocator) -> None:
        if not self.bucket_name or not locator.handle:
            return
        try:
            blob = self.client.bucket(self.bucket_name).blob(locator.handle)
            await asyncio.to_thread(blob.delete)
            logger.info("Deleted gs://%s/%s", self.bucket_name, locator.handle)
        except Exception as e:
            logger.warning(f"Failed to delete {locator.uri}: {e}")
