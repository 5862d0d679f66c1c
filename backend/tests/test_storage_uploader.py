"""Tests for the Cloud Storage uploader."""

from unittest.mock import MagicMock

import pytest

from veoprompt.errors import ConfigurationError, StorageError
from veoprompt.schemas.video import StoredVideoLocator, VideoAsset
from veoprompt.services.storage_uploader import (
    GCSVideoUploader,
    build_destination,
    sanitize_filename,
)

NOW_MS = 1700000000000


def _mock_client():
    client = MagicMock()
    blob = MagicMock()
    client.bucket.return_value.blob.return_value = blob
    return client, blob


@pytest.mark.parametrize("filename, expected", [
    ("clip.mp4", "clip.mp4"),
    ("my clip (1).mp4", "my_clip__1_.mp4"),
    ("été/vidéo.mov", "_t__vid_o.mov"),
    ("a-b_c.d", "a-b_c.d"),
    ("", "video"),
])
def test_sanitize_filename(filename, expected):
    assert sanitize_filename(filename) == expected


def test_build_destination():
    assert build_destination("my clip.mp4", "uploads", now_ms=NOW_MS) == f"uploads/{NOW_MS}_my_clip.mp4"
    assert build_destination("clip.mp4", "", now_ms=NOW_MS) == f"{NOW_MS}_clip.mp4"


@pytest.mark.asyncio
async def test_upload_writes_single_object():
    client, blob = _mock_client()
    uploader = GCSVideoUploader("my-bucket", client=client, clock_ms=lambda: NOW_MS)
    asset = VideoAsset(data=b"video-bytes", mime_type="video/quicktime", filename="my clip.mov")

    locator = await uploader.upload(asset)

    assert locator.uri == f"gs://my-bucket/uploads/{NOW_MS}_my_clip.mov"
    assert locator.mime_type == "video/quicktime"
    assert locator.handle == f"uploads/{NOW_MS}_my_clip.mov"
    client.bucket.assert_called_once_with("my-bucket")
    client.bucket.return_value.blob.assert_called_once_with(f"uploads/{NOW_MS}_my_clip.mov")
    blob.upload_from_string.assert_called_once_with(b"video-bytes", content_type="video/quicktime")


@pytest.mark.asyncio
async def test_upload_defaults_content_type():
    client, blob = _mock_client()
    uploader = GCSVideoUploader("my-bucket", client=client, clock_ms=lambda: NOW_MS)

    locator = await uploader.upload(VideoAsset(data=b"x", mime_type="", filename="clip"))
    assert locator.mime_type == "video/mp4"
    blob.upload_from_string.assert_called_once_with(b"x", content_type="video/mp4")


@pytest.mark.asyncio
async def test_missing_bucket_is_configuration_error(mp4_asset):
    client, blob = _mock_client()
    uploader = GCSVideoUploader(None, client=client)

    with pytest.raises(ConfigurationError, match="GCS_BUCKET"):
        await uploader.upload(mp4_asset)
    blob.upload_from_string.assert_not_called()


@pytest.mark.asyncio
async def test_client_failure_is_storage_error(mp4_asset):
    client, blob = _mock_client()
    blob.upload_from_string.side_effect = RuntimeError("403 Forbidden")
    uploader = GCSVideoUploader("my-bucket", client=client)

    with pytest.raises(StorageError) as exc_info:
        await uploader.upload(mp4_asset)
    assert "403 Forbidden" in exc_info.value.message
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_delete_is_best_effort():
    client, blob = _mock_client()
    blob.delete.side_effect = RuntimeError("404 Not Found")
    uploader = GCSVideoUploader("my-bucket", client=client)
    locator = StoredVideoLocator(uri="gs://my-bucket/uploads/1_clip.mp4", mime_type="video/mp4", handle="uploads/1_clip.mp4")

    await uploader.delete(locator)
    blob.delete.assert_called_once_with()
