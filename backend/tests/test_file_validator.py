"""Tests for pre-flight video validation."""

from pathlib import Path

import pytest

from veoprompt.services.file_validator import (
    MAX_FILE_SIZE,
    SUPPORTED_MIME_TYPES,
    guess_video_mime,
    validate_video_file,
)


def test_max_size_is_two_gibibytes():
    assert MAX_FILE_SIZE == 2 * 1024 ** 3


@pytest.mark.parametrize("mime_type", sorted(SUPPORTED_MIME_TYPES))
def test_accepts_every_supported_type(mime_type):
    result = validate_video_file(10 * 1024 * 1024, mime_type, "clip")
    assert result.valid
    assert result.reason is None


def test_size_at_limit_is_accepted():
    assert validate_video_file(MAX_FILE_SIZE, "video/mp4", "clip.mp4").valid


@pytest.mark.parametrize("mime_type", ["video/mp4", "image/png", "", None])
def test_oversize_rejected_regardless_of_type(mime_type):
    result = validate_video_file(MAX_FILE_SIZE + 1, mime_type, "clip.mp4")
    assert not result.valid
    assert "2 GiB" in result.reason
    assert "compress" in result.reason


@pytest.mark.parametrize("size", [0, 1, 10 * 1024 * 1024, MAX_FILE_SIZE])
@pytest.mark.parametrize("mime_type", ["image/png", "audio/mpeg", "video/x-flv", "application/octet-stream", "", None])
def test_unsupported_type_rejected_regardless_of_size(size, mime_type):
    result = validate_video_file(size, mime_type, "clip")
    assert not result.valid
    assert "MP4" in result.reason


@pytest.mark.parametrize("filename", ["", "   ", None])
def test_missing_filename_rejected(filename):
    result = validate_video_file(1024, "video/mp4", filename)
    assert not result.valid
    assert "name" in result.reason


def test_guess_video_mime():
    assert guess_video_mime(Path("holiday.MOV")) == "video/quicktime"
    assert guess_video_mime(Path("clip.webm")) == "video/webm"
    assert guess_video_mime(Path("notes.txt")) == "application/octet-stream"
