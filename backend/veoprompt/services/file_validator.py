"""Pre-flight checks for uploaded videos.

Runs before any network call. validate_video_file() is a pure predicate;
the orchestrator turns an invalid result into an InputValidationError.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# 2 GiB, the Gemini Files API per-file ceiling
MAX_FILE_SIZE = 2 * 1024 * 1024 * 1024

SUPPORTED_MIME_TYPES = frozenset({
    "video/mp4",
    "video/mov",
    "video/avi",
    "video/mkv",
    "video/webm",
    "video/quicktime",
})

_SUFFIX_MIME_MAP = {
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/avi",
    ".mkv": "video/mkv",
    ".webm": "video/webm",
}


@dataclass(frozen=True)
class FileValidation:
    valid: bool
    reason: Optional[str] = None


def validate_video_file(size: int, mime_type: Optional[str], filename: Optional[str]) -> FileValidation:
    """Check size, MIME type and filename of an incoming video.

    Args:
        size: Byte size of the upload.
        mime_type: Declared MIME type.
        filename: Original filename.

    Returns:
        FileValidation with valid=False and a remediation hint on failure.
    """
    if size > MAX_FILE_SIZE:
        return FileValidation(
            False,
            f"File is too large ({size / 1024 ** 3:.2f} GiB). "
            "Maximum size is 2 GiB; compress or trim the video and try again.",
        )

    if not mime_type or mime_type.lower() not in SUPPORTED_MIME_TYPES:
        return FileValidation(
            False,
            f"Unsupported file type '{mime_type or 'unknown'}'. "
            "Upload an MP4, MOV, AVI, MKV or WebM video.",
        )

    if not filename or not filename.strip():
        return FileValidation(False, "File name is missing. Upload a named video file.")

    return FileValidation(True)


def guess_video_mime(path: Path) -> str:
    """Map a file suffix to a video MIME type.

    Unknown suffixes map to application/octet-stream so the validator
    rejects them instead of guessing.
    """
    return _SUFFIX_MIME_MAP.get(path.suffix.lower(), "application/octet-stream")
