"""Validation of raw JSON generation output.

Strips an enclosing code fence, parses the JSON and checks that the ten
required top-level keys are present. No other repair is attempted.
"""

import json
import re

from veoprompt.errors import SchemaValidationError
from veoprompt.schemas.veo_prompt import REQUIRED_FIELDS, ValidationResult, VeoPrompt

_LEADING_FENCE = re.compile(r"^```[\w-]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")


def strip_code_fence(text: str) -> str:
    """Trim text and remove a surrounding ``` or ```json fence if present."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _LEADING_FENCE.sub("", cleaned)
        cleaned = _TRAILING_FENCE.sub("", cleaned)
    return cleaned


def parse_veo_prompt(raw: str) -> ValidationResult:
    """Parse and shape-check raw model output.

    Every failure carries the untouched raw text for debugging.
    """
    try:
        parsed = json.loads(strip_code_fence(raw))
    except ValueError as e:
        return ValidationResult(success=False, error=f"JSON parsing failed: {e}", raw=raw)

    if not isinstance(parsed, dict):
        return ValidationResult(success=False, error="Parsed content is not a valid object", raw=raw)

    missing = [name for name in REQUIRED_FIELDS if name not in parsed]
    if missing:
        return ValidationResult(
            success=False,
            error=f"Missing required fields: {', '.join(missing)}",
            raw=raw,
            missing_fields=missing,
        )

    prompt = VeoPrompt.model_validate(parsed)
    return ValidationResult(success=True, data=prompt.model_dump(by_alias=True))


def require_veo_prompt(raw: str) -> dict:
    """Return the validated prompt object or raise SchemaValidationError."""
    result = parse_veo_prompt(raw)
    if not result.success:
        raise SchemaValidationError(
            f"The generated JSON prompt was invalid ({result.error}). Retry the request.",
            raw=raw,
            detail=result.error,
        )
    return result.data
