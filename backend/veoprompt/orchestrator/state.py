"""State machine constants and transition logic for the pipeline orchestrator.

Runs move strictly forward through the stages; ``error`` is absorbing
and reachable from any state except ``idle``.
"""

from typing import Dict

# State transitions for active pipeline steps
STEP_TRANSITIONS: Dict[str, str] = {
    "idle": "uploading",
    "uploading": "analyzing",
    "analyzing": "generating",
    "generating": "completed",
}

TERMINAL_STATES = {"completed", "error"}

# Progress messages sent to the caller on entry to each state
STATE_MESSAGES = {
    "uploading": "Uploading video...",
    "analyzing": "Analyzing video with Gemini...",
    "generating": "Generating Veo 3 JSON prompt...",
    "completed": "Done",
}


class InvalidTransition(Exception):
    """Raised when a run tries to skip or reverse a stage."""


def can_transition(current: str, target: str) -> bool:
    """Check whether a run may move from current to target.

    Args:
        current: Current pipeline state
        target: Requested next state

    Returns:
        True for the next sequential stage, or for ``error`` from any
        non-idle, non-terminal state.
    """
    if target == "error":
        return current not in TERMINAL_STATES and current != "idle"
    return STEP_TRANSITIONS.get(current) == target


def next_state(current: str) -> str:
    """Return the stage that follows current.

    Raises:
        InvalidTransition: If current has no successor.
    """
    if current not in STEP_TRANSITIONS:
        raise InvalidTransition(f"No transition out of state '{current}'")
    return STEP_TRANSITIONS[current]
