"""Response classification for Gemini generateContent replies.

Maps a raw boundary result into one slot outcome:
- Success(text)                      usable candidate text present
- Error(SAFETY_BLOCKED, ...)         no usable text, safety finish/block reason
- Error(MALFORMED_RESPONSE, ...)     no usable text, no safety flag
- Error(TRANSPORT, ...)              network or non-2xx failure

Usable text always wins over a safety flag on the same payload.
"""

from __future__ import annotations

from typing import Any

from dreamsong._state import ErrorKind, Error, Success, TerminalState, TransportFailure


SAFETY_FINISH_REASONS = frozenset({"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"})

SAFETY_BLOCKED_MESSAGE = (
    "The response was blocked for safety reasons. "
    "Please try rephrasing your dream description."
)
MALFORMED_RESPONSE_MESSAGE = "The AI returned an invalid or empty response."


def transport_error_message(failure: TransportFailure) -> str:
    if failure.status_code is not None:
        return f"API request failed with status {failure.status_code}: {failure.status_text}"
    return failure.detail or "API request failed."


def _candidates(payload: Any) -> list[Any]:
    if not isinstance(payload, dict):
        return []
    candidates = payload.get("candidates")
    if not isinstance(candidates, list):
        return []
    return candidates


def _candidate_text(candidate: Any) -> str | None:
    """First non-empty string ``text`` in ``candidate.content.parts``."""
    if not isinstance(candidate, dict):
        return None
    content = candidate.get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list):
        return None
    for part in parts:
        if isinstance(part, dict):
            text = part.get("text")
            if isinstance(text, str) and text:
                return text
    return None


def _is_safety_blocked(payload: Any) -> bool:
    for candidate in _candidates(payload):
        if isinstance(candidate, dict) and candidate.get("finishReason") in SAFETY_FINISH_REASONS:
            return True
    # Blocked prompts come back with no candidates and a promptFeedback block
    if isinstance(payload, dict):
        feedback = payload.get("promptFeedback")
        if isinstance(feedback, dict) and feedback.get("blockReason"):
            return True
    return False


def classify_response(result: TransportFailure | Any) -> TerminalState:
    """Classify a boundary result into a terminal slot state.

    Args:
        result: A ``TransportFailure`` or the decoded JSON payload (any
            value, ``None`` when the body was not JSON).

    Returns:
        ``Success`` or ``Error``. Never raises.
    """
    if isinstance(result, TransportFailure):
        return Error(ErrorKind.TRANSPORT, transport_error_message(result))

    for candidate in _candidates(result):
        text = _candidate_text(candidate)
        if text is not None:
            return Success(text)

    if _is_safety_blocked(result):
        return Error(ErrorKind.SAFETY_BLOCKED, SAFETY_BLOCKED_MESSAGE)

    return Error(ErrorKind.MALFORMED_RESPONSE, MALFORMED_RESPONSE_MESSAGE)
