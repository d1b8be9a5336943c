"""Slot state variants: Idle, Loading, Success(text), Error(kind, message)."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


class ErrorKind(enum.Enum):
    VALIDATION         = "validation"          # blank input, no request sent
    TRANSPORT          = "transport"           # network / non-2xx
    SAFETY_BLOCKED     = "safety_blocked"      # content policy refusal
    MALFORMED_RESPONSE = "malformed_response"  # unexpected payload shape


@dataclass(frozen=True)
class Idle:
    label = "idle"


@dataclass(frozen=True)
class Loading:
    label = "loading"


@dataclass(frozen=True)
class Success:
    text: str
    label = "success"


@dataclass(frozen=True)
class Error:
    kind: ErrorKind
    message: str
    label = "error"


TerminalState = Union[Success, Error]
SlotState = Union[Idle, Loading, Success, Error]


@dataclass(frozen=True)
class TransportFailure:
    """A request that never produced a usable 2xx body.

    ``status_code``/``status_text`` are set for HTTP errors; ``detail``
    carries the transport's native error text for network failures.
    """

    status_code: int | None = None
    status_text: str = ""
    detail: str = ""
