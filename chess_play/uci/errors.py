"""
Engine session error kinds.

Every failure of an engine session is reported as an EngineSessionError
carrying one ErrorKind, so callers can branch on the kind instead of
matching exception types or messages.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Why an engine session did not produce a usable move."""
    SPAWN_FAILURE = "spawn_failure"
    STREAM_CLOSED_PREMATURELY = "stream_closed_prematurely"
    UNPARSABLE_BEST_MOVE = "unparsable_best_move"
    NO_LEGAL_MOVE = "no_legal_move"
    ENGINE_PROPOSED_ILLEGAL_MOVE = "engine_proposed_illegal_move"
    ENGINE_TIMEOUT = "engine_timeout"


class EngineSessionError(RuntimeError):
    """
    Failure of a single engine session.

    Attributes:
        kind: Which failure occurred
        cause: Underlying exception (e.g. the OSError from a failed spawn)
    """

    def __init__(self, kind: ErrorKind, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.cause = cause
