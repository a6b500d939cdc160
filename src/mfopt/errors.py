from __future__ import annotations

import enum
from typing import Any


class ErrorKind(enum.Enum):
    """Possible error kinds."""

    INVALID_INPUT = "invalid_input"
    UNKNOWN_OBSERVATION = "unknown_observation"
    BUG = "bug"
    OTHER = "other"


class OptimizerError(Exception):
    """Base class of every error raised by this package."""

    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, message: str, **context: Any):
        if context:
            details = ", ".join(f"{k}={v!r}" for k, v in context.items())
            message = f"{message} ({details})"
        super().__init__(message)
        self.context = dict(context)

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message for every kind.
        return str(self.args[0]) if self.args else ""


class InvalidInputError(OptimizerError, ValueError):
    kind = ErrorKind.INVALID_INPUT


class UnknownObservationError(OptimizerError, KeyError):
    kind = ErrorKind.UNKNOWN_OBSERVATION


class BugError(OptimizerError, RuntimeError):
    """An internal invariant was violated; never expected in correct operation."""

    kind = ErrorKind.BUG
