"""Error kinds raised or reported by the casino engine."""

from __future__ import annotations

from enum import Enum

__all__ = [
    "ErrorKind",
    "IllegalAction",
    "NoValidAction",
    "AmbiguousCapture",
    "InvalidBuildOverflow",
    "OwnershipViolation",
    "StackLimitExceeded",
    "OutOfTurn",
    "MalformedTarget",
    "InvalidBuild",
]


class ErrorKind(str, Enum):
    """Machine readable reason attached to a rejected move."""

    NO_VALID_ACTION = "NoValidAction"
    AMBIGUOUS_CAPTURE = "AmbiguousCapture"
    INVALID_BUILD_OVERFLOW = "InvalidBuildOverflow"
    OWNERSHIP_VIOLATION = "OwnershipViolation"
    STACK_LIMIT_EXCEEDED = "StackLimitExceeded"
    OUT_OF_TURN = "OutOfTurn"
    MALFORMED_TARGET = "MalformedTarget"
    INVALID_BUILD = "InvalidBuild"


class IllegalAction(RuntimeError):
    """Raised when an action cannot be applied to the current state."""

    kind: ErrorKind = ErrorKind.NO_VALID_ACTION


class NoValidAction(IllegalAction):
    kind = ErrorKind.NO_VALID_ACTION


class AmbiguousCapture(IllegalAction):
    kind = ErrorKind.AMBIGUOUS_CAPTURE


class InvalidBuildOverflow(IllegalAction):
    """Raised when an overflowed staging stack is finalized."""

    kind = ErrorKind.INVALID_BUILD_OVERFLOW


class OwnershipViolation(IllegalAction):
    kind = ErrorKind.OWNERSHIP_VIOLATION


class StackLimitExceeded(IllegalAction):
    kind = ErrorKind.STACK_LIMIT_EXCEEDED


class OutOfTurn(IllegalAction):
    kind = ErrorKind.OUT_OF_TURN


class MalformedTarget(IllegalAction):
    """Raised when a referenced card, build or stack is not part of the state."""

    kind = ErrorKind.MALFORMED_TARGET


class InvalidBuild(IllegalAction):
    """Raised when strict build validation rejects a finalization."""

    kind = ErrorKind.INVALID_BUILD
