from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID = "INVALID"
    INTERNAL = "INTERNAL"
    UNAVAILABLE = "UNAVAILABLE"


class RunnerError(Exception):
    """
    Base class for every error surfaced to the command line.

    `message` is the short, user-facing text. Internal errors keep the
    underlying cause (`__cause__`) so the CLI can show full detail.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def is_internal(self) -> bool:
        return self.kind == ErrorKind.INTERNAL


class NotFoundError(RunnerError, LookupError):
    """A scope, commit context, or file does not exist."""

    kind = ErrorKind.NOT_FOUND


class InvalidError(RunnerError, ValueError):
    """Malformed persisted data, reserved scope name, or unknown model."""

    kind = ErrorKind.INVALID


class InternalError(RunnerError, RuntimeError):
    """I/O, serialization, or collaborator subprocess failure."""

    kind = ErrorKind.INTERNAL


class UnavailableError(RunnerError):
    """A required external tool (git, an editor) is missing."""

    kind = ErrorKind.UNAVAILABLE


class RateLimitExhaustedError(InternalError):
    """The provider kept throttling after every allowed retry."""
