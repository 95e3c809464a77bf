from __future__ import annotations

from typing import Protocol


class LLMClientError(RuntimeError):
    """Raised when an LLM provider returns an invalid response."""


class RateLimitedError(LLMClientError):
    """The provider rejected the request because of rate limiting."""


class LLMClientProtocol(Protocol):
    """Minimal interface for text-generation providers."""

    def prompt(self, text: str) -> str:  # pragma: no cover
        ...
