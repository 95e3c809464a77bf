from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .base import LLMClientError, RateLimitedError


LOG = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicLLMClient:
    """
    Minimal client for the Anthropic Messages API over httpx.

    A 429 response raises `RateLimitedError`; any other non-200 status raises
    `LLMClientError` carrying the status and body.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        base_url: str = "https://api.anthropic.com/v1/messages",
        max_tokens: int = 2000,
        timeout_seconds: float = 30,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if not api_key:
            raise ValueError("Anthropic API key must be provided.")
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self._api_key = api_key
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    def _headers(self) -> Dict[str, str]:
        return {
            "content-type": "application/json",
            "anthropic-version": ANTHROPIC_VERSION,
            "x-api-key": self._api_key,
        }

    def prompt(self, text: str) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": text}],
        }
        try:
            response = self._http.post(self.base_url, json=payload, headers=self._headers())
        except httpx.HTTPError as exc:
            raise LLMClientError(f"Anthropic request failed: {exc}") from exc

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            raise RateLimitedError(f"Anthropic rate limit hit: {response.text[:200]}")
        if response.status_code != httpx.codes.OK:
            raise LLMClientError(
                f"Anthropic API error: {response.status_code} {response.reason_phrase}\n"
                f"Response body: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise LLMClientError(f"error decoding response: {exc}\nResponse body: {response.text}") from exc

        for block in data.get("content") or []:
            if isinstance(block, dict) and block.get("type") == "text":
                return block.get("text", "")
        raise LLMClientError("no content in response")

    def close(self) -> None:
        self._http.close()
