from __future__ import annotations

import logging
from typing import Dict, List, Optional

from openai import OpenAI, OpenAIError, RateLimitError

from .base import LLMClientError, RateLimitedError


LOG = logging.getLogger(__name__)


class OpenAILLMClient:
    """
    Thin wrapper around the OpenAI Chat Completions API.

    Keeps the pipeline agnostic of the SDK surface and maps throttling to
    `RateLimitedError` so the invoker can wait for its budget and retry.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        base_url: Optional[str] = None,
        timeout_seconds: int = 30,
    ) -> None:
        if not api_key:
            raise ValueError("OpenAI API key must be provided.")

        client_kwargs = {"api_key": api_key, "timeout": timeout_seconds, "max_retries": 0}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self.model = model

    def prompt(self, text: str) -> str:
        return self.chat([{"role": "user", "content": text}])

    def chat(self, messages: List[Dict[str, str]]) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except RateLimitError as exc:
            raise RateLimitedError(f"OpenAI rate limit hit: {exc}") from exc
        except OpenAIError as exc:
            raise LLMClientError(f"OpenAI request failed: {exc}") from exc

        text = self._extract_text(response)
        if not text:
            raise LLMClientError("OpenAI response did not include any choices.")
        return text

    @staticmethod
    def _extract_text(response: object) -> str:
        choices = getattr(response, "choices", None)
        if not choices:
            LOG.debug("OpenAI response missing choices: %s", response)
            return ""
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None) or ""

    def close(self) -> None:
        self._client.close()
