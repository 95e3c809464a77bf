from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from ...config.settings import RunnerSettings
from ...domain.errors import InternalError, RateLimitExhaustedError
from ...domain.models import RunReport
from ...domain.tree import ScopeTree
from ..files import is_binary
from .base import LLMClientError, LLMClientProtocol, RateLimitedError
from .rate_limit import TokenBucket


LOG = logging.getLogger(__name__)

ResponseCallback = Callable[[str, str], None]


def build_prompt(prompt: str, content: str) -> str:
    return f"{prompt}\n\nFile Content:\n{content}"


class RateLimitedInvoker:
    """
    Feeds every in-scope file through an LLM, one call at a time.

    Each call is paid for from a shared token bucket sized to the
    provider's per-minute budget. Runs are not transactional: when a file
    fails, responses already handed to the callback stay where they are.
    """

    def __init__(
        self,
        client: LLMClientProtocol,
        settings: RunnerSettings,
        *,
        bucket: Optional[TokenBucket] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.settings = settings
        self.bucket = bucket or TokenBucket(settings.tokens_per_minute, settings.refill_interval_seconds)
        self._sleep = sleep

    def estimate_tokens(self, text: str) -> float:
        return len(text) * self.settings.chars_to_tokens

    def run(
        self,
        tree: ScopeTree,
        prompt: str,
        callback: ResponseCallback,
        root: Path = Path("."),
    ) -> RunReport:
        report = RunReport()

        for rel_path in tree.collect_included_paths():
            file_path = root / rel_path
            try:
                content = file_path.read_bytes()
            except FileNotFoundError:
                # Deleted files legitimately show up in diff-built scopes.
                LOG.info("Skipping %s: file no longer exists", rel_path)
                report.skipped_missing.append(rel_path)
                continue
            except OSError as exc:
                raise InternalError(f"Failed to read file: {rel_path}") from exc

            if is_binary(content):
                LOG.debug("Skipping binary file %s", rel_path)
                report.skipped_binary.append(rel_path)
                continue

            full_prompt = build_prompt(prompt, content.decode("utf-8", errors="replace"))
            LOG.info("Calling LLM for %s", rel_path)
            response = self.prompt(full_prompt, label=rel_path)

            try:
                callback(rel_path, response)
            except Exception as exc:
                raise InternalError(f"Callback failed for file: {rel_path}") from exc
            report.processed.append(rel_path)

        return report

    def prompt(self, text: str, *, label: str = "") -> str:
        """
        Pay for `text` from the bucket and send it.

        Provider throttling drains the bucket (forcing a wait for the next
        window) and retries the same request up to `rate_limit_max_attempts`
        times in total.
        """
        cost = self.estimate_tokens(text)
        attempts = max(1, self.settings.rate_limit_max_attempts)
        last_error: Optional[RateLimitedError] = None

        for attempt in range(1, attempts + 1):
            self.bucket.acquire(cost)
            try:
                return self.client.prompt(text)
            except RateLimitedError as exc:
                last_error = exc
                LOG.warning("Provider throttled %s (attempt %d/%d)", label or "request", attempt, attempts)
                self.bucket.drain()
                if attempt < attempts and self.settings.rate_limit_backoff_seconds > 0:
                    self._sleep(self.settings.rate_limit_backoff_seconds)
            except LLMClientError as exc:
                raise InternalError(f"LLM processing failed for file: {label}") from exc

        raise RateLimitExhaustedError(
            f"Rate limit retries exhausted after {attempts} attempts for file: {label}"
        ) from last_error
