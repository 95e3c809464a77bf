from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import ClassVar, Dict, Optional, Tuple


@dataclass
class RunnerSettings:
    """
    Central configuration for scope building and the prompt pipeline.

    Paths are resolved against the repository root by the callers, so the
    default storage directory lands next to the code being scoped.
    """

    storage_dir: Path = Path(".coderunner")
    default_model: str = "sonnet"
    tokens_per_minute: int = 80_000
    refill_interval_seconds: float = 60.0
    chars_to_tokens: float = 0.5
    request_timeout_seconds: int = 30
    max_output_tokens: int = 2000
    rate_limit_max_attempts: int = 5
    rate_limit_backoff_seconds: float = 1.0
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    anthropic_base_url: str = "https://api.anthropic.com/v1/messages"

    DEFAULT_IGNORE_PATTERNS: ClassVar[Tuple[str, ...]] = (
        ".git",
        ".DS_Store",
        "._.DS_Store",
        "Thumbs.db",
        "desktop.ini",
        "*.swp",  # vim swap files
        "*~",  # editor backups
        ".vscode",
        ".idea",
        "*.tmp",
        "*.temp",
        ".env",
        "node_modules",
        ".coderunner",
    )

    # alias -> (provider, provider model id)
    MODEL_ALIASES: ClassVar[Dict[str, Tuple[str, str]]] = {
        "sonnet": ("anthropic", "claude-3-5-sonnet-latest"),
        "4o": ("openai", "gpt-4o"),
        "o1": ("openai", "o1-preview"),
        "o1-mini": ("openai", "o1-mini"),
    }

    @property
    def ignore_patterns(self) -> Tuple[str, ...]:
        """Default rules plus the storage directory when it was renamed."""
        name = self.storage_dir.name
        if name and name not in self.DEFAULT_IGNORE_PATTERNS:
            return self.DEFAULT_IGNORE_PATTERNS + (name,)
        return self.DEFAULT_IGNORE_PATTERNS


def _int_from_env(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def get_settings() -> RunnerSettings:
    settings = RunnerSettings()

    storage_dir = os.getenv("CODERUNNER_DIR")
    if storage_dir:
        settings.storage_dir = Path(storage_dir)

    model = os.getenv("CODERUNNER_MODEL")
    if model:
        settings.default_model = model

    tokens_per_minute = _int_from_env("CODERUNNER_TOKENS_PER_MINUTE")
    if tokens_per_minute and tokens_per_minute > 0:
        settings.tokens_per_minute = tokens_per_minute

    timeout = _int_from_env("CODERUNNER_TIMEOUT")
    if timeout and timeout > 0:
        settings.request_timeout_seconds = timeout

    attempts = _int_from_env("CODERUNNER_RATE_LIMIT_ATTEMPTS")
    if attempts and attempts > 0:
        settings.rate_limit_max_attempts = attempts

    openai_api_key = os.getenv("OPENAI_API_KEY")
    if openai_api_key:
        settings.openai_api_key = openai_api_key

    openai_base = os.getenv("OPENAI_BASE_URL")
    if openai_base:
        settings.openai_base_url = openai_base

    anthropic_api_key = os.getenv("ANTHROPIC_API_KEY")
    if anthropic_api_key:
        settings.anthropic_api_key = anthropic_api_key

    anthropic_base = os.getenv("ANTHROPIC_BASE_URL")
    if anthropic_base:
        settings.anthropic_base_url = anthropic_base

    return settings
