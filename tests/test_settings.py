from __future__ import annotations

from pathlib import Path
from typing import Any

from coderunner.config.settings import RunnerSettings, get_settings


def test_defaults_without_environment(monkeypatch: Any) -> None:
    for name in (
        "CODERUNNER_DIR",
        "CODERUNNER_MODEL",
        "CODERUNNER_TOKENS_PER_MINUTE",
        "CODERUNNER_TIMEOUT",
        "CODERUNNER_RATE_LIMIT_ATTEMPTS",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.storage_dir == Path(".coderunner")
    assert settings.default_model == "sonnet"
    assert settings.tokens_per_minute == 80_000
    assert settings.anthropic_api_key is None


def test_environment_overrides(monkeypatch: Any) -> None:
    monkeypatch.setenv("CODERUNNER_DIR", ".scopes")
    monkeypatch.setenv("CODERUNNER_MODEL", "4o")
    monkeypatch.setenv("CODERUNNER_TOKENS_PER_MINUTE", "30000")
    monkeypatch.setenv("CODERUNNER_RATE_LIMIT_ATTEMPTS", "2")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

    settings = get_settings()

    assert settings.storage_dir == Path(".scopes")
    assert settings.default_model == "4o"
    assert settings.tokens_per_minute == 30_000
    assert settings.rate_limit_max_attempts == 2
    assert settings.anthropic_api_key == "sk-ant"


def test_malformed_numbers_keep_defaults(monkeypatch: Any) -> None:
    monkeypatch.setenv("CODERUNNER_TOKENS_PER_MINUTE", "lots")
    monkeypatch.setenv("CODERUNNER_TIMEOUT", "-5")

    settings = get_settings()

    assert settings.tokens_per_minute == 80_000
    assert settings.request_timeout_seconds == 30


def test_renamed_storage_dir_is_ignored_too() -> None:
    assert ".scopes" in RunnerSettings(storage_dir=Path(".scopes")).ignore_patterns
    assert RunnerSettings().ignore_patterns == RunnerSettings.DEFAULT_IGNORE_PATTERNS
