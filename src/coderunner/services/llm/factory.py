from __future__ import annotations

from ...config.settings import RunnerSettings
from ...domain.errors import InternalError, InvalidError
from .anthropic_client import AnthropicLLMClient
from .base import LLMClientProtocol
from .openai_client import OpenAILLMClient


def available_models() -> list[str]:
    return sorted(RunnerSettings.MODEL_ALIASES)


def create_llm_client(model: str, settings: RunnerSettings) -> LLMClientProtocol:
    """Resolve a model alias (`sonnet`, `4o`, `o1`, `o1-mini`) to a client."""
    try:
        provider, model_id = settings.MODEL_ALIASES[model]
    except KeyError:
        raise InvalidError(f"Invalid model: {model} (choose from {', '.join(available_models())})") from None

    if provider == "anthropic":
        if not settings.anthropic_api_key:
            raise InternalError("ANTHROPIC_API_KEY not set")
        return AnthropicLLMClient(
            settings.anthropic_api_key,
            model_id,
            base_url=settings.anthropic_base_url,
            max_tokens=settings.max_output_tokens,
            timeout_seconds=settings.request_timeout_seconds,
        )

    if not settings.openai_api_key:
        raise InternalError("OPENAI_API_KEY not set")
    return OpenAILLMClient(
        settings.openai_api_key,
        model_id,
        base_url=settings.openai_base_url,
        timeout_seconds=settings.request_timeout_seconds,
    )
