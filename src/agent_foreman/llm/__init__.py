"""LLM backend implementations."""

from ..core.config import LLMConfig
from .base import LLMBackend, LLMRequest, LLMResponse
from .claude_cli_backend import ClaudeCLIBackend

# LiteLLMBackend imported lazily to avoid ImportError when litellm not installed


def create_backend(config: LLMConfig) -> LLMBackend:
    """Build the backend selected by ``llm.mode``."""
    if config.mode == "litellm":
        from .litellm_backend import LiteLLMBackend
        return LiteLLMBackend(
            model=config.litellm_model,
            api_key=config.litellm_api_key,
            api_base=config.litellm_api_base,
            timeout=config.litellm_timeout,
        )
    return ClaudeCLIBackend(
        executable=config.claude_cli_executable,
        model=config.claude_cli_model,
        timeout=config.claude_cli_timeout,
    )


__all__ = [
    "LLMBackend",
    "LLMRequest",
    "LLMResponse",
    "ClaudeCLIBackend",
    "create_backend",
]
