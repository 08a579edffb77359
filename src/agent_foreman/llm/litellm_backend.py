"""LiteLLM direct API backend implementation.

Text-only completion using the litellm Python library, for teams that
prefer calling a model API over shelling out to the Claude CLI.
"""

import asyncio
import logging
import time
from typing import Optional

from .base import LLMBackend, LLMRequest, LLMResponse

logger = logging.getLogger(__name__)

try:
    import litellm
    LITELLM_AVAILABLE = True
except ImportError:
    LITELLM_AVAILABLE = False


class LiteLLMBackend(LLMBackend):
    """LLM backend using litellm.acompletion()."""

    DEFAULT_TIMEOUT = 300

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        if not LITELLM_AVAILABLE:
            raise ImportError(
                "litellm is not installed. Install it with: "
                "pip install 'agent-foreman[litellm]'"
            )
        self.model = model
        self.api_key = api_key
        self.api_base = api_base
        self.timeout = timeout

    async def complete(self, request: LLMRequest) -> LLMResponse:
        start_time = time.time()
        model = request.model or self.model

        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        kwargs = {
            "model": model,
            "messages": messages,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = await asyncio.wait_for(
                litellm.acompletion(**kwargs),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return self._failure(model, start_time, f"LiteLLM call timed out after {self.timeout} seconds")
        except Exception as e:
            logger.error(f"LiteLLM call failed: {e}")
            return self._failure(model, start_time, str(e))

        usage = response.usage
        choice = response.choices[0]
        return LLMResponse(
            content=choice.message.content or "",
            model_used=model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            finish_reason=choice.finish_reason or "stop",
            latency_ms=(time.time() - start_time) * 1000,
        )

    @staticmethod
    def _failure(model: str, start_time: float, error: str) -> LLMResponse:
        return LLMResponse(
            content="",
            model_used=model,
            input_tokens=0,
            output_tokens=0,
            finish_reason="error",
            latency_ms=(time.time() - start_time) * 1000,
            success=False,
            error=error,
        )
