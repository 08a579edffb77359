"""Claude CLI subprocess backend implementation."""

import asyncio
import json
import logging
import time
from typing import Optional

from .base import LLMBackend, LLMRequest, LLMResponse

logger = logging.getLogger(__name__)


class ClaudeCLIBackend(LLMBackend):
    """Run one-shot prompts through ``claude --print``."""

    def __init__(
        self,
        executable: str = "claude",
        model: str = "sonnet",
        timeout: int = 300,
    ):
        self.executable = executable
        self.model = model
        self.timeout = timeout

    def _build_command(self, model: str, request: LLMRequest) -> list:
        cmd = [
            self.executable,
            "--print",  # Non-interactive mode - write to stdout and exit
            "--output-format", "json",
            "--model", model,
        ]
        if request.system_prompt:
            cmd.extend(["--append-system-prompt", request.system_prompt])
        return cmd

    @staticmethod
    def _parse_output(stdout: str) -> tuple:
        """Extract (text, input_tokens, output_tokens) from ``--output-format json``."""
        try:
            payload = json.loads(stdout)
        except json.JSONDecodeError:
            return stdout, 0, 0
        if not isinstance(payload, dict):
            return stdout, 0, 0
        usage = payload.get("usage") or {}
        return (
            payload.get("result", "") or "",
            int(usage.get("input_tokens", 0) or 0),
            int(usage.get("output_tokens", 0) or 0),
        )

    async def complete(self, request: LLMRequest) -> LLMResponse:
        start_time = time.time()
        model = request.model or self.model
        cmd = self._build_command(model, request)
        process: Optional[asyncio.subprocess.Process] = None

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=request.working_dir,
            )
            stdout, stderr = await asyncio.wait_for(
                process.communicate(request.prompt.encode()),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            if process is not None and process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
            return LLMResponse(
                content="",
                model_used=model,
                input_tokens=0,
                output_tokens=0,
                finish_reason="error",
                latency_ms=(time.time() - start_time) * 1000,
                success=False,
                error=f"Claude CLI timed out after {self.timeout} seconds",
            )
        except OSError as e:
            logger.error(f"Failed to start Claude CLI '{self.executable}': {e}")
            return LLMResponse(
                content="",
                model_used=model,
                input_tokens=0,
                output_tokens=0,
                finish_reason="error",
                latency_ms=(time.time() - start_time) * 1000,
                success=False,
                error=f"{self.executable} not found or not executable: {e}",
            )

        latency_ms = (time.time() - start_time) * 1000
        stdout_text = stdout.decode(errors="replace")
        stderr_text = stderr.decode(errors="replace")

        if process.returncode != 0:
            error_parts = [f"Exit code {process.returncode}"]
            if stderr_text.strip():
                error_parts.append(f"STDERR: {stderr_text.strip()[:1000]}")
            logger.error(f"Claude CLI failed: returncode={process.returncode}")
            return LLMResponse(
                content=stdout_text,
                model_used=model,
                input_tokens=0,
                output_tokens=0,
                finish_reason="error",
                latency_ms=latency_ms,
                success=False,
                error=" | ".join(error_parts),
            )

        content, input_tokens, output_tokens = self._parse_output(stdout_text)
        return LLMResponse(
            content=content,
            model_used=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            finish_reason="stop",
            latency_ms=latency_ms,
            success=True,
        )
