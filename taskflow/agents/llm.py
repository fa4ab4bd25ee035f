"""
LLM integration for TaskFlow.

The model is reached through a CLI (default: `claude --print`) with the prompt
on stdin. AI is always optional: every caller goes through
guidance_or_fallback() and gets manual guidance when the call fails.
"""

import logging
import os
import shlex
import subprocess
import time
from pathlib import Path
from typing import Callable, Optional, TypeVar

from taskflow.lib.config import AIConfig, DEFAULT_AI_COMMAND
from taskflow.lib.errors import LLMError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_DELAY = 1.0


class LLMClient:
    def __init__(self, command: str = DEFAULT_AI_COMMAND, timeout: int = 120, max_retries: int = 3,
                 cwd: Path | None = None):
        self.command = command
        self.timeout = timeout
        self.max_retries = max_retries
        self.cwd = cwd

    @classmethod
    def from_config(cls, ai: AIConfig, cwd: Path | None = None) -> Optional["LLMClient"]:
        """Build a client, or None when AI is disabled."""
        if not ai.enabled:
            return None
        return cls(command=ai.command, timeout=ai.timeout, max_retries=ai.max_retries, cwd=cwd)

    def complete(self, prompt: str) -> str:
        """
        Run the LLM once and return its text response.

        Passes prompt via stdin to avoid CLI argument length limits.

        Raises:
            LLMError: On spawn failure, timeout, nonzero exit or empty output
        """
        cmd = shlex.split(self.command)

        # Remove ANTHROPIC_API_KEY so Claude uses OAuth credentials instead
        env = {k: v for k, v in os.environ.items() if k != "ANTHROPIC_API_KEY"}

        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.cwd) if self.cwd else None,
                input=prompt,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired:
            raise LLMError(f"LLM command timed out after {self.timeout}s") from None
        except OSError as e:
            raise LLMError(f"Could not run '{self.command}': {e}") from None

        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise LLMError(f"LLM command exited with {result.returncode}" + (f": {stderr}" if stderr else ""))

        text = result.stdout.strip()
        if not text:
            raise LLMError("LLM command returned no output")
        return text

    def ask(self, prompt: str) -> str:
        """complete() with retries."""
        return retry_with_backoff(lambda: self.complete(prompt), max_retries=self.max_retries)


def retry_with_backoff(
    fn: Callable[[], T],
    max_retries: int = 3,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call fn until it succeeds, sleeping base_delay * 2**attempt between tries.

    Only LLMError is retried. The last error propagates once max_retries
    attempts have failed.
    """
    attempts = max(1, max_retries)
    for attempt in range(attempts):
        try:
            return fn()
        except LLMError as e:
            if attempt == attempts - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(f"[LLM] Attempt {attempt + 1}/{attempts} failed: {e.message}. Retrying in {delay:.1f}s")
            sleep(delay)


def guidance_or_fallback(client: LLMClient | None, prompt: str, fallback: str) -> tuple[str, bool]:
    """
    Ask the LLM, falling back to manual text.

    Returns:
        (text, from_llm)
    """
    if client is None:
        return fallback, False
    try:
        return client.ask(prompt), True
    except LLMError as e:
        logger.warning(f"[LLM] Falling back to manual guidance: {e.message}")
        return fallback, False
