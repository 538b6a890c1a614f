"""
TextModel — provider-aware free-text completion for the email writers.

Handles:
  - Provider-aware client construction (Anthropic or OpenAI-compatible)
  - Retry with exponential backoff on rate limits and timeouts
  - Pulling the first text part out of the provider's response shape

Callers decide what a failure means; this module only raises.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Optional

from app.config import Settings, get_settings
from app.errors import ConfigurationError

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent / "prompts"


def load_prompt(filename: str) -> str:
    """Load a prompt template from the prompts/ directory."""
    path = _PROMPTS_DIR / filename
    if not path.exists():
        raise FileNotFoundError(f"Prompt file not found: {path}")
    return path.read_text(encoding="utf-8").strip()


def extract_first_text(response: Any) -> Optional[str]:
    """
    First text part of the first candidate, or None if the response
    doesn't have the expected shape.

    Anthropic: response.content[0].text (type == "text")
    OpenAI:    response.choices[0].message.content
    """
    content = getattr(response, "content", None)
    if isinstance(content, list):
        if not content:
            return None
        block = content[0]
        if getattr(block, "type", None) != "text":
            return None
        text = getattr(block, "text", None)
        return text if isinstance(text, str) and text.strip() else None

    choices = getattr(response, "choices", None)
    if isinstance(choices, list) and choices:
        message = getattr(choices[0], "message", None)
        text = getattr(message, "content", None)
        return text if isinstance(text, str) and text.strip() else None

    return None


class TextModel:
    """Thin async wrapper over the configured LLM provider."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.provider = settings.llm_provider
        self.model = settings.llm_model
        self.max_tokens = settings.llm_max_tokens
        self.max_retries = max(1, settings.llm_max_retries)

        if self.provider == "openai":
            import openai
            from openai import AsyncOpenAI

            base_url = settings.openai_base_url or None
            api_key = settings.openai_api_key or "ollama"
            self.client = AsyncOpenAI(base_url=base_url, api_key=api_key)
            self._transient = (openai.RateLimitError, openai.APITimeoutError)
        else:
            import anthropic
            from anthropic import AsyncAnthropic

            if not settings.anthropic_api_key:
                raise ConfigurationError("ANTHROPIC_API_KEY is not defined")
            self.client = AsyncAnthropic(api_key=settings.anthropic_api_key)
            self._transient = (anthropic.RateLimitError, anthropic.APITimeoutError)

    async def _create(self, prompt: str) -> Any:
        messages = [{"role": "user", "content": prompt}]
        if self.provider == "openai":
            return await self.client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=messages,
            )
        return await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=messages,
        )

    async def generate(self, prompt: str, label: str = "completion") -> Optional[str]:
        """
        Send one user prompt and return the first text part, or None when the
        response has no usable text. Transient errors are retried; anything
        else propagates.
        """
        start = time.monotonic()
        for attempt in range(self.max_retries):
            try:
                response = await self._create(prompt)
            except self._transient as e:
                if attempt + 1 >= self.max_retries:
                    raise
                wait = 2 ** attempt
                logger.warning(
                    f"{label}: transient error (attempt {attempt + 1}): {e}. "
                    f"Retrying in {wait}s..."
                )
                await asyncio.sleep(wait)
                continue

            latency_ms = int((time.monotonic() - start) * 1000)
            logger.info(f"{label}: completed in {latency_ms}ms (attempt {attempt + 1})")
            return extract_first_text(response)

        return None
