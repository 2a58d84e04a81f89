"""
Claude LLM provider implementation.

Uses the Anthropic Python SDK (``anthropic.AsyncAnthropic``) to interact with
the Claude API. Structured extraction goes through forced ``tool_use``.
The SDK's own retries are disabled; only refused connections are retried.
"""

import asyncio
import logging

from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropic,
    RateLimitError,
)

from memsketch.core.config import get_settings
from memsketch.core.exceptions import (
    ConfigurationError,
    UpstreamConnectError,
    UpstreamError,
    UpstreamPaymentRequiredError,
    UpstreamRateLimitedError,
)
from memsketch.services.llm.base import BaseLLM, ToolSpec, connect_retry

logger = logging.getLogger(__name__)


class ClaudeLLM(BaseLLM):
    """Claude API LLM provider with a concurrency semaphore."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.3,
        max_concurrent: int = 5,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.claude_api_key
        if not self._api_key:
            raise ConfigurationError("claude_api_key")
        self._model = model or settings.claude_model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._connect_attempts = settings.gateway_connect_attempts
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._client = AsyncAnthropic(api_key=self._api_key, max_retries=0)

    async def _send(self, **kwargs):
        """Send one request, translating SDK errors into the upstream taxonomy."""
        async with self._semaphore:
            try:
                return await self._client.messages.create(**kwargs)
            except APITimeoutError as exc:
                logger.warning("Claude API timeout: %s", exc)
                raise UpstreamError(f"Claude API request timed out: {exc}") from exc
            except APIConnectionError as exc:
                logger.warning("Claude API connection error: %s", exc)
                raise UpstreamConnectError(f"Failed to connect to Claude API: {exc}") from exc
            except RateLimitError as exc:
                logger.warning("Claude API rate limit hit: %s", exc)
                raise UpstreamRateLimitedError() from exc
            except APIStatusError as exc:
                if exc.status_code == 402:
                    raise UpstreamPaymentRequiredError() from exc
                logger.error("Claude API error %s: %s", exc.status_code, exc)
                raise UpstreamError(f"Claude API error: {exc.status_code}") from exc
            except APIError as exc:
                logger.error("Claude API error: %s", exc)
                raise UpstreamError(f"Claude API error: {exc}") from exc

    async def _call_api(self, user_prompt: str, system: str | None = None, **extra):
        kwargs: dict = {
            "model": self._model,
            "max_tokens": extra.pop("max_tokens", None) or self._max_tokens,
            "temperature": extra.pop("temperature", self._temperature),
            "messages": [{"role": "user", "content": user_prompt}],
            **extra,
        }
        if system:
            kwargs["system"] = system

        async for attempt in connect_retry(self._connect_attempts):
            with attempt:
                return await self._send(**kwargs)

    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response."""
        response = await self._call_api(prompt, system=kwargs.pop("system", None), **kwargs)
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

    async def extract(self, prompt: str, tool: ToolSpec, **kwargs) -> dict:
        """Force a ``tool_use`` block for *tool* and return its input."""
        response = await self._call_api(
            prompt,
            system=kwargs.pop("system", None),
            tools=[
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.parameters,
                }
            ],
            tool_choice={"type": "tool", "name": tool.name},
            **kwargs,
        )
        for block in response.content:
            if getattr(block, "type", "") == "tool_use" and block.name == tool.name:
                return dict(block.input)
        return {}
