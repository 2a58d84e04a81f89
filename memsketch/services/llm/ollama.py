"""
Ollama LLM provider implementation.

Uses the Ollama Python SDK (``ollama.AsyncClient``) to interact with a
locally running Ollama server. Structured extraction passes the tool's
JSON Schema as Ollama's ``format`` so the reply is constrained to it.
"""

import json
import logging

import httpx
from ollama import AsyncClient, ResponseError

from memsketch.core.config import get_settings
from memsketch.core.exceptions import (
    UpstreamConnectError,
    UpstreamError,
    UpstreamRateLimitedError,
)
from memsketch.core.utils import strip_code_fences
from memsketch.services.llm.base import BaseLLM, ToolSpec, connect_retry

logger = logging.getLogger(__name__)


class OllamaLLM(BaseLLM):
    """Ollama local LLM provider.

    Connects to a locally running Ollama server via its REST API.
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        temperature: float = 0.3,
    ) -> None:
        """Initialize the Ollama LLM provider.

        Args:
            base_url: Ollama server URL (falls back to settings if not provided).
            model: Model name to use (e.g. "llama3.2").
            temperature: Sampling temperature (0.0–1.0).
        """
        settings = get_settings()
        self._base_url = base_url or settings.ollama_base_url
        self._model = model or settings.ollama_model
        self._temperature = temperature
        self._connect_attempts = settings.gateway_connect_attempts
        self._client = AsyncClient(host=self._base_url)

    async def _send(self, messages: list[dict[str, str]], **options) -> str:
        fmt = options.pop("format", None)
        temperature = options.pop("temperature", None)
        try:
            response = await self._client.chat(
                model=self._model,
                messages=messages,
                format=fmt,
                options={
                    "temperature": temperature if temperature is not None else self._temperature
                },
            )
            return response.message.content or ""

        except ConnectionError as exc:
            logger.warning("Ollama connection error (%s): %s", self._base_url, exc)
            raise UpstreamConnectError(
                f"Failed to connect to Ollama at {self._base_url}: {exc}"
            ) from exc
        except (TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Ollama timeout (%s): %s", self._base_url, exc)
            raise UpstreamError(f"Ollama request timed out ({self._base_url}): {exc}") from exc
        except ResponseError as exc:
            if exc.status_code == 429:
                raise UpstreamRateLimitedError() from exc
            logger.error("Ollama response error: %s", exc)
            raise UpstreamError(f"Ollama error: {exc}") from exc
        except Exception as exc:
            logger.error("Unexpected Ollama error: %s", exc)
            raise UpstreamError(f"Ollama error: {exc}") from exc

    async def _call_api(self, messages: list[dict[str, str]], **options) -> str:
        async for attempt in connect_retry(self._connect_attempts):
            with attempt:
                return await self._send(messages, **options)

    @staticmethod
    def _messages(prompt: str, system: str | None) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response."""
        messages = self._messages(prompt, kwargs.pop("system", None))
        return await self._call_api(messages, temperature=kwargs.pop("temperature", None))

    async def extract(self, prompt: str, tool: ToolSpec, **kwargs) -> dict:
        """Constrain the reply to the tool's parameter schema and decode it.

        Raises:
            json.JSONDecodeError: If the model returns malformed JSON.
        """
        system = kwargs.pop("system", None)
        instruction = f"Respond with the arguments for `{tool.name}`: {tool.description}."
        messages = self._messages(prompt, f"{system}\n\n{instruction}" if system else instruction)
        raw = await self._call_api(
            messages,
            format=tool.parameters,
            temperature=kwargs.pop("temperature", None),
        )
        if not raw.strip():
            return {}
        parsed = json.loads(strip_code_fences(raw))
        return parsed if isinstance(parsed, dict) else {}
