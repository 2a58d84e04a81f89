"""
OpenAI-compatible AI gateway client.

``GatewayClient`` is the raw ``POST /chat/completions`` wrapper built on
``httpx.AsyncClient``; it translates HTTP failures into the upstream error
taxonomy. ``GatewayLLM`` adapts it to the :class:`BaseLLM` interface.
"""

import json
import logging

import httpx

from memsketch.core.config import get_settings
from memsketch.core.exceptions import (
    ConfigurationError,
    UpstreamConnectError,
    UpstreamError,
    UpstreamPaymentRequiredError,
    UpstreamRateLimitedError,
)
from memsketch.core.utils import strip_code_fences
from memsketch.services.llm.base import BaseLLM, ToolSpec, connect_retry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def _first_message(data: dict) -> dict:
    choices = data.get("choices") or []
    if not choices:
        return {}
    return choices[0].get("message") or {}


def message_content(data: dict) -> str | None:
    """Text content of the first choice, or None.

    Some models return content as a list of typed parts; text parts are
    concatenated.
    """
    content = _first_message(data).get("content")
    if isinstance(content, list):
        parts = [p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text"]
        content = "".join(parts) if parts else None
    return content if isinstance(content, str) else None


def tool_call_arguments(data: dict) -> str | None:
    """Raw JSON arguments string of the first tool call, or None."""
    calls = _first_message(data).get("tool_calls") or []
    if not calls:
        return None
    return (calls[0].get("function") or {}).get("arguments")


def message_images(data: dict) -> list[str]:
    """Image URLs (usually base64 data URLs) attached to the first choice."""
    urls = []
    for image in _first_message(data).get("images") or []:
        url = (image.get("image_url") or {}).get("url")
        if url:
            urls.append(url)
    return urls


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GatewayClient:
    """Async client for the AI gateway's chat completions endpoint.

    Args:
        base_url: Gateway root URL (falls back to settings).
        api_key: Bearer key for the gateway (falls back to settings).
        timeout: Per-request timeout in seconds.
        connect_attempts: Attempts made when the connection is refused.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        connect_attempts: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.gateway_api_key
        self._connect_attempts = connect_attempts or settings.gateway_connect_attempts
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.gateway_base_url).rstrip("/"),
            timeout=timeout or settings.gateway_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, body: dict) -> httpx.Response:
        try:
            return await self._client.post(
                "/chat/completions",
                json=body,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.ConnectError as exc:
            logger.warning("AI gateway unreachable: %s", exc)
            raise UpstreamConnectError(f"Could not reach the AI gateway: {exc}") from exc
        except httpx.TimeoutException as exc:
            logger.warning("AI gateway timeout: %s", exc)
            raise UpstreamError(f"AI gateway request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            logger.warning("AI gateway transport error: %s", exc)
            raise UpstreamError(f"AI gateway transport error: {exc}") from exc

    async def chat(self, model: str, messages: list[dict], **extra) -> dict:
        """Send a chat completion request and return the decoded JSON body.

        Args:
            model: Model identifier, e.g. ``google/gemini-2.5-flash``.
            messages: OpenAI-style message list.
            **extra: Additional body fields (``tools``, ``tool_choice``, ``modalities``).

        Raises:
            ConfigurationError: If no gateway API key is configured.
            UpstreamRateLimitedError: On HTTP 429.
            UpstreamPaymentRequiredError: On HTTP 402.
            UpstreamError: On any other failure.
        """
        if not self._api_key:
            raise ConfigurationError("gateway_api_key")

        body = {"model": model, "messages": messages, **extra}
        async for attempt in connect_retry(self._connect_attempts):
            with attempt:
                response = await self._post(body)

        if response.status_code == 429:
            logger.warning("AI gateway rate limited (model=%s)", model)
            raise UpstreamRateLimitedError()
        if response.status_code == 402:
            logger.warning("AI gateway payment required (model=%s)", model)
            raise UpstreamPaymentRequiredError()
        if response.is_error:
            logger.error(
                "AI gateway error %s (model=%s): %s",
                response.status_code,
                model,
                response.text[:500],
            )
            raise UpstreamError(f"AI gateway returned {response.status_code}")

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("AI gateway returned a non-JSON body") from exc


# ---------------------------------------------------------------------------
# BaseLLM adapter
# ---------------------------------------------------------------------------


class GatewayLLM(BaseLLM):
    """LLM provider backed by the AI gateway.

    Args:
        client: A shared :class:`GatewayClient`.
        model: Model used for both text and structured calls.
    """

    def __init__(self, client: GatewayClient, model: str | None = None) -> None:
        self._client = client
        self._model = model or get_settings().scene_model

    @staticmethod
    def _messages(prompt: str, system: str | None) -> list[dict]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response."""
        data = await self._client.chat(
            self._model, self._messages(prompt, kwargs.pop("system", None)), **kwargs
        )
        return message_content(data) or ""

    async def extract(self, prompt: str, tool: ToolSpec, **kwargs) -> dict:
        """Force a function call to *tool* and decode its arguments.

        Falls back to parsing the message content as JSON when the model
        answers in prose instead of calling the tool.

        Raises:
            json.JSONDecodeError: If the arguments are not valid JSON.
        """
        data = await self._client.chat(
            self._model,
            self._messages(prompt, kwargs.pop("system", None)),
            tools=[
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.parameters,
                    },
                }
            ],
            tool_choice={"type": "function", "function": {"name": tool.name}},
            **kwargs,
        )

        raw = tool_call_arguments(data)
        if raw is None:
            content = message_content(data)
            if not content or not content.strip():
                return {}
            raw = strip_code_fences(content)
        parsed = json.loads(raw)
        return parsed if isinstance(parsed, dict) else {}
