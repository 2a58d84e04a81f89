"""
Abstract base class for LLM providers.

All LLM implementations (AI gateway, Claude, Ollama) implement this
interface, so the scene extractor does not care which backend answers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from memsketch.core.exceptions import UpstreamConnectError


@dataclass(frozen=True)
class ToolSpec:
    """A function-calling tool the model is forced to call.

    Attributes:
        name: Tool name the model must call.
        description: What the tool is for.
        parameters: JSON Schema of the tool arguments.
    """

    name: str
    description: str
    parameters: dict = field(default_factory=dict)


def connect_retry(attempts: int) -> AsyncRetrying:
    """Retry policy shared by all providers.

    Only :class:`UpstreamConnectError` is retried. Rate limits, quota
    errors and upstream failures surface on the first occurrence.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(UpstreamConnectError),
        reraise=True,
    )


class BaseLLM(ABC):
    """Interface that every LLM provider must implement."""

    @abstractmethod
    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response.

        Args:
            prompt: The user prompt to send to the model.
            **kwargs: Provider-specific options (system, temperature, etc.).

        Returns:
            The model's text response.
        """

    @abstractmethod
    async def extract(self, prompt: str, tool: ToolSpec, **kwargs) -> dict:
        """Return arguments the model produced for *tool*.

        Args:
            prompt: The user prompt.
            tool: Tool the model is constrained to call.
            **kwargs: Provider-specific options (system, temperature, etc.).

        Returns:
            The parsed argument object, or an empty dict if the model
            produced none.
        """
