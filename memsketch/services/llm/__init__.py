"""
LLM module - Language model abstraction layer.

Factory function for creating LLM instances based on provider configuration.
"""

from .base import BaseLLM, ToolSpec
from .gateway import GatewayClient

__all__ = ["BaseLLM", "GatewayClient", "ToolSpec", "create_llm"]


def create_llm(provider: str, gateway: GatewayClient | None = None, **kwargs) -> BaseLLM:
    """
    Factory function to create LLM instance based on provider.

    Args:
        provider: LLM provider name ("gateway", "claude", "ollama")
        gateway: Shared gateway client, required for the "gateway" provider
        **kwargs: Provider-specific configuration

    Returns:
        BaseLLM implementation instance

    Raises:
        ValueError: If provider is unknown or a gateway client is missing
    """
    if provider == "gateway":
        if gateway is None:
            raise ValueError("The gateway provider needs a GatewayClient")
        from .gateway import GatewayLLM

        return GatewayLLM(gateway, **kwargs)
    elif provider == "claude":
        from .claude import ClaudeLLM

        return ClaudeLLM(**kwargs)
    elif provider == "ollama":
        from .ollama import OllamaLLM

        return OllamaLLM(**kwargs)
    else:
        raise ValueError(f"Unknown LLM provider: {provider}")
