"""
LLM provider factory with singleton pattern.

WHAT: Factory to get the shared Ollama provider
WHY: One HTTP connection pool per process
HOW: Lazily construct and cache the provider, log creation
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .provider import LLMProvider

# Singleton instance
_provider_instance: "LLMProvider | None" = None


def get_provider() -> "LLMProvider":
    """
    Get the provider singleton.

    Returns:
        OllamaProvider instance configured from settings
    """
    global _provider_instance

    if _provider_instance is None:
        # Import here to avoid circular dependencies
        from .ollama import OllamaProvider
        from ..utils.logger import get_logger

        logger = get_logger(__name__)
        _provider_instance = OllamaProvider()
        logger.info(f"LLM provider initialized: ollama ({_provider_instance.base_url})")

    return _provider_instance


def reset_provider() -> None:
    """Reset the provider singleton (useful for testing)."""
    global _provider_instance
    _provider_instance = None


async def shutdown_provider() -> None:
    """Close the singleton's HTTP client if one was created."""
    global _provider_instance
    if _provider_instance is not None:
        await _provider_instance.close()
        _provider_instance = None
