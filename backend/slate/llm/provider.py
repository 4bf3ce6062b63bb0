"""
LLM provider protocol definition.

WHAT: Abstract interface for LLM servers
WHY: Decouple calling code from a specific server implementation
HOW: Protocol with async ping/generate_site and a session factory
"""

from typing import Protocol

from .session import FailureCallback, CompletionCallback, FragmentCallback, StreamSession
from .types import GenerationRequest, ProviderStatus, SiteTriple


class LLMProvider(Protocol):
    """Protocol defining the interface all LLM providers must implement."""

    async def ping(self) -> ProviderStatus:
        """Check provider health and availability."""
        ...

    def open_session(
        self,
        request: GenerationRequest,
        *,
        on_fragment: FragmentCallback | None = None,
        on_completion: CompletionCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> StreamSession:
        """Build a fresh streaming session for one generation."""
        ...

    async def generate_site(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float | None = None
    ) -> SiteTriple:
        """Generate a complete website (non-streaming)."""
        ...

    async def close(self) -> None:
        """Release HTTP resources."""
        ...
