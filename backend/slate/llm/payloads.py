"""
Request descriptors for streaming generation.

WHAT: Map a GenerationRequest to endpoint, headers and JSON body per mode
WHY: The session and transport stay protocol-agnostic
HOW: One builder per StreamMode, base URLs and API key from settings
"""

from .types import GenerationRequest, StreamMode, TransportRequest
from ..core.config import settings


def build_native_request(request: GenerationRequest, *, stream: bool = True) -> TransportRequest:
    """Ollama native /api/generate (JSON lines when streaming)."""
    return TransportRequest(
        url=f"{settings.OLLAMA_BASE_URL.rstrip('/')}/api/generate",
        headers={"Content-Type": "application/json"},
        body={
            "model": request.model,
            "prompt": request.prompt,
            "stream": stream,
            "options": {"temperature": request.temperature},
        },
    )


def build_openai_request(request: GenerationRequest) -> TransportRequest:
    """OpenAI-compatible /chat/completions (SSE deltas)."""
    return TransportRequest(
        url=f"{settings.OPENAI_BASE_URL.rstrip('/')}/chat/completions",
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
        },
        body={
            "model": request.model,
            "messages": request.chat_messages(),
            "temperature": request.temperature,
            "stream": True,
        },
    )


def build_transport_request(request: GenerationRequest) -> TransportRequest:
    """
    Build the streaming request for the request's mode.

    Raises:
        ValueError: If mode is unknown
    """
    mode = StreamMode(request.mode)
    if mode is StreamMode.NATIVE:
        return build_native_request(request)
    return build_openai_request(request)
