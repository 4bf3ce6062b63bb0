"""LLM streaming layer."""

from .types import (
    ChatMessage,
    StreamMode,
    SessionState,
    Fragment,
    Completion,
    Ignored,
    DecodeEvent,
    GenerationRequest,
    TransportRequest,
    SessionEvent,
    SiteTriple,
    ProviderStatus,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderResponseError,
)
from .decoders import (
    StreamDecoder,
    LineDelimitedDecoder,
    EventStreamDecoder,
    get_decoder,
)
from .session import StreamSession
from .transport import TransportSource, HttpxTransport
from .provider import LLMProvider
from .provider_factory import get_provider, reset_provider

__all__ = [
    "ChatMessage",
    "StreamMode",
    "SessionState",
    "Fragment",
    "Completion",
    "Ignored",
    "DecodeEvent",
    "GenerationRequest",
    "TransportRequest",
    "SessionEvent",
    "SiteTriple",
    "ProviderStatus",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "ProviderResponseError",
    "StreamDecoder",
    "LineDelimitedDecoder",
    "EventStreamDecoder",
    "get_decoder",
    "StreamSession",
    "TransportSource",
    "HttpxTransport",
    "LLMProvider",
    "get_provider",
    "reset_provider",
]
