"""
LLM streaming types, dataclasses, and exceptions.

WHAT: Standard type definitions for streaming generation
WHY: Decoders, sessions and callers share one vocabulary
HOW: Dataclasses for decode/session events, str-enums for modes and states, custom exceptions for errors
"""

from typing import TypedDict, Literal, Union
from dataclasses import dataclass, field
from enum import Enum


# Message format compatible with OpenAI-style APIs
ChatMessage = TypedDict(
    "ChatMessage",
    {"role": Literal["system", "user", "assistant"], "content": str}
)


class StreamMode(str, Enum):
    """Wire protocol spoken by the LLM server."""
    NATIVE = "native"   # Ollama /api/generate, JSON lines
    OPENAI = "openai"   # /v1/chat/completions, SSE deltas


class SessionState(str, Enum):
    """Lifecycle of one streaming generation."""
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    DONE = "done"
    ERRORED = "error"


# ========== Decode outcomes ==========

@dataclass(frozen=True)
class Fragment:
    """Incremental piece of generated text."""
    text: str


@dataclass(frozen=True)
class Completion:
    """Protocol-level end of generation (done flag or [DONE] sentinel)."""


@dataclass(frozen=True)
class Ignored:
    """Record that produced nothing: partial line, bad JSON, empty delta."""
    reason: str
    raw: str = ""


DecodeEvent = Union[Fragment, Completion, Ignored]


# ========== Requests ==========

@dataclass
class GenerationRequest:
    """One user-initiated generation."""
    model: str
    prompt: str
    temperature: float = 0.6
    mode: StreamMode = StreamMode.NATIVE
    messages: list[ChatMessage] | None = None

    def __post_init__(self):
        self.mode = StreamMode(self.mode)

    def chat_messages(self) -> list[ChatMessage]:
        """Messages for chat-style endpoints (prompt as a single user turn by default)."""
        if self.messages:
            return list(self.messages)
        return [{"role": "user", "content": self.prompt}]


@dataclass
class TransportRequest:
    """Everything the transport needs to open a byte stream."""
    url: str
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    body: dict = field(default_factory=dict)


# ========== Results ==========

@dataclass
class SessionEvent:
    """Session callback re-expressed as a value (for async iteration)."""
    kind: Literal["fragment", "completion", "failure"]
    text: str
    token_count: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.kind != "fragment"


@dataclass
class SiteTriple:
    """Generated website split into its three sources."""
    html: str
    css: str
    js: str


@dataclass
class ProviderStatus:
    """Health status of an LLM server."""
    available: bool
    base_url: str
    models: list[str] | None = None
    error: str | None = None


# Provider exceptions
class ProviderTimeoutError(Exception):
    """Request to provider timed out."""
    pass


class ProviderUnavailableError(Exception):
    """Provider is not reachable or down."""
    pass


class ProviderResponseError(Exception):
    """Provider returned an invalid or error response."""
    pass
