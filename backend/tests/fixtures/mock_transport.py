"""
Fake transport and callback recorder for deterministic testing.

WHAT: In-memory TransportSource with scripted chunks and failures
WHY: Test decoders and sessions without a running LLM server
HOW: Implement the TransportSource protocol over a list of byte chunks
"""

from contextlib import asynccontextmanager
from typing import List, Tuple

from slate.llm.types import TransportRequest


class FakeTransport:
    """
    In-memory TransportSource.

    Yields the given chunks in order; optionally raises ``fail_on_open``
    when opened or ``fail_after`` once the chunks are exhausted.
    """

    def __init__(self, chunks=(), *, fail_on_open: Exception | None = None, fail_after: Exception | None = None):
        self.chunks = [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]
        self.fail_on_open = fail_on_open
        self.fail_after = fail_after
        self.requests: List[TransportRequest] = []
        self.chunks_read = 0
        self.closed = False

    @asynccontextmanager
    async def open(self, request: TransportRequest):
        self.requests.append(request)
        if self.fail_on_open is not None:
            raise self.fail_on_open
        try:
            yield self._iter()
        finally:
            self.closed = True

    async def _iter(self):
        for chunk in self.chunks:
            self.chunks_read += 1
            yield chunk
        if self.fail_after is not None:
            raise self.fail_after


class Recorder:
    """Collects session callbacks in call order."""

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []

    def on_fragment(self, text: str):
        self.calls.append(("fragment", text))

    def on_completion(self, full_text: str):
        self.calls.append(("completion", full_text))

    def on_failure(self, message: str):
        self.calls.append(("failure", message))

    @property
    def fragments(self) -> List[str]:
        return [text for kind, text in self.calls if kind == "fragment"]

    @property
    def terminals(self) -> List[Tuple[str, str]]:
        return [call for call in self.calls if call[0] != "fragment"]


def split_every(data: str, size: int) -> List[bytes]:
    """Cut the UTF-8 encoding of data into fixed-size byte chunks."""
    raw = data.encode("utf-8")
    return [raw[i:i + size] for i in range(0, len(raw), size)]


NATIVE_STREAM = (
    '{"model":"test-model","response":"Hi","done":false}\n'
    '{"model":"test-model","response":" there","done":true}\n'
)

OPENAI_STREAM = (
    'data: {"choices":[{"delta":{"content":"Hel"}}]}\n\n'
    'data: {"choices":[{"delta":{"content":"lo"}}]}\n\n'
    'data: [DONE]\n\n'
)
