"""
Unit tests for streaming handler utilities.

WHAT: Test iter_session and coalesce_fragments
WHY: Pull-style consumers (SSE relay) must see the same lifecycle as callbacks
HOW: Run sessions over an in-memory transport and collect the events
"""

import asyncio

import pytest

from slate.llm.decoders import EventStreamDecoder, LineDelimitedDecoder
from slate.llm.session import StreamSession
from slate.llm.streaming_handler import coalesce_fragments, iter_session
from slate.llm.types import ProviderResponseError, SessionEvent, SessionState, TransportRequest
from tests.fixtures.mock_transport import FakeTransport, NATIVE_STREAM, OPENAI_STREAM

REQUEST = TransportRequest(url="http://ollama.test/v1/chat/completions")


async def collect(events) -> list[SessionEvent]:
    return [event async for event in events]


@pytest.mark.unit
class TestIterSession:
    """Test callback-to-iterator bridge."""

    @pytest.mark.asyncio
    async def test_yields_fragments_then_completion(self):
        """Test the event sequence of a successful stream."""
        session = StreamSession(FakeTransport([OPENAI_STREAM]), REQUEST, EventStreamDecoder())

        events = await collect(iter_session(session))

        assert [(e.kind, e.text) for e in events] == [
            ("fragment", "Hel"),
            ("fragment", "lo"),
            ("completion", "Hello"),
        ]
        assert [e.token_count for e in events] == [1, 2, 2]
        assert session.state is SessionState.DONE

    @pytest.mark.asyncio
    async def test_yields_failure(self):
        """Test transport failure arrives as a single failure event."""
        transport = FakeTransport(fail_on_open=ProviderResponseError("HTTP 503 Service Unavailable"))
        session = StreamSession(transport, REQUEST, LineDelimitedDecoder())

        events = await collect(iter_session(session))

        assert [(e.kind, e.text) for e in events] == [("failure", "HTTP 503 Service Unavailable")]
        assert events[0].is_terminal

    @pytest.mark.asyncio
    async def test_closing_early_cancels_session(self):
        """Test abandoning the iterator cancels the running session."""
        release = asyncio.Event()

        class SlowTransport(FakeTransport):
            async def _iter(self):
                yield b'{"response":"first"}\n'
                await release.wait()
                yield b'{"response":"never","done":true}\n'

        transport = SlowTransport()
        session = StreamSession(transport, REQUEST, LineDelimitedDecoder())
        events = iter_session(session)

        first = await events.__anext__()
        await events.aclose()

        assert first.text == "first"
        assert session.state is SessionState.ERRORED
        assert session.error == "cancelled"
        assert transport.closed is True


@pytest.mark.unit
class TestCoalesceFragments:
    """Test fragment batching."""

    async def make_events(self, texts: list[str], terminal: SessionEvent | None):
        for i, text in enumerate(texts, start=1):
            yield SessionEvent(kind="fragment", text=text, token_count=i)
        if terminal is not None:
            yield terminal

    @pytest.mark.asyncio
    async def test_batches_and_flushes_before_terminal(self):
        """Test full batches, a partial batch, then the terminal event."""
        texts = ["a", "b", "c", "d", "e", "f", "g"]
        terminal = SessionEvent(kind="completion", text="abcdefg", token_count=7)

        events = await collect(coalesce_fragments(self.make_events(texts, terminal), max_batch=3))

        assert [(e.kind, e.text, e.token_count) for e in events] == [
            ("fragment", "abc", 3),
            ("fragment", "def", 6),
            ("fragment", "g", 7),
            ("completion", "abcdefg", 7),
        ]

    @pytest.mark.asyncio
    async def test_batch_of_one_is_passthrough(self):
        """Test max_batch=1 keeps every fragment separate."""
        terminal = SessionEvent(kind="failure", text="boom", token_count=2)

        events = await collect(coalesce_fragments(self.make_events(["x", "y"], terminal), max_batch=1))

        assert [(e.kind, e.text) for e in events] == [
            ("fragment", "x"),
            ("fragment", "y"),
            ("failure", "boom"),
        ]

    @pytest.mark.asyncio
    async def test_preserves_content(self):
        """Test batching never loses or reorders text."""
        texts = ["The", " ", "quick", " ", "brown", " ", "fox"]
        terminal = SessionEvent(kind="completion", text="The quick brown fox", token_count=7)

        events = await collect(coalesce_fragments(self.make_events(texts, terminal), max_batch=5))

        assert "".join(e.text for e in events if e.kind == "fragment") == "The quick brown fox"

    @pytest.mark.asyncio
    async def test_source_without_terminal_flushes(self):
        """Test leftovers are flushed when the source just ends."""
        events = await collect(coalesce_fragments(self.make_events(["a", "b"], None), max_batch=5))

        assert [(e.kind, e.text) for e in events] == [("fragment", "ab")]

    @pytest.mark.asyncio
    async def test_end_to_end_with_session(self):
        """Test coalescing on top of a live session."""
        session = StreamSession(FakeTransport([NATIVE_STREAM]), REQUEST, LineDelimitedDecoder())

        events = await collect(coalesce_fragments(iter_session(session), max_batch=10))

        assert [(e.kind, e.text) for e in events] == [
            ("fragment", "Hi there"),
            ("completion", "Hi there"),
        ]
