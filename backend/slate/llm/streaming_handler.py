"""
Streaming utilities for generation sessions.

WHAT: Re-express session callbacks as an async stream and batch fragments
WHY: SSE relays and other pull-style consumers want `async for`, not callbacks
HOW: asyncio.Queue fed by the callbacks of a session running in its own task
"""

import asyncio
from contextlib import suppress
from typing import AsyncIterator

from .session import StreamSession
from .types import SessionEvent
from ..utils.logger import get_logger

logger = get_logger(__name__)


async def iter_session(session: StreamSession) -> AsyncIterator[SessionEvent]:
    """
    Run a session and yield its lifecycle as events.

    WHAT: Bridge on_fragment/on_completion/on_failure to an async iterator
    WHY: Consumers can `async for` over a generation
    HOW: Callbacks push SessionEvents onto a queue; closing the iterator cancels the session

    Args:
        session: Fresh (IDLE) session; its callbacks are replaced

    Yields:
        Fragment events, then exactly one completion or failure event
    """
    queue: asyncio.Queue[SessionEvent | None] = asyncio.Queue()

    session.on_fragment = lambda text: queue.put_nowait(
        SessionEvent(kind="fragment", text=text, token_count=session.token_count)
    )
    session.on_completion = lambda full_text: queue.put_nowait(
        SessionEvent(kind="completion", text=full_text, token_count=session.token_count)
    )
    session.on_failure = lambda message: queue.put_nowait(
        SessionEvent(kind="failure", text=message, token_count=session.token_count)
    )

    task = asyncio.create_task(session.run())
    task.add_done_callback(lambda _: queue.put_nowait(None))

    try:
        while True:
            event = await queue.get()
            if event is None:
                # run() ended without a terminal callback (e.g. session reused)
                task.result()
                break
            yield event
            if event.is_terminal:
                break
    finally:
        if not task.done():
            if session.is_terminal:
                # Native mode keeps draining the transport after done:true
                await task
            else:
                logger.info(f"Consumer left session {session.id} early, cancelling")
                session.cancel()
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task


async def coalesce_fragments(
    events: AsyncIterator[SessionEvent],
    *,
    max_batch: int = 5
) -> AsyncIterator[SessionEvent]:
    """
    Merge consecutive fragment events.

    WHAT: Buffer up to max_batch fragments into one event
    WHY: Fewer redraws of the live preview and fewer SSE frames
    HOW: Flush when the batch is full or a terminal event arrives

    Args:
        events: Source session events
        max_batch: Fragments per merged event

    Yields:
        Merged fragment events, then the terminal event unchanged
    """
    buffer: list[str] = []
    token_count = 0

    def flush() -> SessionEvent:
        text = "".join(buffer)
        buffer.clear()
        return SessionEvent(kind="fragment", text=text, token_count=token_count)

    async for event in events:
        if event.is_terminal:
            if buffer:
                yield flush()
            yield event
            return

        buffer.append(event.text)
        token_count = event.token_count
        if len(buffer) >= max_batch:
            yield flush()

    # Source ended without a terminal event
    if buffer:
        yield flush()
