"""
Streaming generation session.

WHAT: Drive one decoder against one transport and report a token/completion/failure lifecycle
WHY: Callers get exactly one terminal event per generation, whatever the wire did
HOW: Sequential async read loop, state machine, errors caught at the session boundary

States::

    IDLE -> CONNECTING -> STREAMING -> DONE
                     \\            \\-> ERRORED
                      \\-> DONE | ERRORED

A session is single-use. Build a new one for every generation request.
"""

import asyncio
import inspect
import uuid
from typing import Any, Callable

from .decoders import StreamDecoder
from .transport import TransportSource
from .types import (
    Completion,
    DecodeEvent,
    Fragment,
    SessionState,
    TransportRequest,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

FragmentCallback = Callable[[str], Any]
CompletionCallback = Callable[[str], Any]
FailureCallback = Callable[[str], Any]

TERMINAL_STATES = (SessionState.DONE, SessionState.ERRORED)


async def _invoke(callback, arg: str) -> None:
    """Call a sync or async callback."""
    if callback is None:
        return
    result = callback(arg)
    if inspect.isawaitable(result):
        await result


class StreamSession:
    """One streaming generation, from request to terminal event."""

    def __init__(
        self,
        transport: TransportSource,
        request: TransportRequest,
        decoder: StreamDecoder,
        *,
        on_fragment: FragmentCallback | None = None,
        on_completion: CompletionCallback | None = None,
        on_failure: FailureCallback | None = None,
    ):
        self.id = uuid.uuid4().hex[:8]
        self.transport = transport
        self.request = request
        self.decoder = decoder
        self.on_fragment = on_fragment
        self.on_completion = on_completion
        self.on_failure = on_failure

        self.state = SessionState.IDLE
        self.full_text = ""
        self.token_count = 0
        self.error: str | None = None

        self._task: asyncio.Task | None = None
        self._cancel_requested = False

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    async def run(self) -> SessionState:
        """
        Stream until completion, end of stream, failure or cancel().

        Returns:
            Final state (DONE or ERRORED)

        Raises:
            RuntimeError: If the session was already started
        """
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"Session {self.id} already started (state={self.state.value})")

        self.full_text = ""
        self.token_count = 0
        self.error = None
        self._task = asyncio.current_task()
        self._set_state(SessionState.CONNECTING)

        try:
            async with self.transport.open(self.request) as chunks:
                async for chunk in chunks:
                    for event in self.decoder.feed(chunk):
                        await self._handle(event)
                    if self.decoder.finished:
                        break
                else:
                    for event in self.decoder.finish():
                        await self._handle(event)

            if not self.is_terminal:
                # Transport ended without a done flag or [DONE]: still a success
                logger.info(f"Session {self.id}: stream ended without completion signal")
                await self._complete()

        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise
            # Handled here, so the running task must not stay marked as cancelling
            self._task.uncancel()
            logger.info(f"Session {self.id} cancelled after {self.token_count} fragments")

        except Exception as e:
            if self.is_terminal:
                logger.warning(f"Session {self.id}: error after terminal state ignored: {e}")
            else:
                await self._fail(str(e) or e.__class__.__name__)

        return self.state

    def cancel(self) -> None:
        """
        Stop awaiting chunks and release the transport.

        No callback fires after cancel(); the session ends ERRORED with
        error "cancelled".
        """
        if self.is_terminal:
            return
        self._cancel_requested = True
        self.error = "cancelled"
        self._set_state(SessionState.ERRORED)
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _handle(self, event: DecodeEvent) -> None:
        if self.is_terminal:
            if isinstance(event, Fragment):
                logger.debug(f"Session {self.id}: dropping fragment after terminal state")
            return

        if isinstance(event, Fragment):
            if self.state is SessionState.CONNECTING:
                self._set_state(SessionState.STREAMING)
            self.full_text += event.text
            self.token_count += 1
            await _invoke(self.on_fragment, event.text)
        elif isinstance(event, Completion):
            await self._complete()

    async def _complete(self) -> None:
        self._set_state(SessionState.DONE)
        logger.info(f"Session {self.id} done ({self.token_count} fragments, {len(self.full_text)} chars)")
        await _invoke(self.on_completion, self.full_text)

    async def _fail(self, message: str) -> None:
        self.error = message
        self._set_state(SessionState.ERRORED)
        logger.error(f"Session {self.id} failed: {message}")
        try:
            await _invoke(self.on_failure, message)
        except Exception as e:
            logger.error(f"Session {self.id}: failure callback raised: {e}")

    def _set_state(self, state: SessionState) -> None:
        logger.debug(f"Session {self.id}: {self.state.value} -> {state.value}")
        self.state = state
