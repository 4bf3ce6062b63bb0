"""
Incremental decoders for LLM streaming protocols.

WHAT: Turn arbitrarily split byte chunks into Fragment/Completion/Ignored events
WHY: Network chunks never line up with record boundaries
HOW: Stateful UTF-8 decoding per stream, newline framing, JSON parse per record

Two wire formats are supported:

- native (Ollama /api/generate): one JSON object per line,
  ``{"response": "...", "done": false}``.
- openai (/v1/chat/completions): SSE frames ``data: {...}`` carrying
  ``choices[0].delta.content``, terminated by ``data: [DONE]``.

Malformed or partial records are an expected steady state and come back
as ``Ignored`` events, never as exceptions.
"""

import codecs
import json
import re
from typing import Protocol

from .types import Completion, DecodeEvent, Fragment, Ignored, StreamMode
from ..utils.logger import get_logger

logger = get_logger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE_SENTINEL = "[DONE]"

_NEWLINES = re.compile(r"\n+")


class StreamDecoder(Protocol):
    """Byte chunk in, decode events out."""

    @property
    def finished(self) -> bool:
        """True once the protocol signalled that no more chunks should be fed."""
        ...

    def feed(self, chunk: bytes) -> list[DecodeEvent]:
        """Decode one transport chunk."""
        ...

    def finish(self) -> list[DecodeEvent]:
        """Flush whatever is left at transport end-of-stream."""
        ...


def _utf8_decoder():
    return codecs.getincrementaldecoder("utf-8")(errors="replace")


class LineDelimitedDecoder:
    """
    Decoder for newline-delimited JSON records (Ollama native mode).

    By default each chunk is split and parsed on its own: a record whose
    bytes straddle a chunk boundary fails to parse on both sides and is
    dropped. Multi-byte characters split across chunks are still kept
    intact by the incremental UTF-8 decoder.

    With ``carry_partial_lines=True`` the unterminated tail of a chunk is
    held back and prefixed to the next one, so split records are
    reassembled.
    """

    def __init__(self, *, carry_partial_lines: bool = False):
        self.carry_partial_lines = carry_partial_lines
        self._decoder = _utf8_decoder()
        self._pending = ""

    @property
    def finished(self) -> bool:
        # done:true never stops the read loop; the transport is drained.
        return False

    def feed(self, chunk: bytes) -> list[DecodeEvent]:
        text = self._decoder.decode(chunk)
        if self.carry_partial_lines:
            text = self._pending + text
            segments = _NEWLINES.split(text)
            self._pending = segments.pop()
        else:
            segments = _NEWLINES.split(text)
        return self._parse_segments(segments)

    def finish(self) -> list[DecodeEvent]:
        text = self._decoder.decode(b"", final=True)
        if self.carry_partial_lines:
            text = self._pending + text
            self._pending = ""
        return self._parse_segments(_NEWLINES.split(text))

    def _parse_segments(self, segments: list[str]) -> list[DecodeEvent]:
        events: list[DecodeEvent] = []
        for segment in segments:
            if segment:
                events.extend(self._parse_record(segment))
        return events

    def _parse_record(self, line: str) -> list[DecodeEvent]:
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring partial JSON line: {line[:100]!r}")
            return [Ignored(reason="invalid json", raw=line)]

        if not isinstance(record, dict):
            return [Ignored(reason="not an object", raw=line)]

        events: list[DecodeEvent] = []
        text = record.get("response")
        if isinstance(text, str) and text:
            events.append(Fragment(text))
        if record.get("done") is True:
            events.append(Completion())
        if not events:
            events.append(Ignored(reason="empty record", raw=line))
        return events


class EventStreamDecoder:
    """
    Decoder for SSE-wrapped chat-completion deltas (OpenAI-compatible mode).

    Keeps the last, possibly incomplete line buffered between feeds. Once
    the ``[DONE]`` sentinel is seen the decoder is finished: buffered data
    is discarded and further chunks are not examined.
    """

    def __init__(self):
        self._decoder = _utf8_decoder()
        self._buffer = ""
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, chunk: bytes) -> list[DecodeEvent]:
        if self._finished:
            return []
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return self._parse_lines(lines)

    def finish(self) -> list[DecodeEvent]:
        if self._finished:
            return []
        # End of stream terminates the last line
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._parse_lines(tail.split("\n"))

    def _parse_lines(self, lines: list[str]) -> list[DecodeEvent]:
        events: list[DecodeEvent] = []
        for raw_line in lines:
            line = raw_line.strip()
            if not line.startswith(SSE_DATA_PREFIX):
                continue

            payload = line[len(SSE_DATA_PREFIX):].lstrip()
            if payload == SSE_DONE_SENTINEL:
                events.append(Completion())
                self._finished = True
                self._buffer = ""
                break

            events.append(self._parse_payload(payload))
        return events

    def _parse_payload(self, payload: str) -> DecodeEvent:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring partial SSE packet: {payload[:100]!r}")
            return Ignored(reason="invalid json", raw=payload)

        piece = extract_delta_content(data)
        if not piece:
            return Ignored(reason="empty delta", raw=payload)
        return Fragment(piece)


def extract_delta_content(data) -> str:
    """
    Read ``choices[0].delta.content`` from a chat-completion chunk.

    Any missing level (or a non-string content) yields an empty string.
    """
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""


def get_decoder(mode: StreamMode | str, *, carry_partial_lines: bool = False) -> StreamDecoder:
    """
    Build a fresh decoder for one session.

    Args:
        mode: Wire protocol ("native" or "openai")
        carry_partial_lines: Native mode only; reassemble records split across chunks

    Raises:
        ValueError: If mode is unknown
    """
    mode = StreamMode(mode)
    if mode is StreamMode.NATIVE:
        return LineDelimitedDecoder(carry_partial_lines=carry_partial_lines)
    return EventStreamDecoder()
