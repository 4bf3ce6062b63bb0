"""
Live preview of streamed output.

WHAT: Session callbacks that keep a whole-document preview in sync
WHY: Generated HTML should show up while it is still streaming
HOW: Re-render the accumulated text into a PreviewSink after every fragment
"""

from typing import Protocol

from ..llm.types import SessionState
from ..utils.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_DOCUMENT = (
    "<style>body{font-family:system-ui;padding:16px}</style>"
    "<h3>Live Preview</h3>"
    "<p>Generated HTML will appear here as it streams...</p>"
)


class PreviewSink(Protocol):
    """Rendering surface that redraws from a complete document string."""

    def render(self, document: str) -> None:
        ...


class LivePreview:
    """
    Mirror of a generation for display purposes.

    Pass ``on_fragment``, ``on_completion`` and ``on_failure`` to a
    StreamSession. Status, token count and error track what the session
    reports.
    """

    def __init__(self, sink: PreviewSink):
        self.sink = sink
        self.status = SessionState.IDLE
        self.tokens = 0
        self.output = ""
        self.error: str | None = None

    def reset(self) -> None:
        """Start a new generation (status: connecting)."""
        self.status = SessionState.CONNECTING
        self.tokens = 0
        self.output = ""
        self.error = None
        self._redraw()

    def on_fragment(self, text: str) -> None:
        self.status = SessionState.STREAMING
        self.tokens += 1
        self.output += text
        self._redraw()

    def on_completion(self, full_text: str) -> None:
        self.status = SessionState.DONE
        if full_text != self.output:
            self.output = full_text
            self._redraw()

    def on_failure(self, message: str) -> None:
        self.status = SessionState.ERRORED
        self.error = message

    @property
    def document(self) -> str:
        return self.output or PLACEHOLDER_DOCUMENT

    def _redraw(self) -> None:
        self.sink.render(self.document)
