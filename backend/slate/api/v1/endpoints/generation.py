"""
Generation endpoints.

WHAT: Stream a generation over SSE and generate whole sites in one shot
WHY: The frontend renders tokens live and can also ask for a finished html/css/js triple
HOW: EventSourceResponse wrapping a StreamSession event stream; plain JSON for sites
"""

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse
from typing import AsyncIterator
import json
from datetime import datetime

from ....core.config import settings
from ....llm.provider_factory import get_provider
from ....llm.streaming_handler import coalesce_fragments, iter_session
from ....llm.types import GenerationRequest
from ....models.api_schemas import GenerateRequest, SiteResponse
from ....services.preview import LivePreview
from ....services.site_builder import compose_document
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def generation_event_generator(request: GenerationRequest) -> AsyncIterator[dict]:
    """
    Generate SSE events for one streaming generation.

    Emits ``connected``, then ``token`` events, then exactly one of
    ``done`` or ``error``.

    Args:
        request: Generation parameters

    Yields:
        SSE event dicts
    """
    provider = get_provider()
    session = provider.open_session(request)

    yield {
        "event": "connected",
        "data": json.dumps({
            "type": "connected",
            "session_id": session.id,
            "model": request.model,
            "mode": request.mode.value,
            "timestamp": datetime.now().isoformat()
        })
    }

    events = iter_session(session)
    try:
        async for event in coalesce_fragments(events, max_batch=settings.SSE_COALESCE_TOKENS):
            if event.kind == "fragment":
                yield {
                    "event": "token",
                    "data": json.dumps({
                        "type": "token",
                        "text": event.text,
                        "tokens": event.token_count
                    })
                }
            elif event.kind == "completion":
                yield {
                    "event": "done",
                    "data": json.dumps({
                        "type": "done",
                        "full_text": event.text,
                        "tokens": event.token_count,
                        "timestamp": datetime.now().isoformat()
                    })
                }
            else:
                yield {
                    "event": "error",
                    "data": json.dumps({
                        "type": "error",
                        "error": "STREAM_ERROR",
                        "message": event.text,
                        "timestamp": datetime.now().isoformat()
                    })
                }
    finally:
        await events.aclose()
        logger.info(f"SSE stream ended for session {session.id} (state={session.state.value})")


PREVIEW_EVENT_NAMES = {"fragment": "preview", "completion": "done", "failure": "error"}


class LatestDocument:
    """PreviewSink that keeps only the most recent render."""

    def __init__(self):
        self.document: str | None = None

    def render(self, document: str) -> None:
        self.document = document


async def preview_event_generator(request: GenerationRequest) -> AsyncIterator[dict]:
    """
    Generate SSE events carrying the rendered preview document.

    WHAT: Emit the whole document after every batch of fragments
    WHY: An iframe can swap its srcdoc without reassembling tokens
    HOW: Feed session events into a LivePreview and relay what it renders

    Args:
        request: Generation parameters

    Yields:
        ``preview`` events, then exactly one ``done`` or ``error``
    """
    provider = get_provider()
    session = provider.open_session(request)
    sink = LatestDocument()
    preview = LivePreview(sink)
    preview.reset()

    events = iter_session(session)
    try:
        async for event in coalesce_fragments(events, max_batch=settings.SSE_COALESCE_TOKENS):
            if event.kind == "fragment":
                preview.on_fragment(event.text)
                preview.tokens = event.token_count
            elif event.kind == "completion":
                preview.on_completion(event.text)
            else:
                preview.on_failure(event.text)

            name = PREVIEW_EVENT_NAMES[event.kind]
            data = {
                "type": name,
                "status": preview.status.value,
                "tokens": preview.tokens,
                "document": sink.document,
            }
            if preview.error is not None:
                data["message"] = preview.error
            yield {"event": name, "data": json.dumps(data)}
    finally:
        await events.aclose()
        logger.info(f"Preview stream ended for session {session.id} (state={session.state.value})")


@router.post("/generate/stream")
async def stream_generation(body: GenerateRequest):
    """
    Stream a generation via SSE.

    Args:
        body: Prompt, model, temperature and API mode

    Returns:
        EventSourceResponse with generation events
    """
    logger.info(f"Streaming generation requested (model: {body.model}, mode: {body.mode})")
    return EventSourceResponse(
        generation_event_generator(body.to_generation_request()),
        media_type="text/event-stream"
    )


@router.post("/generate/preview")
async def stream_preview(body: GenerateRequest):
    """
    Stream the live preview document via SSE.

    Args:
        body: Prompt, model, temperature and API mode

    Returns:
        EventSourceResponse with preview events
    """
    logger.info(f"Preview stream requested (model: {body.model}, mode: {body.mode})")
    return EventSourceResponse(
        preview_event_generator(body.to_generation_request()),
        media_type="text/event-stream"
    )


@router.post("/generate/site", response_model=SiteResponse)
async def generate_site(body: GenerateRequest) -> SiteResponse:
    """
    Generate a complete website without streaming.

    Args:
        body: Prompt, model and temperature (mode is ignored; uses the native API)

    Returns:
        SiteResponse with html, css, js and the composed preview document

    Raises:
        ProviderTimeoutError, ProviderUnavailableError, ProviderResponseError, SiteParseError
    """
    provider = get_provider()
    triple = await provider.generate_site(
        body.prompt,
        model=body.model,
        temperature=body.temperature
    )
    return SiteResponse(
        html=triple.html,
        css=triple.css,
        js=triple.js,
        document=compose_document(triple)
    )
