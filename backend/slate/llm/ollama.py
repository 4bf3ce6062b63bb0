"""
Ollama provider implementation.

WHAT: Local LLM inference via Ollama, native and OpenAI-compatible APIs
WHY: Local-first generation for the streaming preview
HOW: Shared httpx transport, per-mode decoders, StreamSession per generation
"""

import json

import httpx

from .decoders import get_decoder
from .payloads import build_native_request, build_transport_request
from .session import FailureCallback, CompletionCallback, FragmentCallback, StreamSession
from .transport import HttpxTransport
from .types import (
    GenerationRequest,
    ProviderStatus,
    SiteTriple,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderResponseError,
)
from ..core.config import settings
from ..services.site_builder import build_site_prompt, extract_json_triple
from ..utils.logger import get_logger

logger = get_logger(__name__)


class OllamaProvider:
    """Ollama provider: health checks, streaming sessions, one-shot site generation."""

    def __init__(self, transport: HttpxTransport | None = None):
        """Initialize with a transport (a new httpx-backed one by default)."""
        self.base_url = settings.OLLAMA_BASE_URL.rstrip("/")
        self.default_model = settings.DEFAULT_MODEL
        self.default_temperature = settings.DEFAULT_TEMPERATURE
        self.transport = transport or HttpxTransport()
        self.client = self.transport.client

    async def ping(self) -> ProviderStatus:
        """
        Check Ollama availability.

        Returns:
            ProviderStatus with availability and installed model names
        """
        try:
            response = await self.client.get(f"{self.base_url}/api/tags", timeout=5.0)
            response.raise_for_status()
            data = response.json()

            models = [m.get("name") for m in data.get("models", [])]

            return ProviderStatus(
                available=True,
                base_url=self.base_url,
                models=models if models else None
            )
        except httpx.TimeoutException:
            logger.warning("Ollama ping timed out")
            return ProviderStatus(
                available=False,
                base_url=self.base_url,
                error="Connection timeout"
            )
        except httpx.ConnectError:
            logger.warning("Ollama not reachable")
            return ProviderStatus(
                available=False,
                base_url=self.base_url,
                error="Connection refused - is Ollama running?"
            )
        except Exception as e:
            logger.error(f"Ollama ping failed: {e}")
            return ProviderStatus(
                available=False,
                base_url=self.base_url,
                error=str(e)
            )

    def open_session(
        self,
        request: GenerationRequest,
        *,
        on_fragment: FragmentCallback | None = None,
        on_completion: CompletionCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> StreamSession:
        """
        Build a streaming session for one generation.

        The decoder is chosen once from request.mode; the session is not
        started until its run() is awaited.

        Args:
            request: Model, prompt, temperature and mode
            on_fragment: Called with every non-empty text fragment
            on_completion: Called once with the full text on success
            on_failure: Called once with an error message on failure

        Returns:
            Idle StreamSession
        """
        decoder = get_decoder(
            request.mode,
            carry_partial_lines=settings.NATIVE_CARRY_PARTIAL_LINES
        )
        session = StreamSession(
            self.transport,
            build_transport_request(request),
            decoder,
            on_fragment=on_fragment,
            on_completion=on_completion,
            on_failure=on_failure,
        )
        logger.info(f"Session {session.id} created (model: {request.model}, mode: {request.mode.value})")
        return session

    async def generate_site(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float | None = None
    ) -> SiteTriple:
        """
        Generate a website in one request (non-streaming).

        Args:
            prompt: User's description of the site
            model: Optional model name (uses default_model if not provided)
            temperature: Optional sampling temperature

        Returns:
            SiteTriple with html, css and js

        Raises:
            ProviderTimeoutError: Request timed out
            ProviderUnavailableError: Ollama not reachable
            ProviderResponseError: Error status or invalid JSON from Ollama
            SiteParseError: Model output lacks the html/css/js object
        """
        request = GenerationRequest(
            model=model or self.default_model,
            prompt=build_site_prompt(prompt),
            temperature=self.default_temperature if temperature is None else temperature,
        )
        transport_request = build_native_request(request, stream=False)

        try:
            response = await self.client.post(
                transport_request.url,
                headers=transport_request.headers,
                json=transport_request.body
            )
        except httpx.TimeoutException as e:
            logger.error("Ollama site generation timed out")
            raise ProviderTimeoutError("Ollama request timed out") from e
        except httpx.ConnectError as e:
            logger.error("Ollama connection refused")
            raise ProviderUnavailableError(f"Ollama request failed: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Ollama request failed: {e}")
            raise ProviderResponseError(f"Ollama request failed: {e}") from e

        if not response.is_success:
            logger.error(f"Ollama error status: {response.status_code}")
            raise ProviderResponseError(f"Ollama error status: {response.status_code}")

        try:
            text = response.json()["response"]
        except (KeyError, TypeError, json.JSONDecodeError) as e:
            logger.error(f"Invalid response from Ollama: {e}")
            raise ProviderResponseError(f"Invalid JSON: {e}") from e
        if not isinstance(text, str):
            logger.error(f"Invalid response from Ollama: response is {type(text).__name__}")
            raise ProviderResponseError("Invalid JSON: response is not a string")

        logger.info(f"Ollama site generation success (model: {request.model}, {len(text)} chars)")
        return extract_json_triple(text)

    async def close(self):
        """Close the HTTP client."""
        await self.transport.close()
