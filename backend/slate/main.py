"""
FastAPI application entry point.

WHAT: Main application setup and wiring
WHY: One process serves the streaming relays, the site generator and status checks
HOW: Create FastAPI app, register middleware, routers, handlers; probe Ollama on startup
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .core.config import settings
from .llm.provider_factory import get_provider, shutdown_provider
from .utils.logger import setup_logging, get_logger
from .middleware.error_handler import register_exception_handlers
from .api.v1.router import api_router

setup_logging()
logger = get_logger(__name__)


async def check_llm_server() -> bool:
    """
    Log whether Ollama is reachable and serves the default model.

    Startup continues either way; generations fail with LLM_UNAVAILABLE
    until the server comes up.

    Returns:
        True if the server answered
    """
    status = await get_provider().ping()
    if not status.available:
        logger.warning(f"Ollama not reachable at {status.base_url}: {status.error}")
        return False

    models = status.models or []
    if settings.DEFAULT_MODEL not in models:
        logger.warning(
            f"Default model {settings.DEFAULT_MODEL!r} not pulled "
            f"(available: {', '.join(models) or 'none'})"
        )
    else:
        logger.info(f"Ollama ready at {status.base_url} with {len(models)} model(s)")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    WHAT: Probe the LLM server on startup, release its client on shutdown
    WHY: Misconfigured URLs show up in the log before the first request
    HOW: Async context manager for FastAPI lifespan
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(
        f"Ollama: {settings.OLLAMA_BASE_URL}, OpenAI-compatible: {settings.OPENAI_BASE_URL}, "
        f"default mode: {settings.DEFAULT_STREAM_MODE}"
    )
    await check_llm_server()

    yield

    logger.info("Shutting down application")
    await shutdown_provider()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# The desktop shell and the dev frontend both load the preview cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router)


@app.get("/")
async def root():
    """Describe the service and its streaming endpoints."""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "endpoints": {
            "stream": "/api/v1/generate/stream",
            "preview": "/api/v1/generate/preview",
            "site": "/api/v1/generate/site",
            "health": "/api/v1/health",
        },
    }


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn
    uvicorn.run(
        "slate.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
