"""
Status and health check endpoints.

WHAT: Health monitoring for the LLM server
WHY: Frontend can check Ollama before starting a generation
HOW: FastAPI endpoints calling provider ping
"""

from fastapi import APIRouter

from ....llm.provider_factory import get_provider
from ....core.config import settings
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/llm/status")
async def llm_status():
    """
    Check LLM server status.

    Returns:
        JSON with availability, base URL, installed models and error
    """
    try:
        provider = get_provider()
        llm_status = await provider.ping()

        llm_dict = {
            "available": llm_status.available,
            "base_url": llm_status.base_url,
            "models": llm_status.models,
            "error": llm_status.error
        }
    except Exception as e:
        logger.error(f"Failed to get LLM status: {e}")
        llm_dict = {
            "available": False,
            "base_url": "unknown",
            "models": None,
            "error": str(e)
        }

    return {
        "llm": llm_dict,
        "defaults": {
            "model": settings.DEFAULT_MODEL,
            "temperature": settings.DEFAULT_TEMPERATURE,
            "mode": settings.DEFAULT_STREAM_MODE
        }
    }


@router.get("/health")
async def health_check():
    """
    Overall application health check.

    Returns:
        JSON with overall health status and version
    """
    try:
        provider = get_provider()
        llm_status = await provider.ping()
        llm_available = llm_status.available
    except Exception as e:
        logger.error(f"Health check LLM failed: {e}")
        llm_available = False

    return {
        "status": "healthy" if llm_available else "degraded",
        "version": settings.APP_VERSION,
        "app_name": settings.APP_NAME,
        "components": {
            "llm": {
                "available": llm_available,
                "provider": "ollama"
            }
        }
    }
