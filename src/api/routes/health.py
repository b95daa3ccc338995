"""Health check endpoint."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from api.dependencies import get_magic_link
from services.magic_link import MagicLinkAuth

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(auth: MagicLinkAuth = Depends(get_magic_link)):
    """Health check endpoint with storage status."""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        "services": {},
    }
    storage_name = type(auth.store).__name__

    try:
        auth.store.user_exists_by_email("healthcheck@invalid")
        health_status["services"]["storage"] = {
            "status": "healthy",
            "backend": storage_name,
        }
    except Exception as e:
        logger.warning("Storage health check failed", extra={"backend": storage_name, "error": str(e)[:200]})
        health_status["services"]["storage"] = {
            "status": "unhealthy",
            "backend": storage_name,
            "message": f"Storage error: {str(e)[:200]}",
        }
        health_status["status"] = "degraded"

    healthy = health_status["status"] == "healthy"
    return JSONResponse(
        content=health_status,
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
