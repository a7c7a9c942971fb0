"""
Health check endpoints.

Provides endpoints for monitoring application health and status.
"""

from typing import Any, Dict

from fastapi import APIRouter

from config.database import get_supabase_client_optional
from config.settings import get_settings


router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns:
        Health status with basic info
    """
    return {
        "status": "healthy",
        "service": "stylist-api",
    }


@router.get("/health/detailed")
def detailed_health_check() -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Configuration loaded
    - Supabase profile table reachable (when configured)
    - AI provider configured

    The service stays usable without either dependency (in-memory
    profiles, curated fallback outfits), so those report "degraded".
    Declared sync so FastAPI runs the blocking Supabase query in its
    threadpool.
    """
    settings = get_settings()

    supabase_status = "not_configured"
    supabase_error = None
    if settings.supabase_configured:
        try:
            client = get_supabase_client_optional()
            if client:
                client.table(settings.profiles_table).select("id").limit(1).execute()
                supabase_status = "connected"
            else:
                supabase_status = "error"
        except Exception as e:
            supabase_status = "error"
            supabase_error = str(e)

    ai_status = "configured" if settings.ai_available else "disabled"
    healthy = supabase_status == "connected" and ai_status == "configured"

    return {
        "status": "healthy" if healthy else "degraded",
        "service": "stylist-api",
        "environment": settings.environment,
        "checks": {
            "config": "ok",
            "supabase": {
                "status": supabase_status,
                "error": supabase_error,
            },
            "ai_provider": {
                "status": ai_status,
                "model": settings.stylist_model,
            },
            "advice_dataset": {
                "status": "configured" if settings.advice_data_url else "not_configured",
            },
        },
    }


@router.get("/ready")
def readiness_check() -> Dict[str, str]:
    """
    Kubernetes-style readiness check.

    Ready once configuration loads; missing backends degrade rather
    than block traffic.
    """
    settings = get_settings()
    if settings.supabase_configured and get_supabase_client_optional() is None:
        return {"status": "not_ready", "reason": "database_unavailable"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes-style liveness check.

    Returns 200 if the service is alive.
    """
    return {"status": "alive"}
