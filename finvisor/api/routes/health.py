"""
Health Routes
=============
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from finvisor.config.settings import get_settings

router = APIRouter(tags=["Health"])

PROVIDERS = ["openai", "anthropic", "perplexity", "browserbase", "fetchai", "modal", "decagon", "zoom"]


@router.get("/health")
async def health_check():
    """Service status and which providers have credentials."""
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
        "environment": settings.environment,
        "providers": {name: settings.is_configured(name) for name in PROVIDERS},
        "zoomDemoMode": settings.zoom_demo_mode,
    }
