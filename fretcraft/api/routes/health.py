"""Health check endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from fretcraft.config import settings

router = APIRouter()


def _llm_configured() -> bool:
    """True if the configured completion provider has an API key set."""
    return settings.llm_provider == "anthropic" and bool(settings.anthropic_api_key)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Basic health check."""
    return {
        "status": "ok",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@router.get("/health/full")
async def full_health_check() -> dict[str, Any]:
    """Health check including completion-service configuration."""
    llm_ok = _llm_configured()
    return {
        "status": "ok" if llm_ok else "degraded",
        "service": settings.app_name,
        "version": settings.app_version,
        "dependencies": {
            "llm": {
                "status": "ok" if llm_ok else "unconfigured",
                "provider": settings.llm_provider,
                "model": settings.llm_model,
            },
        },
    }
