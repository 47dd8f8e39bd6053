"""Health check endpoint — reports which providers have credentials."""

from __future__ import annotations

from fastapi import APIRouter

from trendspark.api.deps import AppSettings
from trendspark.core.rate_limit import limiter
from trendspark.schemas.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/healthz/", response_model=HealthResponse)
async def health_check(settings: AppSettings) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        environment=settings.app_env,
        providers={
            "news": settings.news_configured,
            "llm": settings.llm_configured,
            "tts": settings.tts_configured,
        },
    )


# Registered by name; the returned wrapper stays unrouted
limiter.exempt(health_check)
