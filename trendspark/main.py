"""
FastAPI application entry point.

Configures middleware, lifespan events, error handlers and mounts the
stage routers under /api.
Run locally: uvicorn trendspark.main:app --reload
Production:  gunicorn trendspark.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from trendspark.api.routes import audio, extract, health, ideas, script, trends
from trendspark.core.config import get_settings
from trendspark.core.errors import register_error_handlers
from trendspark.core.logging import get_logger, setup_logging
from trendspark.core.rate_limit import limiter

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown events."""
    setup_logging(settings)
    logger.info(
        "app_starting",
        environment=settings.app_env,
        news_configured=settings.news_configured,
        llm_configured=settings.llm_configured,
        tts_configured=settings.tts_configured,
    )
    for provider, ok in (
        ("NEWS_API_KEY", settings.news_configured),
        ("GROQ_API_KEY", settings.llm_configured),
        ("OPENAI_API_KEY", settings.tts_configured),
    ):
        if not ok:
            logger.warning("provider_unconfigured", credential=provider)

    yield

    logger.info("app_shutting_down")


app = FastAPI(
    title="TrendSpark",
    description="News trends to voiceover audio in five stages",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.app_env != "production" else None,
    redoc_url="/redoc" if settings.app_env != "production" else None,
)

# ── Middleware ──────────────────────────────────────────────
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-TTS-Voice"],
)

# ── Rate limiting ──────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ── Errors ─────────────────────────────────────────────────
register_error_handlers(app)

# ── Routes ─────────────────────────────────────────────────
app.include_router(health.router)
for stage in (trends, extract, ideas, script, audio):
    app.include_router(stage.router, prefix="/api")


@app.get("/")
@limiter.exempt
async def root():
    return {
        "service": "TrendSpark",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/healthz/",
        "stages": ["/api/trends", "/api/extract", "/api/ideas", "/api/script", "/api/audio"],
    }
