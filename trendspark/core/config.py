"""
Centralised configuration via Pydantic Settings.

Reads from .env in dev and from plain environment variables in production.
Each provider credential gates its own stage; an empty key means that stage
answers with a "service unavailable" error instead of calling out.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TTS_VOICES: tuple[str, ...] = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Application ─────────────────────────────────────────
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]
    rate_limit: str = Field(default="30/minute", description="slowapi limit per client IP")

    # ── News search (NewsAPI) ───────────────────────────────
    news_api_key: str = ""
    news_api_base_url: str = "https://newsapi.org/v2/"
    news_timeout_seconds: float = 12.0

    # ── Article extraction ──────────────────────────────────
    extract_timeout_seconds: float = 15.0
    extract_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )

    # ── LLM: Groq ───────────────────────────────────────────
    groq_api_key: str = ""
    groq_model: str = "llama-3.1-8b-instant"
    llm_timeout_seconds: float = 60.0

    # ── Text to speech: OpenAI ──────────────────────────────
    openai_api_key: str = ""
    tts_default_voice: str = "nova"
    tts_default_model: str = "tts-1"
    tts_timeout_seconds: float = 120.0

    @field_validator("tts_default_voice")
    @classmethod
    def check_voice(cls, v: str) -> str:
        if v not in TTS_VOICES:
            raise ValueError(f"tts_default_voice must be one of {', '.join(TTS_VOICES)}")
        return v

    @property
    def news_configured(self) -> bool:
        return bool(self.news_api_key)

    @property
    def llm_configured(self) -> bool:
        return bool(self.groq_api_key)

    @property
    def tts_configured(self) -> bool:
        return bool(self.openai_api_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
