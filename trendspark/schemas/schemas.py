"""
Pydantic v2 schemas for API request/response validation.

Wire names follow the JSON the front end already speaks (camelCase for
``publishedAt``, ``imageUrl``, ``scriptText``, ``ttsOptions``).
"""

from __future__ import annotations

from typing import Literal, get_args

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

NewsCategory = Literal[
    "technology", "business", "entertainment", "general", "health", "science", "sports"
]
NewsCountry = Literal["us", "gb", "ca", "au", "de", "fr", "jp", "kr"]
ScriptTone = Literal["informative", "excited", "neutral", "humorous", "serious", "casual"]

NEWS_CATEGORIES: tuple[str, ...] = get_args(NewsCategory)
NEWS_COUNTRIES: tuple[str, ...] = get_args(NewsCountry)
SCRIPT_TONES: tuple[str, ...] = get_args(ScriptTone)


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


# ── Trends ──────────────────────────────────────────────────
class TrendItem(BaseModel):
    """One candidate article. Every field is optional because providers omit freely."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    description: str | None = None
    url: str | None = None
    source: str | None = None
    published_at: str | None = Field(default=None, alias="publishedAt")
    author: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")


class TrendsResponse(BaseModel):
    data: list[TrendItem]


# ── Extraction ──────────────────────────────────────────────
class ExtractRequest(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def check_scheme(cls, v: str) -> str:
        try:
            url = httpx.URL(v)
        except httpx.InvalidURL as e:
            raise ValueError(f"must be an absolute http(s) URL ({e})") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("must be an absolute http(s) URL")
        return v


# ── Ideas ───────────────────────────────────────────────────
class IdeasRequest(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def check_text(cls, v: str) -> str:
        return _not_blank(v)


# ── Script ──────────────────────────────────────────────────
class ScriptRequest(BaseModel):
    text: str
    ideas: str
    tone: str = "informative"
    duration: int = Field(default=90, ge=5, le=600)

    @field_validator("text", "ideas")
    @classmethod
    def check_inputs(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("tone", mode="before")
    @classmethod
    def default_tone(cls, v: str | None) -> str:
        return v or "informative"

    @field_validator("duration", mode="before")
    @classmethod
    def default_duration(cls, v: int | None) -> int:
        return v or 90


# ── Audio ───────────────────────────────────────────────────
class TtsOptions(BaseModel):
    voice: str | None = None
    model: str | None = None


class AudioRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    script_text: str = Field(alias="scriptText")
    tts_options: TtsOptions = Field(default_factory=TtsOptions, alias="ttsOptions")

    @field_validator("script_text")
    @classmethod
    def check_script(cls, v: str) -> str:
        return _not_blank(v)


# ── Text payloads (extract / ideas / script) ────────────────
class TextResponse(BaseModel):
    data: str


class ErrorResponse(BaseModel):
    error: str


# ── Health check ────────────────────────────────────────────
class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = "0.1.0"
    environment: str
    providers: dict[str, bool]
