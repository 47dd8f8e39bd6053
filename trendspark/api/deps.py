"""
Shared FastAPI dependencies.

Provider services are built per request from settings and their HTTP clients
are closed when the request ends. A missing credential surfaces here as a
ConfigError before the route body runs.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

import httpx
from fastapi import Depends

from trendspark.core.config import Settings, get_settings
from trendspark.services.content_service import ContentService, groq_chat_factory
from trendspark.services.extraction_service import ArticleExtractor
from trendspark.services.news_service import NewsService
from trendspark.services.speech_service import SpeechService

AppSettings = Annotated[Settings, Depends(get_settings)]


def get_news_service(settings: AppSettings) -> NewsService:
    return NewsService.from_settings(settings)


def get_article_extractor(settings: AppSettings) -> ArticleExtractor:
    return ArticleExtractor.from_settings(settings)


async def get_content_service(settings: AppSettings) -> AsyncIterator[ContentService]:
    """One Groq HTTP pool per request, closed once the response is sent."""
    async with httpx.AsyncClient(timeout=settings.llm_timeout_seconds) as http_client:
        yield ContentService(groq_chat_factory(settings, http_client))


async def get_speech_service(settings: AppSettings) -> AsyncIterator[SpeechService]:
    service = SpeechService.from_settings(settings)
    async with service.client:
        yield service


News = Annotated[NewsService, Depends(get_news_service)]
Extractor = Annotated[ArticleExtractor, Depends(get_article_extractor)]
Content = Annotated[ContentService, Depends(get_content_service)]
Speech = Annotated[SpeechService, Depends(get_speech_service)]
