"""
Shared pytest fixtures for unit tests.

Providers are faked at their seams: httpx.MockTransport for NewsAPI and
article pages, FakeListChatModel for Groq, a stub client for OpenAI TTS.
No API keys or network needed.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from fakes import (
    ARTICLE_HTML,
    SAMPLE_IDEAS,
    RecordingChatFactory,
    StubSpeechClient,
    newsapi_payload,
)
from trendspark.api.deps import (
    get_article_extractor,
    get_content_service,
    get_news_service,
    get_speech_service,
)
from trendspark.core.config import Settings, get_settings
from trendspark.core.rate_limit import limiter
from trendspark.main import app
from trendspark.services.content_service import ContentService
from trendspark.services.extraction_service import ArticleExtractor
from trendspark.services.news_service import NewsService
from trendspark.services.speech_service import SpeechService


@pytest.fixture(autouse=True)
def _no_rate_limit():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        news_api_key="test-news-key",
        groq_api_key="test-groq-key",
        openai_api_key="test-openai-key",
    )


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings(_env_file=None, news_api_key="", groq_api_key="", openai_api_key="")


@pytest.fixture
def news_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def news_transport(news_requests) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        news_requests.append(request)
        return httpx.Response(200, json=newsapi_payload(int(request.url.params["pageSize"])))

    return httpx.MockTransport(handler)


@pytest.fixture
def page_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/missing":
            return httpx.Response(404, text="not found")
        if request.url.path == "/empty":
            return httpx.Response(200, html="<html><body><script>var x = 1;</script></body></html>")
        return httpx.Response(200, html=ARTICLE_HTML)

    return httpx.MockTransport(handler)


@pytest.fixture
def chat_factory() -> RecordingChatFactory:
    return RecordingChatFactory([SAMPLE_IDEAS])


@pytest.fixture
def speech_client() -> StubSpeechClient:
    return StubSpeechClient()


@pytest.fixture
def client(settings, news_transport, page_transport, chat_factory, speech_client):
    """TestClient with every provider faked and credentials present."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_news_service] = lambda: NewsService.from_settings(
        settings, transport=news_transport
    )
    app.dependency_overrides[get_article_extractor] = lambda: ArticleExtractor.from_settings(
        settings, transport=page_transport
    )
    app.dependency_overrides[get_content_service] = lambda: ContentService(chat_factory)
    app.dependency_overrides[get_speech_service] = lambda: SpeechService(speech_client)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def unconfigured_client(unconfigured_settings):
    """TestClient whose settings carry no provider credentials."""
    app.dependency_overrides[get_settings] = lambda: unconfigured_settings
    yield TestClient(app)
    app.dependency_overrides.clear()
