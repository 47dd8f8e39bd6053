"""
News service — trending articles from NewsAPI.

Keyword mode uses the full-text ``everything`` endpoint; otherwise the
curated ``top-headlines`` endpoint filtered by category and country.
"""

from __future__ import annotations

import httpx

from trendspark.core.config import Settings
from trendspark.core.errors import ConfigError, NetworkError, UpstreamError
from trendspark.core.logging import get_logger
from trendspark.schemas.schemas import TrendItem

logger = get_logger(__name__)

_STATUS_MESSAGES = {
    401: "Unauthorized - Check News API Key.",
    429: "Too Many Requests - NewsAPI rate limit hit.",
    400: "Bad Request (400) to NewsAPI: Check parameters.",
    426: "Upgrade Required (426): NewsAPI requires HTTPS.",
}


def _to_trend_item(article: dict) -> TrendItem:
    source = article.get("source") or {}
    return TrendItem(
        title=article.get("title") or None,
        description=article.get("description") or None,
        url=article.get("url") or None,
        source=source.get("name") or None,
        published_at=article.get("publishedAt") or None,
        author=article.get("author") or None,
        image_url=article.get("urlToImage") or None,
    )


class NewsService:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://newsapi.org/v2/",
        timeout: float = 12.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> NewsService:
        if not settings.news_configured:
            raise ConfigError(
                "Server configuration error: News API Key is missing.", status_code=500
            )
        return cls(
            api_key=settings.news_api_key,
            base_url=settings.news_api_base_url,
            timeout=settings.news_timeout_seconds,
            transport=transport,
        )

    def build_request(
        self,
        keywords: str = "",
        category: str = "technology",
        country: str = "us",
        limit: int = 10,
        sort_by: str | None = None,
    ) -> tuple[str, dict]:
        """Pick the endpoint and query params for one trends lookup."""
        params: dict = {"apiKey": self.api_key, "pageSize": limit}
        keywords = keywords.strip()
        if keywords:
            params.update(q=keywords, sortBy=sort_by or "relevancy", language="en")
            return self.base_url + "everything", params

        params.update(country=country, category=category)
        return self.base_url + "top-headlines", params

    async def fetch_trends(
        self,
        keywords: str = "",
        category: str = "technology",
        country: str = "us",
        limit: int = 10,
        sort_by: str | None = None,
    ) -> list[TrendItem]:
        url, params = self.build_request(keywords, category, country, limit, sort_by)
        mode = "everything" if url.endswith("everything") else "top-headlines"
        logger.info("trends_requested", mode=mode, category=category, country=country, limit=limit)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, params=params)
        except httpx.TransportError as e:
            logger.error("trends_network_error", error=str(e))
            raise NetworkError("Network error or timeout contacting News API.") from e

        if resp.is_error:
            raise UpstreamError(self._error_message(resp), status_code=resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamError("NewsAPI returned a non-JSON response.") from e
        if payload.get("status") != "ok":
            message = payload.get("message") or f"API returned status: {payload.get('status')}"
            raise UpstreamError(message)

        articles = payload.get("articles") or []
        trends = [_to_trend_item(a) for a in articles[:limit]]
        logger.info("trends_fetched", mode=mode, count=len(trends))
        return trends

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        if resp.status_code in _STATUS_MESSAGES:
            return _STATUS_MESSAGES[resp.status_code]
        try:
            message = resp.json().get("message")
        except ValueError:
            message = None
        return message or f"NewsAPI request failed with status {resp.status_code}."
