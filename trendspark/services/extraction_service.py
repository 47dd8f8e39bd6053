"""
Extraction service — fetch a page and keep only its main article text.

readability-lxml finds the content block; ``clean_article_html`` turns it
into plain paragraphs.
"""

from __future__ import annotations

import httpx
from readability import Document
from readability.readability import Unparseable

from trendspark.core.config import Settings
from trendspark.core.errors import ExtractionFailed, NetworkError, UpstreamError
from trendspark.core.logging import get_logger
from trendspark.core.text import clean_article_html

logger = get_logger(__name__)

NO_CONTENT_MESSAGE = (
    "Could not extract main content from this page (structure might be unsupported)."
)


class ArticleExtractor:
    def __init__(
        self,
        user_agent: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml",
        }
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> ArticleExtractor:
        return cls(
            user_agent=settings.extract_user_agent,
            timeout=settings.extract_timeout_seconds,
            transport=transport,
        )

    async def fetch_html(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
        except httpx.TransportError as e:
            logger.error("extract_network_error", url=url, error=str(e))
            raise NetworkError("Network error or timeout fetching the article.") from e

        if resp.is_error:
            logger.warning("extract_fetch_failed", url=url, status=resp.status_code)
            raise UpstreamError(f"Failed to fetch article (HTTP {resp.status_code}).")
        return resp.text

    def extract_text(self, html: str, url: str = "") -> str:
        """Main-content extraction plus cleanup. Pure: same HTML, same text."""
        try:
            summary = Document(html, url=url or None).summary(html_partial=True)
        except Unparseable as e:
            logger.warning("extraction_failed", url=url, reason=str(e))
            raise ExtractionFailed(NO_CONTENT_MESSAGE) from e

        text = clean_article_html(summary)
        if not text:
            logger.warning("extraction_failed", url=url, reason="empty content")
            raise ExtractionFailed(NO_CONTENT_MESSAGE)
        return text

    async def extract(self, url: str) -> str:
        logger.info("extraction_started", url=url)
        html = await self.fetch_html(url)
        text = self.extract_text(html, url)
        logger.info("extraction_complete", url=url, char_count=len(text))
        return text
