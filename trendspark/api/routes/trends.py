"""
Trends stage.

GET /api/trends — keyword search or top headlines from NewsAPI
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from trendspark.api.deps import News
from trendspark.schemas.schemas import ErrorResponse, TrendsResponse

router = APIRouter(tags=["trends"])


@router.get(
    "/trends",
    response_model=TrendsResponse,
    response_model_by_alias=True,
    responses={500: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def get_trends(
    news: News,
    keywords: str = Query(default="", max_length=500),
    country: str = Query(default="us", max_length=2),
    category: str = Query(default="technology", max_length=32),
    limit: int = Query(default=10, ge=1, le=100),
    sort_by: str | None = Query(default=None, alias="sortBy"),
) -> TrendsResponse:
    """Fetch candidate articles, provider order preserved."""
    trends = await news.fetch_trends(
        keywords=keywords,
        category=category,
        country=country,
        limit=limit,
        sort_by=sort_by,
    )
    return TrendsResponse(data=trends)
