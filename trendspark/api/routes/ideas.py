"""
Ideas stage.

POST /api/ideas — hook, talking points, CTA and titles for an article
"""

from __future__ import annotations

from fastapi import APIRouter

from trendspark.api.deps import Content
from trendspark.schemas.schemas import ErrorResponse, IdeasRequest, TextResponse

router = APIRouter(tags=["content"])


@router.post(
    "/ideas",
    response_model=TextResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def generate_ideas(body: IdeasRequest, content: Content) -> TextResponse:
    ideas = await content.generate_ideas(body.text)
    return TextResponse(data=ideas)
