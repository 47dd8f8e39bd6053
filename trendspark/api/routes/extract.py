"""
Extraction stage.

POST /api/extract — main article text of one URL
"""

from __future__ import annotations

from fastapi import APIRouter

from trendspark.api.deps import Extractor
from trendspark.schemas.schemas import ErrorResponse, ExtractRequest, TextResponse

router = APIRouter(tags=["extract"])


@router.post(
    "/extract",
    response_model=TextResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def extract_article(body: ExtractRequest, extractor: Extractor) -> TextResponse:
    text = await extractor.extract(body.url)
    return TextResponse(data=text)
