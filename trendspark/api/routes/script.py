"""
Script stage.

POST /api/script — voiceover script sized to a target duration
"""

from __future__ import annotations

from fastapi import APIRouter

from trendspark.api.deps import Content
from trendspark.schemas.schemas import ErrorResponse, ScriptRequest, TextResponse

router = APIRouter(tags=["content"])


@router.post(
    "/script",
    response_model=TextResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def write_script(body: ScriptRequest, content: Content) -> TextResponse:
    script = await content.write_script(
        body.text, body.ideas, duration=body.duration, tone=body.tone
    )
    return TextResponse(data=script)
