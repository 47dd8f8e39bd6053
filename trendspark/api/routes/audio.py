"""
Audio stage.

POST /api/audio — MP3 voiceover for a script (binary body, not JSON)
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response

from trendspark.api.deps import Speech
from trendspark.schemas.schemas import AudioRequest, ErrorResponse
from trendspark.services.speech_service import AUDIO_MEDIA_TYPE, audio_filename

router = APIRouter(tags=["audio"])


@router.post(
    "/audio",
    response_class=Response,
    responses={
        200: {"content": {AUDIO_MEDIA_TYPE: {}}},
        400: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def generate_audio(body: AudioRequest, speech: Speech) -> Response:
    audio, voice = await speech.synthesize(
        body.script_text,
        voice=body.tts_options.voice,
        model=body.tts_options.model,
    )
    return Response(
        content=audio,
        media_type=AUDIO_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{audio_filename()}"',
            "X-TTS-Voice": voice,
        },
    )
