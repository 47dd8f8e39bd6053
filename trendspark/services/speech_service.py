"""
Speech service — OpenAI text-to-speech.

Unknown voices fall back to the configured default instead of failing, and
scripts over the provider's input limit are cut before submission.
"""

from __future__ import annotations

import time
from typing import Any

import openai

from trendspark.core.config import TTS_VOICES, Settings
from trendspark.core.errors import (
    ConfigError,
    EmptyStream,
    NetworkError,
    UpstreamError,
    annotate_status,
)
from trendspark.core.logging import get_logger

logger = get_logger(__name__)

MAX_SCRIPT_CHARS = 4000
AUDIO_MEDIA_TYPE = "audio/mpeg"


def resolve_voice(voice: str | None, default: str) -> str:
    return voice if voice in TTS_VOICES else default


def audio_filename(now: float | None = None) -> str:
    stamp = int((time.time() if now is None else now) * 1000)
    return f"trendspark_audio_{stamp}.mp3"


class SpeechService:
    def __init__(self, client: Any, default_voice: str = "nova", default_model: str = "tts-1") -> None:
        self.client = client
        self.default_voice = default_voice
        self.default_model = default_model

    @classmethod
    def from_settings(cls, settings: Settings) -> SpeechService:
        if not settings.tts_configured:
            raise ConfigError("Server configuration error: Audio service unavailable.")
        client = openai.AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.tts_timeout_seconds,
            max_retries=0,
        )
        return cls(client, settings.tts_default_voice, settings.tts_default_model)

    async def synthesize(
        self, script: str, voice: str | None = None, model: str | None = None
    ) -> tuple[bytes, str]:
        """Return ``(mp3_bytes, voice_used)``."""
        chosen_voice = resolve_voice(voice, self.default_voice)
        if voice and chosen_voice != voice:
            logger.info("tts_voice_substituted", requested=voice, used=chosen_voice)
        chosen_model = model or self.default_model

        if len(script) > MAX_SCRIPT_CHARS:
            logger.info("tts_input_truncated", original=len(script), truncated=MAX_SCRIPT_CHARS)
            script = script[:MAX_SCRIPT_CHARS]

        try:
            response = await self.client.audio.speech.create(
                model=chosen_model,
                voice=chosen_voice,
                input=script,
                response_format="mp3",
            )
        except openai.APIStatusError as e:
            message = annotate_status(
                f"OpenAI API Error ({e.status_code}): {e.message}", e.status_code, "OpenAI"
            )
            logger.error("tts_upstream_error", status=e.status_code, error=e.message)
            raise UpstreamError(message, status_code=e.status_code) from e
        except openai.APIConnectionError as e:
            logger.error("tts_network_error", error=str(e))
            raise NetworkError(f"OpenAI request failed: {e}") from e

        audio = response.content
        if not audio:
            raise EmptyStream("Failed to generate audio: provider returned no audio data.")

        logger.info(
            "tts_generated",
            voice=chosen_voice,
            model=chosen_model,
            script_chars=len(script),
            audio_bytes=len(audio),
        )
        return audio, chosen_voice
