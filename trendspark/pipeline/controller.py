"""
Pipeline controller — drives the five stage endpoints in order.

One request at a time: while ``session.busy`` is set every action is turned
away without touching the network. Each action first empties its own slot
and everything downstream, so a stale script can never sit next to freshly
extracted text. Failures are terminal for that action and are recorded in
``session.errors``; nothing is retried.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import httpx

from trendspark.core.logging import get_logger
from trendspark.pipeline.state import (
    AudioAsset,
    ExtractedDocument,
    PipelineSession,
    ScriptDraft,
    SelectableTrend,
    Stage,
)
from trendspark.schemas.schemas import NEWS_CATEGORIES, NEWS_COUNTRIES, SCRIPT_TONES, TrendItem

logger = get_logger(__name__)


class PipelineController:
    def __init__(self, client: httpx.AsyncClient, session: PipelineSession | None = None) -> None:
        self.client = client
        self.session = session or PipelineSession()

    # ── State helpers ──────────────────────────────────────
    @property
    def stage(self) -> Stage:
        return self.session.stage

    def reset_downstream(self, stage: Stage) -> None:
        """Clear every result strictly after ``stage``."""
        if stage < Stage.AUDIO_GENERATED:
            self.session.clear_from(Stage(stage + 1))

    def _accepting(self, action: str) -> bool:
        if self.session.busy:
            logger.warning("action_rejected_busy", action=action, status=self.session.status_message)
            return False
        return True

    async def _call(
        self, stage: Stage, status: str, send: Callable[[], Awaitable[httpx.Response]]
    ) -> httpx.Response | None:
        self.session.busy = True
        self.session.status_message = status
        try:
            resp = await send()
        except httpx.HTTPError as e:
            self._fail(stage, f"Network error: {e}")
            return None
        finally:
            self.session.busy = False
            self.session.status_message = ""

        if resp.is_error:
            self._fail(stage, _error_text(resp))
            return None
        return resp

    def _fail(self, stage: Stage, message: str) -> None:
        self.session.errors[stage] = message
        logger.error("stage_failed", stage=stage.name.lower(), error=message)

    def _json_data(self, stage: Stage, resp: httpx.Response):
        try:
            payload = resp.json()
        except ValueError:
            self._fail(stage, "Invalid JSON in response")
            return None
        if not isinstance(payload, dict) or payload.get("error") or payload.get("data") is None:
            message = payload.get("error") if isinstance(payload, dict) else None
            self._fail(stage, message or f"HTTP error! status: {resp.status_code}")
            return None
        return payload["data"]

    # ── Stage 1: trends ────────────────────────────────────
    async def find_trends(
        self,
        keywords: str | None = None,
        category: str = "technology",
        country: str = "us",
        limit: int = 15,
    ) -> bool:
        if category not in NEWS_CATEGORIES:
            raise ValueError(f"unknown category: {category}")
        if country not in NEWS_COUNTRIES:
            raise ValueError(f"unknown country: {country}")
        if not self._accepting("find_trends"):
            return False

        self.session.clear_from(Stage.TRENDS_LOADED)
        params: dict = {"limit": limit}
        if keywords and keywords.strip():
            params["keywords"] = keywords.strip()
        else:
            params.update(category=category, country=country)

        resp = await self._call(
            Stage.TRENDS_LOADED,
            "Finding news trends...",
            lambda: self.client.get("/api/trends", params=params),
        )
        data = self._json_data(Stage.TRENDS_LOADED, resp) if resp is not None else None
        if data is None:
            return False

        self.session.trends = [SelectableTrend(TrendItem.model_validate(t)) for t in data]
        logger.info("trends_loaded", count=len(self.session.trends))
        return True

    # ── Stage 2: extraction ────────────────────────────────
    async def select_trend(self, index: int) -> bool:
        """Mark trend ``index`` as selected and extract its article text."""
        if not self._accepting("select_trend"):
            return False
        if not 0 <= index < len(self.session.trends):
            logger.warning("select_trend_out_of_range", index=index)
            return False
        url = self.session.trends[index].item.url
        if not url:
            logger.warning("select_trend_without_url", index=index)
            return False

        self.session.clear_from(Stage.EXTRACTED)
        for i, trend in enumerate(self.session.trends):
            trend.is_selected = i == index
        self.session.selected_url = url

        resp = await self._call(
            Stage.EXTRACTED,
            "Extracting content...",
            lambda: self.client.post("/api/extract", json={"url": url}),
        )
        text = self._json_data(Stage.EXTRACTED, resp) if resp is not None else None
        if text is None:
            return False

        self.session.document = ExtractedDocument(url=url, text=text)
        logger.info("article_extracted", url=url, char_count=len(text))
        return True

    # ── Stage 3: ideas ─────────────────────────────────────
    async def generate_ideas(self) -> bool:
        if not self._accepting("generate_ideas"):
            return False
        document = self.session.document
        if document is None:
            return False

        self.session.clear_from(Stage.IDEAS_GENERATED)
        resp = await self._call(
            Stage.IDEAS_GENERATED,
            "Generating ideas with AI...",
            lambda: self.client.post("/api/ideas", json={"text": document.text}),
        )
        ideas = self._json_data(Stage.IDEAS_GENERATED, resp) if resp is not None else None
        if ideas is None:
            return False

        self.session.ideas = ideas
        return True

    # ── Stage 4: script ────────────────────────────────────
    async def write_script(self, duration: int = 90, tone: str = "informative") -> bool:
        if tone not in SCRIPT_TONES:
            raise ValueError(f"unknown tone: {tone}")
        if not self._accepting("write_script"):
            return False
        document, ideas = self.session.document, self.session.ideas
        if document is None or ideas is None:
            return False

        self.session.clear_from(Stage.SCRIPT_WRITTEN)
        body = {"text": document.text, "ideas": ideas, "duration": duration, "tone": tone}
        resp = await self._call(
            Stage.SCRIPT_WRITTEN,
            f"Writing script (~{duration}s)...",
            lambda: self.client.post("/api/script", json=body),
        )
        text = self._json_data(Stage.SCRIPT_WRITTEN, resp) if resp is not None else None
        if text is None:
            return False

        self.session.script = ScriptDraft(text=text, duration=duration, tone=tone)
        return True

    # ── Stage 5: audio ─────────────────────────────────────
    async def generate_audio(self, voice: str = "alloy", model: str = "tts-1") -> bool:
        if not self._accepting("generate_audio"):
            return False
        script = self.session.script
        if script is None:
            return False

        # Releases the previous asset's bytes
        self.session.clear_from(Stage.AUDIO_GENERATED)
        body = {"scriptText": script.text, "ttsOptions": {"voice": voice, "model": model}}
        resp = await self._call(
            Stage.AUDIO_GENERATED,
            "Generating audio...",
            lambda: self.client.post("/api/audio", json=body),
        )
        if resp is None:
            return False
        if not resp.content:
            self._fail(Stage.AUDIO_GENERATED, "Audio response was empty")
            return False

        used_voice = resp.headers.get("X-TTS-Voice", voice)
        self.session.audio = AudioAsset(
            data=resp.content, voice=used_voice, model=model, script=script
        )
        logger.info("audio_generated", voice=used_voice, audio_bytes=len(resp.content))
        return True

    def save_audio(self, directory: str) -> str | None:
        audio = self.session.audio
        if audio is None or audio.released:
            return None
        return str(audio.save(directory))


def _error_text(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"HTTP error! status: {resp.status_code}"
