"""Unit tests for the pipeline controller: gating, downstream reset, busy flag."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from fakes import FAKE_MP3, SAMPLE_IDEAS, SAMPLE_SCRIPT, StubSpeechClient
from trendspark.api.deps import (
    get_article_extractor,
    get_content_service,
    get_news_service,
    get_speech_service,
)
from trendspark.core.config import get_settings
from trendspark.main import app
from trendspark.pipeline.controller import PipelineController
from trendspark.pipeline.state import (
    AudioAsset,
    ExtractedDocument,
    PipelineSession,
    ScriptDraft,
    SelectableTrend,
    Stage,
)
from trendspark.schemas.schemas import TrendItem
from trendspark.services.content_service import ContentService
from trendspark.services.extraction_service import ArticleExtractor
from trendspark.services.news_service import NewsService
from trendspark.services.speech_service import SpeechService

TRENDS = [
    {"title": f"Story {i}", "url": f"https://news.example.com/{i}", "source": "Wire"}
    for i in range(3)
]


class FakeStageApi:
    """Answers the five stage endpoints and counts calls per path."""

    def __init__(self, fail: dict[str, tuple[int, dict]] | None = None) -> None:
        self.calls: list[str] = []
        self.fail = fail or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)
        if path in self.fail:
            status, body = self.fail[path]
            return httpx.Response(status, json=body)
        if path == "/api/trends":
            return httpx.Response(200, json={"data": TRENDS})
        if path == "/api/extract":
            return httpx.Response(200, json={"data": "Extracted article text."})
        if path == "/api/ideas":
            return httpx.Response(200, json={"data": SAMPLE_IDEAS})
        if path == "/api/script":
            return httpx.Response(200, json={"data": SAMPLE_SCRIPT})
        if path == "/api/audio":
            return httpx.Response(200, content=FAKE_MP3, headers={"X-TTS-Voice": "alloy"})
        return httpx.Response(404, json={"error": "not found"})


def _controller(api: FakeStageApi) -> PipelineController:
    client = httpx.AsyncClient(transport=httpx.MockTransport(api), base_url="http://trendspark")
    return PipelineController(client)


async def _run_all(controller: PipelineController) -> None:
    assert await controller.find_trends()
    assert await controller.select_trend(1)
    assert await controller.generate_ideas()
    assert await controller.write_script(duration=60, tone="casual")
    assert await controller.generate_audio(voice="alloy")


def _full_session() -> PipelineSession:
    script = ScriptDraft(text="s", duration=90, tone="informative")
    return PipelineSession(
        trends=[SelectableTrend(TrendItem(title="t", url="https://x/1"), is_selected=True)],
        selected_url="https://x/1",
        document=ExtractedDocument(url="https://x/1", text="doc"),
        ideas="ideas",
        script=script,
        audio=AudioAsset(data=b"mp3", voice="nova", model="tts-1", script=script),
    )


# ── Happy path ──────────────────────────────────────────────
class TestPipelineFlow:
    def test_runs_all_five_stages_in_order(self):
        api = FakeStageApi()
        controller = _controller(api)
        asyncio.run(_run_all(controller))

        session = controller.session
        assert api.calls == ["/api/trends", "/api/extract", "/api/ideas", "/api/script", "/api/audio"]
        assert controller.stage is Stage.AUDIO_GENERATED
        assert [t.is_selected for t in session.trends] == [False, True, False]
        assert session.document.url == "https://news.example.com/1"
        assert session.script == ScriptDraft(text=SAMPLE_SCRIPT, duration=60, tone="casual")
        assert session.audio.data == FAKE_MP3
        assert session.audio.script is session.script
        assert session.busy is False
        assert session.status_message == ""

    def test_keyword_search_params(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"data": TRENDS})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://t")
        asyncio.run(PipelineController(client).find_trends(keywords=" solar ", limit=15))
        params = seen[0].url.params
        assert params["keywords"] == "solar"
        assert params["limit"] == "15"
        assert "category" not in params

    def test_unknown_category_rejected_locally(self):
        api = FakeStageApi()
        with pytest.raises(ValueError):
            asyncio.run(_controller(api).find_trends(category="gossip"))
        assert api.calls == []


# ── Stage gating ────────────────────────────────────────────
class TestGating:
    @pytest.mark.parametrize(
        "action",
        [
            lambda c: c.generate_ideas(),
            lambda c: c.write_script(),
            lambda c: c.generate_audio(),
            lambda c: c.select_trend(0),
        ],
    )
    def test_actions_need_their_prerequisite(self, action):
        api = FakeStageApi()
        controller = _controller(api)
        assert asyncio.run(action(controller)) is False
        assert api.calls == []

    def test_trend_without_url_cannot_be_selected(self):
        api = FakeStageApi()
        controller = _controller(api)
        controller.session.trends = [SelectableTrend(TrendItem(title="No link"))]
        assert asyncio.run(controller.select_trend(0)) is False
        assert api.calls == []


# ── Downstream reset ────────────────────────────────────────
class TestDownstreamReset:
    @pytest.mark.parametrize("stage", list(Stage))
    def test_reset_empties_every_later_stage(self, stage):
        controller = _controller(FakeStageApi())
        controller.session = _full_session()
        controller.reset_downstream(stage)

        s = controller.session
        populated = {
            Stage.TRENDS_LOADED: bool(s.trends),
            Stage.EXTRACTED: s.document is not None,
            Stage.IDEAS_GENERATED: s.ideas is not None,
            Stage.SCRIPT_WRITTEN: s.script is not None,
            Stage.AUDIO_GENERATED: s.audio is not None,
        }
        for later, present in populated.items():
            assert present is (later <= stage)

    def test_reset_releases_audio(self):
        session = _full_session()
        audio = session.audio
        session.clear_from(Stage.SCRIPT_WRITTEN)
        assert audio.released
        assert session.audio is None

    def test_selecting_new_trend_clears_later_results(self):
        api = FakeStageApi()
        controller = _controller(api)
        asyncio.run(_run_all(controller))
        old_audio = controller.session.audio

        assert asyncio.run(controller.select_trend(2))
        s = controller.session
        assert s.ideas is None and s.script is None and s.audio is None
        assert old_audio.released
        assert [t.is_selected for t in s.trends] == [False, False, True]
        assert controller.stage is Stage.EXTRACTED

    def test_regenerating_ideas_clears_script_and_audio(self):
        controller = _controller(FakeStageApi())
        asyncio.run(_run_all(controller))
        assert asyncio.run(controller.generate_ideas())
        assert controller.session.script is None
        assert controller.session.audio is None
        assert controller.session.document is not None

    def test_new_search_clears_everything(self):
        controller = _controller(FakeStageApi())
        asyncio.run(_run_all(controller))
        assert asyncio.run(controller.find_trends())
        s = controller.session
        assert s.document is None and s.selected_url is None
        assert not any(t.is_selected for t in s.trends)

    def test_regenerating_audio_releases_previous_asset(self):
        controller = _controller(FakeStageApi())
        asyncio.run(_run_all(controller))
        first = controller.session.audio
        assert asyncio.run(controller.generate_audio(voice="onyx"))
        assert first.released
        assert controller.session.audio is not first
        assert controller.session.audio.data == FAKE_MP3


# ── Failures ────────────────────────────────────────────────
class TestFailures:
    def test_failed_stage_stays_empty_and_records_error(self):
        api = FakeStageApi(fail={"/api/ideas": (429, {"error": "Groq API Error (429): x Rate limit hit."})})
        controller = _controller(api)

        async def scenario():
            assert await controller.find_trends()
            assert await controller.select_trend(0)
            assert await controller.generate_ideas() is False

        asyncio.run(scenario())
        s = controller.session
        assert s.ideas is None
        assert s.errors[Stage.IDEAS_GENERATED].endswith("Rate limit hit.")
        assert s.document is not None
        assert controller.stage is Stage.EXTRACTED
        assert s.busy is False

    def test_error_without_json_body(self):
        def handler(request):
            return httpx.Response(502, text="Bad gateway")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://t")
        controller = PipelineController(client)
        assert asyncio.run(controller.find_trends()) is False
        assert controller.session.errors[Stage.TRENDS_LOADED] == "HTTP error! status: 502"

    def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://t")
        controller = PipelineController(client)
        assert asyncio.run(controller.find_trends()) is False
        assert controller.session.errors[Stage.TRENDS_LOADED].startswith("Network error")
        assert controller.session.busy is False

    def test_retry_clears_previous_error(self):
        api = FakeStageApi(fail={"/api/trends": (500, {"error": "boom"})})
        controller = _controller(api)
        assert asyncio.run(controller.find_trends()) is False
        api.fail.clear()
        assert asyncio.run(controller.find_trends()) is True
        assert Stage.TRENDS_LOADED not in controller.session.errors


# ── Busy flag ───────────────────────────────────────────────
class TestBusy:
    def test_second_action_rejected_while_busy(self):
        calls: list[str] = []

        async def scenario():
            started = asyncio.Event()
            release = asyncio.Event()

            async def handler(request):
                calls.append(request.url.path)
                started.set()
                await release.wait()
                return httpx.Response(200, json={"data": TRENDS})

            client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://t")
            controller = PipelineController(client)
            first = asyncio.create_task(controller.find_trends())
            await started.wait()

            assert controller.session.busy is True
            assert controller.session.status_message == "Finding news trends..."
            assert await controller.find_trends() is False
            assert await controller.select_trend(0) is False

            release.set()
            assert await first is True
            assert controller.session.busy is False
            assert controller.session.status_message == ""

        asyncio.run(scenario())
        assert calls == ["/api/trends"]


# ── Audio asset ─────────────────────────────────────────────
class TestAudioAsset:
    def test_save_uses_timestamped_name(self, tmp_path):
        script = ScriptDraft(text="s", duration=90, tone="informative")
        asset = AudioAsset(data=b"mp3", voice="nova", model="tts-1", script=script, created_at=1.5)
        path = asset.save(tmp_path)
        assert path.name == "trendspark_audio_1500.mp3"
        assert path.read_bytes() == b"mp3"

    def test_released_asset_cannot_be_saved(self, tmp_path):
        script = ScriptDraft(text="s", duration=90, tone="informative")
        asset = AudioAsset(data=b"mp3", voice="nova", model="tts-1", script=script)
        asset.release()
        with pytest.raises(ValueError):
            asset.save(tmp_path)

    def test_controller_save_audio(self, tmp_path):
        controller = _controller(FakeStageApi())
        assert controller.save_audio(str(tmp_path)) is None
        asyncio.run(_run_all(controller))
        saved = controller.save_audio(str(tmp_path))
        assert saved is not None and saved.endswith(".mp3")


# ── Against the real app ────────────────────────────────────
class TestAgainstApp:
    def test_full_run_through_asgi(self, settings, news_transport, page_transport):
        speech_client = StubSpeechClient()

        def chat_factory(temperature, max_tokens):
            from langchain_core.language_models.fake_chat_models import FakeListChatModel

            reply = SAMPLE_IDEAS if max_tokens == 350 else SAMPLE_SCRIPT
            return FakeListChatModel(responses=[reply])

        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_news_service] = lambda: NewsService.from_settings(
            settings, transport=news_transport
        )
        app.dependency_overrides[get_article_extractor] = lambda: ArticleExtractor.from_settings(
            settings, transport=page_transport
        )
        app.dependency_overrides[get_content_service] = lambda: ContentService(chat_factory)
        app.dependency_overrides[get_speech_service] = lambda: SpeechService(speech_client)

        async def scenario() -> PipelineController:
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://trendspark") as client:
                controller = PipelineController(client)
                await _run_all(controller)
                return controller

        try:
            controller = asyncio.run(scenario())
        finally:
            app.dependency_overrides.clear()

        s = controller.session
        assert len(s.trends) == 15
        assert "Hello & welcome" in s.document.text
        assert s.script.text == SAMPLE_SCRIPT
        assert s.audio.data == FAKE_MP3
        assert speech_client.requests[0]["voice"] == "alloy"
