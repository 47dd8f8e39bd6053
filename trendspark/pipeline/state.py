"""
Pipeline session state — one slot per stage result plus a busy/status pair.

The pipeline is linear: re-running a stage empties every slot after it, so
at most one instance of each entity is ever active.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from pathlib import Path

from trendspark.schemas.schemas import TrendItem


class Stage(enum.IntEnum):
    IDLE = 0
    TRENDS_LOADED = 1
    EXTRACTED = 2
    IDEAS_GENERATED = 3
    SCRIPT_WRITTEN = 4
    AUDIO_GENERATED = 5


@dataclass
class SelectableTrend:
    item: TrendItem
    is_selected: bool = False


@dataclass
class ExtractedDocument:
    url: str
    text: str


@dataclass
class ScriptDraft:
    text: str
    duration: int
    tone: str


@dataclass
class AudioAsset:
    data: bytes | None
    voice: str
    model: str
    script: ScriptDraft
    created_at: float = field(default_factory=time.time)

    @property
    def released(self) -> bool:
        return self.data is None

    @property
    def suggested_filename(self) -> str:
        return f"trendspark_audio_{int(self.created_at * 1000)}.mp3"

    def release(self) -> None:
        self.data = None

    def save(self, directory: str | Path) -> Path:
        if self.data is None:
            raise ValueError("audio asset has been released")
        target = Path(directory)
        target.mkdir(parents=True, exist_ok=True)
        path = target / self.suggested_filename
        path.write_bytes(self.data)
        return path


@dataclass
class PipelineSession:
    trends: list[SelectableTrend] = field(default_factory=list)
    selected_url: str | None = None
    document: ExtractedDocument | None = None
    ideas: str | None = None
    script: ScriptDraft | None = None
    audio: AudioAsset | None = None
    errors: dict[Stage, str] = field(default_factory=dict)
    busy: bool = False
    status_message: str = ""

    @property
    def stage(self) -> Stage:
        """Furthest stage with a result."""
        if self.audio is not None and not self.audio.released:
            return Stage.AUDIO_GENERATED
        if self.script is not None:
            return Stage.SCRIPT_WRITTEN
        if self.ideas is not None:
            return Stage.IDEAS_GENERATED
        if self.document is not None:
            return Stage.EXTRACTED
        if self.trends:
            return Stage.TRENDS_LOADED
        return Stage.IDLE

    def clear_from(self, stage: Stage) -> None:
        """Empty ``stage`` and everything after it."""
        if stage <= Stage.TRENDS_LOADED:
            self.trends = []
        if stage <= Stage.EXTRACTED:
            self.selected_url = None
            self.document = None
            for trend in self.trends:
                trend.is_selected = False
        if stage <= Stage.IDEAS_GENERATED:
            self.ideas = None
        if stage <= Stage.SCRIPT_WRITTEN:
            self.script = None
        if stage <= Stage.AUDIO_GENERATED and self.audio is not None:
            self.audio.release()
            self.audio = None
        for s in list(self.errors):
            if s >= stage:
                del self.errors[s]
