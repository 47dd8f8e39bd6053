"""
Scheduled / headless pipeline run.

Runs all five stages against a deployed TrendSpark API and writes the
voiceover to ./output/audio. Point it at the service with
TRENDSPARK_API_URL (default http://localhost:8000).

    python -m cron.trigger --category science --voice onyx

Exits 0 when an MP3 was written, 1 on the first failed stage, and 2 (argparse)
for an unknown category, country, tone or voice before any request is made.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

import httpx

from trendspark.core.config import TTS_VOICES
from trendspark.core.logging import get_logger, setup_logging
from trendspark.pipeline.controller import PipelineController
from trendspark.pipeline.state import Stage
from trendspark.schemas.schemas import NEWS_CATEGORIES, NEWS_COUNTRIES, SCRIPT_TONES

setup_logging()
logger = get_logger("cron")

OUTPUT_DIR = "./output/audio"
# Extraction + two LLM calls + TTS can take a while end to end
REQUEST_TIMEOUT = 180.0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the TrendSpark pipeline once.")
    parser.add_argument("--keywords", default=None)
    parser.add_argument("--category", default="technology", choices=NEWS_CATEGORIES)
    parser.add_argument("--country", default="us", choices=NEWS_COUNTRIES)
    parser.add_argument("--pick", type=int, default=0, help="index of the trend to use")
    parser.add_argument("--duration", type=int, default=90)
    parser.add_argument("--tone", default="informative", choices=SCRIPT_TONES)
    parser.add_argument("--voice", default="alloy", choices=TTS_VOICES)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, client: httpx.AsyncClient) -> int:
    controller = PipelineController(client)
    session = controller.session

    steps = (
        (Stage.TRENDS_LOADED, lambda: controller.find_trends(args.keywords, args.category, args.country)),
        (Stage.EXTRACTED, lambda: controller.select_trend(args.pick)),
        (Stage.IDEAS_GENERATED, controller.generate_ideas),
        (Stage.SCRIPT_WRITTEN, lambda: controller.write_script(args.duration, args.tone)),
        (Stage.AUDIO_GENERATED, lambda: controller.generate_audio(args.voice)),
    )
    for stage, step in steps:
        if not await step():
            logger.error(
                "cron_failed",
                stage=stage.name.lower(),
                error=session.errors.get(stage, "stage not runnable"),
            )
            return 1

    path = controller.save_audio(OUTPUT_DIR)
    logger.info(
        "cron_completed",
        article=session.selected_url,
        script_chars=len(session.script.text),
        audio=path,
    )
    return 0


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    base_url = os.environ.get("TRENDSPARK_API_URL", "http://localhost:8000")
    logger.info("cron_triggered", api=base_url)

    async with httpx.AsyncClient(base_url=base_url, timeout=REQUEST_TIMEOUT) as client:
        return await run(args, client)


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
