"""
Content service — idea generation and script writing on a Groq chat model.

Both stages are single-turn, non-streaming chat completions. The chat model
is created per call through a factory so temperature and output budget can
differ per stage, and so tests can hand in a FakeListChatModel.
"""

from __future__ import annotations

import math
from collections.abc import Callable

import groq
import httpx
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from trendspark.core.config import Settings
from trendspark.core.errors import (
    ConfigError,
    EmptyResponse,
    NetworkError,
    UpstreamError,
    annotate_status,
)
from trendspark.core.logging import get_logger
from trendspark.core.text import clean_script, truncate_at_sentence

logger = get_logger(__name__)

ChatModelFactory = Callable[..., BaseChatModel]

# ── Prompt budgets ──────────────────────────────────────────
IDEAS_MAX_INPUT_CHARS = 7000
IDEAS_MAX_TOKENS = 350
IDEAS_TEMPERATURE = 0.7

SCRIPT_MAX_ARTICLE_CHARS = 6000
SCRIPT_MAX_IDEA_CHARS = 1000
SCRIPT_MAX_TOKENS = 1500
SCRIPT_TEMPERATURE = 0.6
TOKENS_PER_SECOND = 3.3
TOKEN_HEADROOM = 150


IDEAS_SYSTEM_PROMPT = "You are a helpful assistant creating TikTok video ideas from news text."

IDEAS_PROMPT = """
Based on the following news article content, generate ideas for a short (15-45 second) TikTok video. Provide the following:
1.  **Catchy Hook:** A short, attention-grabbing opening line (max 10 words).
2.  **Key Talking Points:** 3 concise bullet points summarizing the core message or most interesting aspects for a TikTok audience.
3.  **Call to Action (CTA):** A simple suggestion for viewers (e.g., "What do you think?", "Follow for more!", "Check the link in bio!").
4.  **Video Title Ideas:** 3 distinct, short, engaging title options suitable for TikTok.

Format the output clearly with headings for each section (use markdown bold for headings like **Catchy Hook:**). Ensure the ideas are directly based on the provided content.

**Article Content:**
---
{article}
---
"""

SCRIPT_PROMPT = """
You are a scriptwriter creating concise and engaging voiceover scripts for short social media videos (like TikTok) based on news articles and provided creative ideas.

**Instructions:**
1.  Review the "Article Content" for factual information.
2.  Review the "Content Ideas" (hook, points, titles) for creative direction.
3.  Write a complete voiceover script, approximately **{duration} seconds** long when read aloud at a moderate pace. Adjust the level of detail and number of points covered to fit this duration.
4.  **Strongly incorporate** the provided "Catchy Hook" at the beginning and weave the "Key Talking Points" into the main body of the script. Keep the script factually accurate according to the "Article Content".
5.  Maintain a **{tone}** tone throughout the script.
6.  End with the suggested "Call to Action (CTA)" from the ideas, or a similar one.
7.  **IMPORTANT: Your entire response MUST consist ONLY of the script text itself.** Do not include any headings, explanations, introductory sentences (like "Here is the script..."), markdown, or concluding remarks. The output must be ready for text-to-speech conversion.

**Article Content:**
---
{article}
---

**Content Ideas:**
---
{ideas}
---

**Generated Script:**
"""


def script_token_budget(duration: int) -> int:
    """Output tokens for a script read aloud in ``duration`` seconds."""
    return min(math.ceil(duration * TOKENS_PER_SECOND) + TOKEN_HEADROOM, SCRIPT_MAX_TOKENS)


def build_ideas_messages(text: str) -> list[BaseMessage]:
    article = truncate_at_sentence(text, IDEAS_MAX_INPUT_CHARS)
    if len(article) < len(text):
        logger.info("ideas_input_truncated", original=len(text), truncated=len(article))
    return [
        SystemMessage(content=IDEAS_SYSTEM_PROMPT),
        HumanMessage(content=IDEAS_PROMPT.format(article=article)),
    ]


def build_script_messages(text: str, ideas: str, duration: int, tone: str) -> list[BaseMessage]:
    article = truncate_at_sentence(text, SCRIPT_MAX_ARTICLE_CHARS)
    brief = truncate_at_sentence(ideas, SCRIPT_MAX_IDEA_CHARS)
    if len(article) < len(text) or len(brief) < len(ideas):
        logger.info(
            "script_input_truncated",
            article=(len(text), len(article)),
            ideas=(len(ideas), len(brief)),
        )
    prompt = SCRIPT_PROMPT.format(duration=duration, tone=tone, article=article, ideas=brief)
    return [HumanMessage(content=prompt)]


def groq_chat_factory(
    settings: Settings, http_client: httpx.AsyncClient | None = None
) -> ChatModelFactory:
    """Factory of ChatGroq models bound to the configured key and model.

    Models made by one factory share ``http_client``; its owner closes it.
    """
    if not settings.llm_configured:
        raise ConfigError("Server configuration error: AI service unavailable.")

    from langchain_groq import ChatGroq

    def make(temperature: float, max_tokens: int) -> BaseChatModel:
        return ChatGroq(
            model=settings.groq_model,
            api_key=settings.groq_api_key,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
            streaming=False,
            http_async_client=http_client,
        )

    return make


class ContentService:
    def __init__(self, chat_factory: ChatModelFactory) -> None:
        self.chat_factory = chat_factory

    async def _complete(
        self, stage: str, messages: list[BaseMessage], temperature: float, max_tokens: int
    ) -> str:
        llm = self.chat_factory(temperature=temperature, max_tokens=max_tokens)
        try:
            response = await llm.ainvoke(messages)
        except groq.APIStatusError as e:
            message = annotate_status(
                f"Groq API Error ({e.status_code}): {e.message}", e.status_code, "Groq"
            )
            logger.error(f"{stage}_upstream_error", status=e.status_code, error=e.message)
            raise UpstreamError(message, status_code=e.status_code) from e
        except groq.APIConnectionError as e:
            logger.error(f"{stage}_network_error", error=str(e))
            raise NetworkError(f"Groq request failed: {e}") from e

        content = response.content if isinstance(response.content, str) else ""
        return content.strip()

    async def generate_ideas(self, text: str) -> str:
        messages = build_ideas_messages(text)
        ideas = await self._complete("ideas", messages, IDEAS_TEMPERATURE, IDEAS_MAX_TOKENS)
        if not ideas:
            raise EmptyResponse("Failed to parse ideas from AI response.")

        logger.info("ideas_generated", input_chars=len(text), output_chars=len(ideas))
        return ideas

    async def write_script(
        self, text: str, ideas: str, duration: int = 90, tone: str = "informative"
    ) -> str:
        messages = build_script_messages(text, ideas, duration, tone)
        max_tokens = script_token_budget(duration)
        raw = await self._complete("script", messages, SCRIPT_TEMPERATURE, max_tokens)
        if not raw:
            raise EmptyResponse("Failed to parse script from AI response.")

        script = clean_script(raw)
        if not script:
            raise EmptyResponse("Failed to parse script from AI response.")

        logger.info(
            "script_written",
            duration=duration,
            tone=tone,
            max_tokens=max_tokens,
            output_chars=len(script),
        )
        return script
