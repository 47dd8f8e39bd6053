"""
Text helpers: prompt-size truncation, extracted-HTML cleanup, script cleanup.
"""

from __future__ import annotations

import re

SENTENCE_TERMINATORS = ".!?"

# ── Truncation ──────────────────────────────────────────────
def truncate_at_sentence(text: str, max_chars: int) -> str:
    """
    Bound ``text`` to ``max_chars``, preferring a sentence boundary.

    The cut lands just after the last terminator if that terminator sits in
    the final 20% of the window; otherwise it is a hard cut.
    """
    if len(text) <= max_chars:
        return text

    last_stop = max(text.rfind(mark, 0, max_chars) for mark in SENTENCE_TERMINATORS)
    if last_stop > max_chars * 0.8:
        return text[: last_stop + 1]
    return text[:max_chars]


# ── HTML cleanup ────────────────────────────────────────────
_BLOCK_END = re.compile(
    r"</(?:p|div|h[1-6]|li|blockquote|pre|section|article|tr|ul|ol|table)\s*>",
    re.IGNORECASE,
)
_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")
_HORIZONTAL_WS = re.compile(r"[ \t\xa0]+")
_LINE_EDGE_WS = re.compile(r" ?(?:\r\n|\n|\r) ?")
_BLANK_RUN = re.compile(r"\n{2,}")

_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)


def clean_article_html(html: str) -> str:
    """Turn readability's article HTML into plain paragraphs separated by one blank line."""
    text = _BLOCK_END.sub("\n\n", html)
    text = _BREAK.sub("\n", text)
    text = _TAG.sub("", text)
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    text = _HORIZONTAL_WS.sub(" ", text)
    text = _LINE_EDGE_WS.sub("\n", text)
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()


# ── Script cleanup ──────────────────────────────────────────
PREAMBLE_PATTERNS = (
    re.compile(r"^here'?s?\s+the\s+(final\s+)?script(\s*text)?\s*:", re.IGNORECASE),
    re.compile(r"^here\s+is\s+the\s+(final\s+)?script\s*:", re.IGNORECASE),
    re.compile(r"^script\s*:", re.IGNORECASE),
    re.compile(r"^the\s+(final\s+)?script\s+is\s*:", re.IGNORECASE),
)


def strip_preamble(script: str) -> str:
    """Drop the first line if (and only if) it is an introductory label."""
    first_line, _, rest = script.partition("\n")
    if any(p.match(first_line.strip()) for p in PREAMBLE_PATTERNS):
        return rest.strip()
    return script


def clean_script(raw: str) -> str:
    script = raw.strip()
    if len(script) >= 2 and script.startswith('"') and script.endswith('"'):
        script = script[1:-1]
    script = script.replace("**", "")
    return strip_preamble(script)
