"""Deterministic local rewrite used when no generation provider succeeds.

The output depends only on the arguments: no clock, no randomness, no I/O.
Any string input, empty strings included, yields a complete markdown article.
"""

from __future__ import annotations

import re
from typing import List, Sequence

from enhancer.models import AcquiredReference

FALLBACK_PROVIDER_ID = "fallback"

MIN_CHUNK_LENGTH = 20
KEY_POINT_THRESHOLD = 300
MIN_SENTENCE_LENGTH = 20
MAX_KEY_POINTS = 3

_PARAGRAPH_BREAK = re.compile(r"\n[ \t\r\f\v]*\n")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def split_chunks(body: str) -> List[str]:
    """Blank-line separated paragraphs long enough to keep."""

    chunks = (chunk.strip() for chunk in _PARAGRAPH_BREAK.split(body or ""))
    return [chunk for chunk in chunks if len(chunk) >= MIN_CHUNK_LENGTH]


def extract_key_points(chunk: str) -> List[str]:
    if len(chunk) <= KEY_POINT_THRESHOLD:
        return []
    sentences = [
        " ".join(sentence.split())
        for sentence in _SENTENCE_END.split(chunk)
        if len(sentence.strip()) > MIN_SENTENCE_LENGTH
    ]
    if len(sentences) <= 2:
        return []
    return sentences[:MAX_KEY_POINTS]


def fallback_rewrite(title: str, body: str, references: Sequence[AcquiredReference]) -> str:
    title = " ".join((title or "").split())
    topic = title.lower() if title else "this topic"

    lines: List[str] = [f"# {title or 'Untitled Article'}", ""]

    lines += [
        "## Introduction",
        "",
        f"This article explores {topic}. Understanding this topic is essential in today's digital landscape.",
        "",
    ]

    chunks = split_chunks(body)
    for index, chunk in enumerate(chunks, start=1):
        lines += [f"## Section {index}", "", chunk, ""]
        key_points = extract_key_points(chunk)
        if key_points:
            lines += ["**Key Points:**", ""]
            lines += [f"- {sentence}" for sentence in key_points]
            lines.append("")

    if not chunks:
        lines += ["_The original article had no body content to expand._", ""]

    lines += [
        "## Key Takeaways",
        "",
        f"- Understanding {topic} is crucial for success",
        "- Implementation requires careful planning",
        "- Continuous learning and adaptation are essential",
        "",
        "## References",
        "",
    ]
    lines += [f"- {reference.title} — {reference.domain} ({reference.url})" for reference in references]

    return "\n".join(lines).rstrip() + "\n"
