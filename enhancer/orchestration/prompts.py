"""Prompt assembly for the rewrite step."""

from __future__ import annotations

import textwrap
from typing import Sequence

from enhancer.models import AcquiredReference

ORIGINAL_CONTENT_LIMIT = 2000
REFERENCE_CONTENT_LIMIT = 500

REWRITE_INSTRUCTIONS = textwrap.dedent(
    """
    INSTRUCTIONS FOR REWRITING:
    1. IMPROVE STRUCTURE:
       - Open with an introduction that sets context and hooks the reader
       - Use clear headings and subheadings (H2, H3) in a logical flow
       - Add bullet points or numbered lists where appropriate
    2. ENHANCE CONTENT QUALITY:
       - Keep the original core message and key points
       - Expand important concepts with detail and examples
       - Prefer active voice and concise sentences
    3. OPTIMIZE FOR READABILITY:
       - Keep paragraphs short (3-5 sentences)
       - Use transitions between paragraphs
       - Emphasize key terms in bold or italics
    4. ADD VALUE:
       - Include practical, actionable advice
       - Add a "Key Takeaways" section near the end
    5. CITATIONS:
       - End with a "References" section citing and linking the reference articles

    FORMAT REQUIREMENTS:
    - Start with an engaging title
    - Use markdown formatting throughout
    - Do not include meta-commentary about the rewriting process
    """
).strip()


def _format_reference(index: int, reference: AcquiredReference) -> str:
    excerpt = (reference.extracted_content or "")[:REFERENCE_CONTENT_LIMIT]
    return "\n".join(
        [
            f"Reference {index}:",
            f"Title: {reference.title}",
            f"Source: {reference.domain}",
            f"URL: {reference.url}",
            f"Key Points: {excerpt}",
        ]
    )


def build_rewrite_prompt(title: str, content: str, references: Sequence[AcquiredReference]) -> str:
    """Combine the original article, reference excerpts and instructions into one prompt."""

    reference_block = "\n\n".join(_format_reference(i, ref) for i, ref in enumerate(references, start=1))
    sections = [
        "You are an expert content writer and editor. Rewrite the following article to improve its "
        "quality, structure, and readability, matching the standard of top-ranking articles on the topic.",
        "ORIGINAL ARTICLE:\n" f"Title: {title}\n" f"Content: {(content or '')[:ORIGINAL_CONTENT_LIMIT]}",
        "REFERENCE ARTICLES:\n" + (reference_block or "None available."),
        REWRITE_INSTRUCTIONS,
        "REWRITTEN ARTICLE:",
    ]
    return "\n\n".join(sections)
