from __future__ import annotations

import logging
from typing import Any

from app.core.errors import GenerationError
from app.schemas.analysis import AnalysisResult, DraftContent
from app.services.ai_client import AIProviderError, TextModel
from app.services.model_reply import parse_reply

log = logging.getLogger(__name__)

CONTENT_KEYS = ("title", "description")

DEFAULT_TITLE = "Product"
DEFAULT_DESCRIPTION = "A high-quality product with excellent features and durability."
FALLBACK_DESCRIPTION = (
    "A high-quality product with excellent features and durability. "
    "Perfect for various uses and applications."
)

STOPWORDS = frozenset({"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"})
TITLE_KEYWORDS = 4
MIN_TEXT_TOKEN_LEN = 4

CONTENT_PROMPT = """Generate a compelling product title and description for an e-commerce listing based on this detailed analysis:

Labels: {labels}
Objects: {objects}
Colors: {colors}
Text: {text}

Create a title and description that highlights the specific model, brand, and unique features. Be precise and detailed.

Please respond with ONLY a valid JSON object in this exact format:
{{
  "title": "Specific model name with key features (max 60 characters)",
  "description": "Detailed description mentioning exact model, brand, colors, and specific features (max 200 words)"
}}

Do not include any other text, just the JSON object."""


def build_prompt(analysis: AnalysisResult) -> str:
    return CONTENT_PROMPT.format(
        labels=", ".join(analysis.labels),
        objects=", ".join(analysis.objects),
        colors=", ".join(analysis.colors),
        text=analysis.text,
    )


def _keywords(analysis: AnalysisResult) -> list[str]:
    candidates = [
        *analysis.labels,
        *analysis.objects,
        *(t for t in analysis.text.split() if len(t) >= MIN_TEXT_TOKEN_LEN),
    ]
    # dict keeps first-seen order
    unique = dict.fromkeys(c for c in candidates if c)
    return [k for k in unique if k.lower() not in STOPWORDS]


def _capitalize_first(word: str) -> str:
    # only the first character changes: "iPhone" -> "IPhone", "BRAND" stays "BRAND"
    return word[:1].upper() + word[1:]


def fallback_content(analysis: AnalysisResult) -> DraftContent:
    """Deterministic draft built only from the analysis, used whenever the model can't help."""
    keywords = _keywords(analysis)[:TITLE_KEYWORDS]
    title = " ".join(_capitalize_first(k) for k in keywords) if keywords else DEFAULT_TITLE

    sentences = []
    if analysis.labels:
        sentences.append(f"This {analysis.labels[0]} features high-quality materials and craftsmanship.")
    if analysis.objects:
        sentences.append(f"Perfect for {analysis.objects[0]} enthusiasts and collectors.")
    if analysis.colors:
        sentences.append(f"Available in beautiful {analysis.colors[0]} tones.")
    if analysis.text:
        sentences.append("Includes detailed specifications and features.")

    description = " ".join(sentences) if sentences else FALLBACK_DESCRIPTION
    return DraftContent(title=title, description=description)


def content_from_json(data: dict[str, Any]) -> DraftContent:
    title = data.get("title")
    description = data.get("description")
    return DraftContent(
        title=title if isinstance(title, str) and title.strip() else DEFAULT_TITLE,
        description=description if isinstance(description, str) and description.strip() else DEFAULT_DESCRIPTION,
    )


class ContentGenerator:
    """
    Drafts listing copy from an analysis.

    Never fails: every provider or parse problem degrades to
    `fallback_content`.
    """

    def __init__(self, model: TextModel):
        self._model = model

    async def generate(self, analysis: AnalysisResult) -> DraftContent:
        try:
            return await self._draft_from_model(analysis)
        except GenerationError as e:
            log.warning("content generation failed, using fallback: %s", e.message)
            return fallback_content(analysis)

    async def _draft_from_model(self, analysis: AnalysisResult) -> DraftContent:
        try:
            reply = await self._model.generate_text(build_prompt(analysis))
        except AIProviderError as e:
            raise GenerationError(str(e)) from e

        if not reply.strip():
            raise GenerationError("empty reply")

        return parse_reply(
            reply,
            allowed_keys=CONTENT_KEYS,
            build=content_from_json,
            fallback=lambda _reply: fallback_content(analysis),
            what="generated content",
        )
