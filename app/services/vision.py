from __future__ import annotations

import logging
from typing import Any

from app.core.errors import AnalysisError
from app.schemas.analysis import AnalysisResult
from app.services.ai_client import AIProviderError, TextModel
from app.services.model_reply import parse_reply

log = logging.getLogger(__name__)

ANALYSIS_KEYS = ("labels", "text", "objects", "colors", "confidence")

DEFAULT_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.7

_TEXT_HINTS = ("text", "words", "letters")
_COLOR_HINTS = ("red", "blue", "green", "yellow", "black", "white")

ANALYSIS_PROMPT = """Analyze this image with extreme detail and specificity. Focus on identifying the exact model, brand, and specific features.

Please respond with ONLY a valid JSON object in this exact format:
{
  "labels": ["specific brand", "exact model", "specific features", "category"],
  "text": "any text, numbers, or markings visible in the image",
  "objects": ["exact product name", "specific components", "identifiable parts"],
  "colors": ["specific color names", "finish type"],
  "confidence": 0.95
}

Be extremely specific - if it's an iPhone, identify the exact model (iPhone 14 Pro, iPhone 7, etc.). If it's a laptop, identify the brand and model. Include any visible text, serial numbers, or model identifiers."""


def _str_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise TypeError(f"expected a list, got {type(value).__name__}")
    return [str(v) for v in value if v is not None and str(v)]


def _confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, float(value)))


def analysis_from_json(data: dict[str, Any]) -> AnalysisResult:
    text = data.get("text") or ""
    return AnalysisResult(
        labels=_str_list(data.get("labels")),
        text=text if isinstance(text, str) else str(text),
        objects=_str_list(data.get("objects")),
        colors=_str_list(data.get("colors")),
        confidence=_confidence(data.get("confidence")),
    )


def fallback_analysis(reply: str) -> AnalysisResult:
    """Low-confidence guess for a reply that was not JSON, enriched by keyword sniffing."""
    lowered = reply.lower()
    text = "Text detected in image" if any(h in lowered for h in _TEXT_HINTS) else ""
    colors = ["mixed colors"] if any(c in lowered for c in _COLOR_HINTS) else ["mixed"]
    return AnalysisResult(
        labels=["product", "item"],
        text=text,
        objects=["object"],
        colors=colors,
        confidence=FALLBACK_CONFIDENCE,
    )


class VisionAnalyzer:
    def __init__(self, model: TextModel):
        self._model = model

    async def analyze(self, image: bytes, mime_type: str = "image/jpeg") -> AnalysisResult:
        try:
            reply = await self._model.generate_text(ANALYSIS_PROMPT, image=image, image_mime_type=mime_type)
        except AIProviderError as e:
            log.error("image analysis request failed: %s", e)
            raise AnalysisError() from e

        if not reply.strip():
            log.error("image analysis returned an empty reply")
            raise AnalysisError()

        return parse_reply(
            reply,
            allowed_keys=ANALYSIS_KEYS,
            build=analysis_from_json,
            fallback=fallback_analysis,
            what="image analysis",
        )
