from __future__ import annotations

import base64
import logging
from typing import Protocol

from app.services.http_client import ServiceHttpClient

log = logging.getLogger(__name__)


class AIProviderError(Exception):
    """Transport or provider failure talking to the model."""


class TextModel(Protocol):
    async def generate_text(self, prompt: str, *, image: bytes | None = None, image_mime_type: str = "image/jpeg") -> str:
        ...


class GeminiClient:
    """
    One synchronous `generateContent` call per prompt.

    Returns the first candidate's text (possibly empty); the caller decides
    what an empty or malformed reply means.
    """

    def __init__(self, *, http: ServiceHttpClient, api_url: str, model: str, api_key: str):
        self._http = http
        self._url = f"{api_url.rstrip('/')}/{model}:generateContent"
        self._api_key = api_key

    async def generate_text(self, prompt: str, *, image: bytes | None = None, image_mime_type: str = "image/jpeg") -> str:
        parts: list[dict] = [{"text": prompt}]
        if image is not None:
            parts.append(
                {
                    "inline_data": {
                        "mime_type": image_mime_type,
                        "data": base64.b64encode(image).decode("ascii"),
                    }
                }
            )

        res = await self._http.post_json(
            url=self._url,
            params={"key": self._api_key},
            json_body={"contents": [{"parts": parts}]},
        )
        if not res.ok:
            raise AIProviderError(f"Gemini API error: {res.error_message}")

        return _first_candidate_text(res.detail)


def _first_candidate_text(body: dict) -> str:
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        log.warning("gemini reply carried no candidate text")
        return ""
    return text if isinstance(text, str) else ""
