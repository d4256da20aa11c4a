"""
Parsing for free-text model replies that are supposed to hold one JSON object.

Models wrap JSON in markdown fences, add prose, or drift from the requested
shape. `parse_reply` tries a strict parse of the fenced body, keeps only the
whitelisted keys, and otherwise hands the raw text to a pure fallback. It
never raises for malformed output.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Iterable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE_OPEN = re.compile(r"^```[a-zA-Z0-9_-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fence(text: str) -> str:
    body = text.strip()
    if body.startswith("```"):
        body = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", body))
    return body


def load_json_object(text: str, *, allowed_keys: Iterable[str]) -> dict[str, Any] | None:
    try:
        data = json.loads(strip_code_fence(text))
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    allowed = set(allowed_keys)
    return {k: v for k, v in data.items() if k in allowed}


def parse_reply(
    text: str,
    *,
    allowed_keys: Iterable[str],
    build: Callable[[dict[str, Any]], T],
    fallback: Callable[[str], T],
    what: str = "model reply",
) -> T:
    data = load_json_object(text, allowed_keys=allowed_keys)
    if data is not None:
        try:
            return build(data)
        except (TypeError, ValueError) as e:
            log.warning("%s had an unexpected shape (%s), using fallback", what, e)
            return fallback(text)

    log.warning("failed to parse %s as JSON, using fallback", what)
    return fallback(text)
