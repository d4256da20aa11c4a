from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Literal

import httpx


HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


@dataclass(frozen=True)
class HttpResult:
    ok: bool
    status_code: int | None
    detail: dict[str, Any]

    error_code: str | None = None
    error_message: str | None = None

    elapsed_ms: int | None = None


def _is_json_response(resp: httpx.Response) -> bool:
    ct = (resp.headers.get("content-type") or "").lower()
    return "application/json" in ct or ct.endswith("+json")


def _cap_text(s: str, *, max_chars: int) -> str:
    if len(s) <= max_chars:
        return s
    return s[:max_chars] + f"...(truncated, {len(s)} chars)"


class ServiceHttpClient:
    """
    Shared HTTP client wrapper for the external provider adapters
    (identity provider, object storage, AI model).

    - Uses one AsyncClient instance (connection pooling).
    - Never retries; callers map a failed result onto their own error type.
    - Never raises for transport errors; returns a structured result instead.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 20.0,
        max_response_body_chars: int = 20_000,
        default_headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout = httpx.Timeout(timeout_seconds)
        self._max_body = max_response_body_chars
        self._default_headers = dict(default_headers or {})
        # transport is only swapped in tests (httpx.MockTransport)
        self._client = httpx.AsyncClient(timeout=self._timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        *,
        method: HttpMethod,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        content: bytes | None = None,
    ) -> HttpResult:
        # Merge headers (caller wins)
        h = dict(self._default_headers)
        if headers:
            h.update(dict(headers))

        try:
            resp = await self._client.request(
                method=method,
                url=url,
                headers=h,
                params=dict(params or {}),
                json=json_body,
                content=content,
            )
        except httpx.TimeoutException as e:
            return HttpResult(
                ok=False,
                status_code=None,
                detail={"error": "timeout"},
                error_code="TIMEOUT",
                error_message=str(e),
            )
        except httpx.RequestError as e:
            # DNS errors, connection refused, TLS, etc.
            return HttpResult(
                ok=False,
                status_code=None,
                detail={"error": "request_error"},
                error_code="REQUEST_ERROR",
                error_message=str(e),
            )

        # Parse response
        detail: dict[str, Any]
        if _is_json_response(resp):
            try:
                parsed = resp.json()
                # Ensure dict payload (if API returns list/string, still keep it)
                detail = parsed if isinstance(parsed, dict) else {"data": parsed}
            except ValueError:
                detail = {"raw": _cap_text(resp.text, max_chars=self._max_body)}
        else:
            # Non-JSON response (HTML, text, etc.)
            detail = {
                "raw": _cap_text(resp.text, max_chars=self._max_body),
                "content_type": resp.headers.get("content-type"),
            }

        try:
            elapsed_ms = int(resp.elapsed.total_seconds() * 1000)
        except RuntimeError:
            # elapsed is only available once the response stream is closed
            elapsed_ms = None

        if 200 <= resp.status_code < 300:
            return HttpResult(
                ok=True,
                status_code=resp.status_code,
                detail=detail,
                elapsed_ms=elapsed_ms,
            )

        return HttpResult(
            ok=False,
            status_code=resp.status_code,
            detail=detail,
            error_code=f"HTTP_{resp.status_code}",
            error_message=_error_message(resp.status_code, detail),
            elapsed_ms=elapsed_ms,
        )

    # helpers
    async def get_json(self, *, url: str, headers: Mapping[str, str] | None = None, params: Mapping[str, str] | None = None) -> HttpResult:
        return await self.request(method="GET", url=url, headers=headers, params=params)

    async def post_json(self, *, url: str, headers: Mapping[str, str] | None = None, params: Mapping[str, str] | None = None, json_body: Any = None) -> HttpResult:
        return await self.request(method="POST", url=url, headers=headers, params=params, json_body=json_body)

    async def post_bytes(self, *, url: str, content: bytes, headers: Mapping[str, str] | None = None) -> HttpResult:
        return await self.request(method="POST", url=url, headers=headers, content=content)

    async def delete_json(self, *, url: str, headers: Mapping[str, str] | None = None, json_body: Any = None) -> HttpResult:
        return await self.request(method="DELETE", url=url, headers=headers, json_body=json_body)


def _error_message(status_code: int, detail: dict[str, Any]) -> str:
    # Supabase uses "message"/"msg", Google APIs nest it under "error"
    msg = detail.get("message") or detail.get("msg") or detail.get("error_description")
    err = detail.get("error")
    if not msg and isinstance(err, dict):
        msg = err.get("message")
    elif not msg and isinstance(err, str):
        msg = err
    return f"HTTP {status_code}: {msg}" if msg else f"HTTP {status_code}"


_shared: dict[str, ServiceHttpClient] = {}


def shared_client(name: str, *, timeout_seconds: float = 20.0) -> ServiceHttpClient:
    """One pooled client per provider for the life of the process."""
    client = _shared.get(name)
    if client is None:
        client = _shared[name] = ServiceHttpClient(timeout_seconds=timeout_seconds)
    return client


async def close_shared_clients() -> None:
    while _shared:
        _, client = _shared.popitem()
        await client.aclose()
