from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from fastapi import Depends, Security
from fastapi.security.api_key import APIKeyHeader

from app.core.config import settings
from app.core.errors import Unauthorized
from app.services.http_client import ServiceHttpClient, shared_client

log = logging.getLogger(__name__)

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

MISSING_CREDENTIAL = "Unauthorized - missing credential"
INVALID_CREDENTIAL = "Unauthorized - invalid credential"


@dataclass(frozen=True)
class Identity:
    id: str
    email: str | None = None


class IdentityProvider(Protocol):
    async def verify(self, token: str) -> Identity:
        """Return the identity behind `token` or raise Unauthorized."""
        ...


class SupabaseIdentityProvider:
    """
    Verifies access tokens against Supabase Auth (`GET /auth/v1/user`).

    Any non-2xx answer, transport failure or a body without a user id is an
    invalid credential; the caller never learns which one it was.
    """

    def __init__(self, *, http: ServiceHttpClient, base_url: str, anon_key: str):
        self._http = http
        self._url = f"{base_url.rstrip('/')}/auth/v1/user"
        self._anon_key = anon_key

    async def verify(self, token: str) -> Identity:
        res = await self._http.get_json(
            url=self._url,
            headers={"apikey": self._anon_key, "Authorization": f"Bearer {token}"},
        )
        if not res.ok:
            log.info("token rejected by identity provider: %s", res.error_message)
            raise Unauthorized(INVALID_CREDENTIAL)

        user_id = res.detail.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise Unauthorized(INVALID_CREDENTIAL)
        return Identity(id=user_id, email=res.detail.get("email"))


def parse_bearer(header: str | None) -> str:
    if not header:
        raise Unauthorized(MISSING_CREDENTIAL)
    scheme, _, token = header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized(MISSING_CREDENTIAL)
    return token


def get_identity_provider() -> IdentityProvider:
    return SupabaseIdentityProvider(
        http=shared_client("supabase-auth"),
        base_url=settings.supabase_url,
        anon_key=settings.supabase_anon_key,
    )


async def get_identity(
    authorization: str | None = Security(authorization_header),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    token = parse_bearer(authorization)
    return await provider.verify(token)
