import httpx
import pytest

from app.core.errors import Unauthorized
from app.services.auth import (
    INVALID_CREDENTIAL,
    MISSING_CREDENTIAL,
    SupabaseIdentityProvider,
    parse_bearer,
)
from app.services.http_client import ServiceHttpClient


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Token abc", "abc"])
def test_parse_bearer_rejects_missing_or_malformed(header):
    with pytest.raises(Unauthorized) as exc:
        parse_bearer(header)
    assert exc.value.message == MISSING_CREDENTIAL


def test_parse_bearer_extracts_token():
    assert parse_bearer("Bearer abc.def") == "abc.def"
    assert parse_bearer("bearer abc") == "abc"


@pytest.mark.asyncio
async def test_me_requires_credential(client, identity_provider):
    r = await client.get("/v1/me")
    assert r.status_code == 401
    assert r.json() == {"error": MISSING_CREDENTIAL}
    assert identity_provider.calls == 0


@pytest.mark.asyncio
async def test_me_rejects_invalid_token(client):
    r = await client.get("/v1/me", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert r.json() == {"error": INVALID_CREDENTIAL}


@pytest.mark.asyncio
async def test_me_returns_identity(client, alice_headers):
    r = await client.get("/v1/me", headers=alice_headers)
    assert r.status_code == 200
    assert r.json() == {"id": "user-alice", "email": "alice@example.com"}


@pytest.mark.asyncio
async def test_listing_routes_abort_before_touching_storage(client, object_store):
    r = await client.post(
        "/v1/upload",
        files={"image": ("a.png", b"\x89PNG", "image/png")},
        headers={"Authorization": "Basic dXNlcjpwYXNz"},
    )
    assert r.status_code == 401
    assert object_store.calls == {"put": 0, "sign": 0, "delete": 0}


def _provider(handler) -> SupabaseIdentityProvider:
    http = ServiceHttpClient(transport=httpx.MockTransport(handler))
    return SupabaseIdentityProvider(http=http, base_url="https://proj.supabase.co/", anon_key="anon")


@pytest.mark.asyncio
async def test_supabase_provider_resolves_user():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["apikey"] = request.headers["apikey"]
        return httpx.Response(200, json={"id": "u-1", "email": "u1@example.com"})

    identity = await _provider(handler).verify("tok")
    assert identity.id == "u-1"
    assert identity.email == "u1@example.com"
    assert seen == {"url": "https://proj.supabase.co/auth/v1/user", "auth": "Bearer tok", "apikey": "anon"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"msg": "invalid JWT"}),
        httpx.Response(200, json={"email": "no-id@example.com"}),
        httpx.Response(500, text="boom"),
    ],
)
async def test_supabase_provider_rejects(response):
    with pytest.raises(Unauthorized) as exc:
        await _provider(lambda request: response).verify("tok")
    assert exc.value.message == INVALID_CREDENTIAL


@pytest.mark.asyncio
async def test_supabase_provider_network_failure_is_invalid_credential():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(Unauthorized):
        await _provider(handler).verify("tok")
