import pytest
import httpx
from app.main import app

@pytest.mark.asyncio
async def test_health_needs_no_credential():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/v1/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_unknown_listing_route_method_is_not_a_500(client, alice_headers):
    r = await client.patch("/v1/listings/lst_x", headers=alice_headers)
    assert r.status_code == 405
    assert r.json() == {"error": "Method Not Allowed"}


@pytest.mark.asyncio
async def test_unhandled_error_maps_to_internal_error_body(client, alice_headers):
    from app.api.deps import get_listing_repository

    def _broken_repository():
        raise RuntimeError("boom")

    app.dependency_overrides[get_listing_repository] = _broken_repository
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/v1/listings", headers=alice_headers)

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}


@pytest.mark.asyncio
async def test_openapi_documents_error_body():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        schema = (await ac.get("/openapi.json")).json()

    assert "ErrorResponse" in schema["components"]["schemas"]
    responses = schema["paths"]["/v1/listings/{listing_id}"]["get"]["responses"]
    assert responses["404"]["content"]["application/json"]["schema"] == {"$ref": "#/components/schemas/ErrorResponse"}
