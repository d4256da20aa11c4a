import json

import pytest

from app.services.ai_client import AIProviderError

from conftest import PNG_BYTES

ANALYSIS_REPLY = json.dumps(
    {"labels": ["Chair"], "text": "", "objects": ["furniture"], "colors": ["brown"], "confidence": 0.9}
)


@pytest.mark.asyncio
async def test_analyze_returns_analysis_and_content(client, fake_model):
    fake_model.replies = [ANALYSIS_REPLY, '{"title": "Mid-Century Chair", "description": "Walnut frame."}']

    r = await client.post("/v1/analyze", files={"image": ("chair.png", PNG_BYTES, "image/png")})
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["success"] is True
    assert body["analysis"]["labels"] == ["Chair"]
    assert body["analysis"]["confidence"] == pytest.approx(0.9)
    assert body["content"] == {"title": "Mid-Century Chair", "description": "Walnut frame."}
    assert fake_model.calls[0]["image"] == PNG_BYTES


@pytest.mark.asyncio
async def test_analyze_masks_generation_failure(client, fake_model):
    fake_model.replies = [ANALYSIS_REPLY, AIProviderError("HTTP 503")]

    r = await client.post("/v1/analyze", files={"image": ("chair.png", PNG_BYTES, "image/png")})
    assert r.status_code == 200
    assert r.json()["content"]["title"] == "Chair Furniture"


@pytest.mark.asyncio
async def test_analyze_provider_failure_is_500(client, fake_model):
    fake_model.replies = [AIProviderError("HTTP 500")]

    r = await client.post("/v1/analyze", files={"image": ("chair.png", PNG_BYTES, "image/png")})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to analyze image"}


@pytest.mark.asyncio
async def test_analyze_requires_image(client, fake_model):
    r = await client.post("/v1/analyze", data={"note": "no file"})
    assert r.status_code == 400
    assert r.json() == {"error": "No image file provided"}
    assert fake_model.calls == []


@pytest.mark.asyncio
async def test_analyze_rejects_non_image(client, fake_model):
    r = await client.post("/v1/analyze", files={"image": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 400
    assert r.json() == {"error": "File must be an image"}
    assert fake_model.calls == []


@pytest.mark.asyncio
async def test_upload_returns_signed_url_and_path(client, alice_headers):
    r = await client.post("/v1/upload", files={"image": ("chair.png", PNG_BYTES, "image/png")}, headers=alice_headers)
    assert r.status_code == 200
    body = r.json()

    assert body["success"] is True
    assert body["path"].startswith("user-alice/")
    assert body["path"] in body["url"]

    img = await client.get(body["url"])
    assert img.content == PNG_BYTES


@pytest.mark.asyncio
async def test_upload_too_large_makes_no_storage_call(client, alice_headers, object_store):
    big = b"x" * (5 * 1024 * 1024 + 1)
    r = await client.post("/v1/upload", files={"image": ("big.jpg", big, "image/jpeg")}, headers=alice_headers)

    assert r.status_code == 400
    assert r.json() == {"error": "File size must be less than 5MB"}
    assert object_store.calls == {"put": 0, "sign": 0, "delete": 0}


@pytest.mark.asyncio
async def test_upload_requires_image(client, alice_headers):
    r = await client.post("/v1/upload", data={"x": "y"}, headers=alice_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "No image file provided"}
