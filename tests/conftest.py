import os

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import Base + all models so metadata is complete
from app.models.base import Base
from app.models.listing import ProductListing  # noqa: F401

from app.api.deps import get_ai_client, get_object_store
from app.core.db import get_db
from app.core.errors import Unauthorized
from app.main import app
from app.services.ai_client import AIProviderError
from app.services.auth import INVALID_CREDENTIAL, Identity, get_identity_provider
from app.services.storage import BlobStore, LocalObjectStore

ALICE = Identity(id="user-alice", email="alice@example.com")
BOB = Identity(id="user-bob", email="bob@example.com")

TOKENS = {"token-alice": ALICE, "token-bob": BOB}

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


class FakeIdentityProvider:
    def __init__(self):
        self.calls = 0

    async def verify(self, token: str) -> Identity:
        self.calls += 1
        identity = TOKENS.get(token)
        if identity is None:
            raise Unauthorized(INVALID_CREDENTIAL)
        return identity


class FakeModel:
    """Scripted replies; an exception instance in the script is raised instead."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def generate_text(self, prompt, *, image=None, image_mime_type="image/jpeg"):
        self.calls.append({"prompt": prompt, "image": image, "image_mime_type": image_mime_type})
        if not self.replies:
            raise AIProviderError("no scripted reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class CountingStore:
    """Wraps an object store and counts calls per operation."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = {"put": 0, "sign": 0, "delete": 0}

    async def put(self, *, path, data, content_type):
        self.calls["put"] += 1
        await self.inner.put(path=path, data=data, content_type=content_type)

    async def sign(self, *, path, ttl_seconds):
        self.calls["sign"] += 1
        return await self.inner.sign(path=path, ttl_seconds=ttl_seconds)

    async def delete(self, *, path):
        self.calls["delete"] += 1
        await self.inner.delete(path=path)

    def verify(self, **kwargs):
        return self.inner.verify(**kwargs)

    def resolve_path(self, key):
        return self.inner.resolve_path(key)


def _test_db_url() -> str:
    return os.getenv("DATABASE_URL_TEST", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture
async def async_engine():
    url = _test_db_url()
    kwargs = {"poolclass": StaticPool} if url.startswith("sqlite") else {}
    engine = create_async_engine(url, **kwargs)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine):
    session_factory = async_sessionmaker(bind=async_engine, expire_on_commit=False, class_=AsyncSession)
    async with session_factory() as session:
        yield session


@pytest.fixture
def local_store(tmp_path):
    return LocalObjectStore(str(tmp_path / "blobs"), signing_key="test-signing-key", public_base_url="http://test")


@pytest.fixture
def object_store(local_store):
    return CountingStore(local_store)


@pytest.fixture
def blob_store(object_store):
    return BlobStore(object_store)


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest_asyncio.fixture
async def client(db_session, object_store, identity_provider, fake_model):
    """
    HTTP client against the app with every external provider replaced by a fake.
    """
    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_object_store] = lambda: object_store
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_ai_client] = lambda: fake_model

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth(token: str = "token-alice") -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers():
    return auth("token-alice")


@pytest.fixture
def bob_headers():
    return auth("token-bob")
