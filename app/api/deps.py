from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import UNSET, settings
from app.core.db import get_db
from app.services.ai_client import GeminiClient, TextModel
from app.services.content import ContentGenerator
from app.services.http_client import shared_client
from app.services.listings import ListingRepository
from app.services.storage import BlobStore, LocalObjectStore, ObjectStore, SupabaseObjectStore
from app.services.vision import VisionAnalyzer


def get_object_store() -> ObjectStore:
    # built per request: shared_client() hands out a fresh client after close_shared_clients()
    provider = settings.storage_provider.lower().strip()
    if provider == "local":
        signing_key = settings.blob_signing_key.get_secret_value()
        if settings.env != "dev" and signing_key == UNSET:
            raise RuntimeError("BLOB_SIGNING_KEY must be set when ENV is not 'dev'")
        return LocalObjectStore(
            settings.local_storage_dir,
            signing_key=signing_key,
            public_base_url=settings.public_base_url,
        )
    if provider == "supabase":
        return SupabaseObjectStore(
            http=shared_client("supabase-storage"),
            base_url=settings.supabase_url,
            service_key=settings.supabase_service_role_key.get_secret_value(),
            bucket=settings.storage_bucket,
        )
    raise RuntimeError(f"Unsupported STORAGE_PROVIDER: {settings.storage_provider}")


def get_blob_store(store: ObjectStore = Depends(get_object_store)) -> BlobStore:
    return BlobStore(
        store,
        max_bytes=settings.max_upload_bytes,
        signed_url_ttl=settings.signed_url_ttl_seconds,
    )


def get_ai_client() -> TextModel:
    return GeminiClient(
        http=shared_client("gemini", timeout_seconds=settings.ai_timeout_seconds),
        api_url=settings.gemini_api_url,
        model=settings.gemini_model,
        api_key=settings.gemini_api_key.get_secret_value(),
    )


def get_vision_analyzer(model: TextModel = Depends(get_ai_client)) -> VisionAnalyzer:
    return VisionAnalyzer(model)


def get_content_generator(model: TextModel = Depends(get_ai_client)) -> ContentGenerator:
    return ContentGenerator(model)


def get_listing_repository(
    db: AsyncSession = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
) -> ListingRepository:
    return ListingRepository(db, blobs)
