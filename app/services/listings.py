from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidInput, NotFound, StorageError
from app.models.listing import ProductListing
from app.schemas.listing import ListingOut
from app.services.auth import Identity
from app.services.storage import BlobStore

log = logging.getLogger(__name__)

LISTING_NOT_FOUND = "Listing not found"


def _required(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise InvalidInput(f"Missing required field: {field}")
    return value


class ListingRepository:
    """
    Owner-scoped CRUD over product listings.

    Every query filters on the caller's identity; a listing owned by someone
    else is reported exactly like a missing one.
    """

    def __init__(self, db: AsyncSession, blob_store: BlobStore):
        self.db = db
        self.blobs = blob_store

    async def _owned(self, identity: Identity, listing_id: str) -> ProductListing:
        stmt = select(ProductListing).where(
            ProductListing.id == listing_id,
            ProductListing.owner_id == identity.id,
        )
        listing = (await self.db.execute(stmt)).scalar_one_or_none()
        if listing is None:
            raise NotFound(LISTING_NOT_FOUND)
        return listing

    async def create(self, identity: Identity, *, title: str, description: str, image_path: str) -> ProductListing:
        listing = ProductListing(
            owner_id=identity.id,
            title=_required(title, "title"),
            description=_required(description, "description"),
            image_path=self.blobs.normalize_path(identity, _required(image_path, "image_url")),
        )
        self.db.add(listing)
        await self.db.commit()
        log.info("listing %s created for %s", listing.id, identity.id)
        return listing

    async def get(self, identity: Identity, listing_id: str) -> ProductListing:
        return await self._owned(identity, listing_id)

    async def update(
        self,
        identity: Identity,
        listing_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        image_path: str | None = None,
    ) -> ProductListing:
        listing = await self._owned(identity, listing_id)

        if title is not None:
            listing.title = _required(title, "title")
        if description is not None:
            listing.description = _required(description, "description")
        if image_path is not None:
            listing.image_path = self.blobs.normalize_path(identity, _required(image_path, "image_url"))

        await self.db.commit()
        return listing

    async def delete(self, identity: Identity, listing_id: str) -> None:
        listing = await self._owned(identity, listing_id)
        image_path = listing.image_path

        await self.db.delete(listing)
        await self.db.commit()
        log.info("listing %s deleted for %s", listing_id, identity.id)

        # the record is gone either way; a stale blob is only logged
        await self.blobs.delete(image_path)

    async def list(self, identity: Identity) -> list[ProductListing]:
        stmt = (
            select(ProductListing)
            .where(ProductListing.owner_id == identity.id)
            .order_by(ProductListing.created_at.desc(), ProductListing.id.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def to_out(self, listing: ProductListing) -> ListingOut:
        try:
            image_url: str | None = await self.blobs.signed_url(listing.image_path)
        except StorageError as e:
            log.warning("could not sign image for listing %s: %s", listing.id, e.message)
            image_url = None

        return ListingOut(
            id=listing.id,
            owner_id=listing.owner_id,
            title=listing.title,
            description=listing.description,
            image_path=listing.image_path,
            image_url=image_url,
            created_at=listing.created_at,
            updated_at=listing.updated_at,
        )
