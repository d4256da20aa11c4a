from fastapi import APIRouter, Depends

from app.api.deps import get_listing_repository
from app.schemas.common import SuccessResponse
from app.schemas.listing import ListingCreate, ListingEnvelope, ListingsEnvelope, ListingUpdate
from app.services.auth import Identity, get_identity
from app.services.listings import ListingRepository

router = APIRouter()


@router.get("/listings", response_model=ListingsEnvelope)
async def list_listings(
    identity: Identity = Depends(get_identity),
    repo: ListingRepository = Depends(get_listing_repository),
) -> ListingsEnvelope:
    rows = await repo.list(identity)
    return ListingsEnvelope(listings=[await repo.to_out(r) for r in rows])


@router.post("/listings", response_model=ListingEnvelope, status_code=201)
async def create_listing(
    payload: ListingCreate,
    identity: Identity = Depends(get_identity),
    repo: ListingRepository = Depends(get_listing_repository),
) -> ListingEnvelope:
    listing = await repo.create(
        identity,
        title=payload.title,
        description=payload.description,
        image_path=payload.image_path,
    )
    return ListingEnvelope(listing=await repo.to_out(listing))


@router.get("/listings/{listing_id}", response_model=ListingEnvelope)
async def get_listing(
    listing_id: str,
    identity: Identity = Depends(get_identity),
    repo: ListingRepository = Depends(get_listing_repository),
) -> ListingEnvelope:
    listing = await repo.get(identity, listing_id)
    return ListingEnvelope(listing=await repo.to_out(listing))


@router.put("/listings/{listing_id}", response_model=ListingEnvelope)
async def update_listing(
    listing_id: str,
    payload: ListingUpdate,
    identity: Identity = Depends(get_identity),
    repo: ListingRepository = Depends(get_listing_repository),
) -> ListingEnvelope:
    listing = await repo.update(
        identity,
        listing_id,
        title=payload.title,
        description=payload.description,
        image_path=payload.image_path,
    )
    return ListingEnvelope(listing=await repo.to_out(listing))


@router.delete("/listings/{listing_id}", response_model=SuccessResponse)
async def delete_listing(
    listing_id: str,
    identity: Identity = Depends(get_identity),
    repo: ListingRepository = Depends(get_listing_repository),
) -> SuccessResponse:
    await repo.delete(identity, listing_id)
    return SuccessResponse()
