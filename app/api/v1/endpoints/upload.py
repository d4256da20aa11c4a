from fastapi import APIRouter, Depends, File, UploadFile

from app.api.deps import get_blob_store
from app.core.errors import InvalidInput
from app.schemas.analysis import UploadOut
from app.services.auth import Identity, get_identity
from app.services.storage import BlobStore

router = APIRouter()


@router.post("/upload", response_model=UploadOut)
async def upload_image(
    identity: Identity = Depends(get_identity),
    image: UploadFile | None = File(default=None),
    blobs: BlobStore = Depends(get_blob_store),
) -> UploadOut:
    if image is None:
        raise InvalidInput("No image file provided")

    data = await image.read()
    ref = await blobs.upload(identity, data, image.content_type, image.filename)
    return UploadOut(url=ref.url, path=ref.path)
