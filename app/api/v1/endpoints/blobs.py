import mimetypes

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse

from app.api.deps import get_object_store
from app.core.errors import NotFound
from app.services.storage import ObjectStore

router = APIRouter()


@router.get("/blobs/{path:path}", include_in_schema=False)
async def get_blob(
    path: str,
    expires: int = Query(...),
    sig: str = Query(...),
    store: ObjectStore = Depends(get_object_store),
) -> FileResponse:
    """Serve a locally stored blob behind a signed URL issued by LocalObjectStore."""
    # only the local store serves its own blobs; Supabase URLs point at Supabase
    if not hasattr(store, "verify"):
        raise NotFound("Blob not found")
    if not store.verify(path=path, expires=expires, sig=sig):
        raise NotFound("Blob not found")

    try:
        file_path = store.resolve_path(path)
    except ValueError:
        raise NotFound("Blob not found") from None
    if not file_path.is_file():
        raise NotFound("Blob not found")

    media_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    return FileResponse(
        file_path,
        media_type=media_type,
        headers={"Cache-Control": "private, max-age=3600"},
    )
