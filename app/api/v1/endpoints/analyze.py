import logging

from fastapi import APIRouter, Depends, File, UploadFile

from app.api.deps import get_blob_store, get_content_generator, get_vision_analyzer
from app.core.errors import InvalidInput
from app.schemas.analysis import AnalyzeOut
from app.services.content import ContentGenerator
from app.services.storage import BlobStore
from app.services.vision import VisionAnalyzer

log = logging.getLogger(__name__)
router = APIRouter()


@router.post("/analyze", response_model=AnalyzeOut)
async def analyze(
    image: UploadFile | None = File(default=None),
    blobs: BlobStore = Depends(get_blob_store),
    analyzer: VisionAnalyzer = Depends(get_vision_analyzer),
    generator: ContentGenerator = Depends(get_content_generator),
) -> AnalyzeOut:
    """
    Analyze a product photo and draft listing copy for it.

    Nothing is stored; the client uploads the image separately once the user
    accepts the draft.
    """
    if image is None:
        raise InvalidInput("No image file provided")

    data = await image.read()
    mime_type = blobs.validate_image(data, image.content_type)

    analysis = await analyzer.analyze(data, mime_type)
    content = await generator.generate(analysis)
    log.info("analyzed %s: %d labels, confidence %.2f", image.filename, len(analysis.labels), analysis.confidence)

    return AnalyzeOut(analysis=analysis, content=content)
