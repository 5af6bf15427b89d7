"""
Media endpoints - upload, inspect and delete report attachments.

Uploaded files are served as static files under /uploads.
"""

from typing import Optional
import logging

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from civicsense.core.exceptions import CivicSenseError
from civicsense.models.report import MediaUploadResponse
from civicsense.routes.deps import http_error
from civicsense.services.media_service import get_media_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["Media"])


@router.post("/upload", response_model=MediaUploadResponse)
def upload_media(media: Optional[UploadFile] = File(None)):
    """
    Upload a single image, video or audio file (multipart field `media`, max 10 MB).

    Returns the public URL, stored filename, original name, size, MIME type,
    media_type (image/video/audio) and a human-readable size.
    """
    if media is None or not media.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded: please select a file to upload",
        )
    try:
        service = get_media_service()
        content = service.read_upload(media)
        stored = service.save_upload(content, media.filename, media.content_type)
        return service.describe_upload(stored)
    except CivicSenseError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Media upload error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload media",
        )


@router.get("/info/{filename}")
async def get_media_info(filename: str):
    try:
        return get_media_service().get_info(filename)
    except CivicSenseError as e:
        raise http_error(e)


@router.delete("/{filename}")
def delete_media(filename: str):
    try:
        return get_media_service().delete(filename)
    except CivicSenseError as e:
        raise http_error(e)
