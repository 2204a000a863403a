"""
Gallery Backend — Image Route Handlers
========================================

What:  The image collection: a public listing plus admin-only upload,
       retitle and delete.
Who:   Called by the gallery grid and the admin controls in the frontend.

Request Flow (upload):
    1. Auth gate (dependencies.require_admin): 401 / 403 / 403
    2. Multipart 'file' and optional 'title' are extracted by FastAPI
    3. At most max_file_size + 1 bytes are read, so an oversize upload is
       detected without buffering all of it
    4. GalleryService runs validate → stage → media upload → insert
    5. 200 with the new image

Routes are thin: every failure is raised as a GalleryError and formatted by
the global handlers in main.py.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from gallery.dependencies import get_state, require_admin
from gallery.schemas.gallery import (
    ErrorResponse,
    ImageResponse,
    MessageResponse,
    UpdateImageRequest,
)
from gallery.services.auth_service import Identity
from gallery.services.storage_mode import GalleryState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["Images"])

_AUTH_RESPONSES = {
    401: {"description": "Missing bearer token", "model": ErrorResponse},
    403: {"description": "Invalid token or not an admin", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=List[ImageResponse],
    summary="List all images, newest first",
)
async def list_images(state: GalleryState = Depends(get_state)) -> List[ImageResponse]:
    records = await state.gallery.list_images()
    return [ImageResponse.model_validate(record) for record in records]


@router.post(
    "/upload",
    response_model=ImageResponse,
    responses={
        400: {"description": "No file, wrong type, or too large", "model": ErrorResponse},
        **_AUTH_RESPONSES,
        500: {"description": "Media host or store failure", "model": ErrorResponse},
    },
    summary="Upload a new image (admin)",
    description="Multipart upload of a JPEG, PNG or GIF image, at most 5MB.",
)
async def upload_image(
    file: Optional[UploadFile] = File(None, description="Image file"),
    title: Optional[str] = Form(None, description="Optional display title"),
    identity: Identity = Depends(require_admin),
    state: GalleryState = Depends(get_state),
) -> ImageResponse:
    filename: Optional[str] = None
    content_type: Optional[str] = None
    content: Optional[bytes] = None

    if file is not None:
        filename = file.filename
        content_type = file.content_type
        try:
            # One byte past the limit is enough to reject as too large
            content = await file.read(state.uploads.max_file_size + 1)
        finally:
            await file.close()

    logger.info(
        "Upload request from user %s: filename=%s, size=%d bytes",
        identity.user_id,
        filename or "none",
        len(content or b""),
    )

    record = await state.gallery.upload_image(
        filename=filename,
        content_type=content_type,
        content=content,
        title=title,
    )
    return ImageResponse.model_validate(record)


@router.put(
    "/{image_id}",
    response_model=ImageResponse,
    responses={
        **_AUTH_RESPONSES,
        404: {"description": "Image not found", "model": ErrorResponse},
    },
    summary="Change an image's title (admin)",
)
async def update_image(
    image_id: str,
    body: UpdateImageRequest,
    identity: Identity = Depends(require_admin),
    state: GalleryState = Depends(get_state),
) -> ImageResponse:
    record = await state.gallery.update_title(image_id, body.title)
    return ImageResponse.model_validate(record)


@router.delete(
    "/{image_id}",
    response_model=MessageResponse,
    responses={
        **_AUTH_RESPONSES,
        404: {"description": "Image not found", "model": ErrorResponse},
        500: {"description": "Media host refused the delete", "model": ErrorResponse},
    },
    summary="Delete an image (admin)",
)
async def delete_image(
    image_id: str,
    identity: Identity = Depends(require_admin),
    state: GalleryState = Depends(get_state),
) -> MessageResponse:
    await state.gallery.delete_image(image_id)
    return MessageResponse(message="Image deleted successfully")
