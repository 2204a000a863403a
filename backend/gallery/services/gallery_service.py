"""
Gallery Backend — Gallery Service (Business Logic Orchestrator)
================================================================

What:  Composes the image store, the upload pipeline and the media host into
       the list / upload / update / delete operations.
Who:   Called by routes/images.py; never touches HTTP objects.

Upload Flow (POST /api/images/upload):
    ┌──────────┐   ┌──────────┐   ┌─────────────┐   ┌─────────┐   ┌─────────┐
    │ Validate │──▶│  Stage   │──▶│ Media host  │──▶│ Discard │──▶│ Insert  │
    │ pipeline │   │ (disk)   │   │ upload      │   │ staged  │   │ record  │
    └──────────┘   └──────────┘   └─────────────┘   └─────────┘   └─────────┘

Known gaps, kept deliberately:
    - Media upload fails → the staged file stays on disk.
    - Insert fails after a successful media upload → the remote object is
      orphaned. It is logged at ERROR with its object id; no compensating
      delete is attempted.

Delete Flow (DELETE /api/images/{id}):
    lookup (404 if missing) → release remote object → remove record.
    If the media host refuses, the request fails with 500 and the record is
    kept, so the delete can simply be retried.
"""

import logging
from typing import List, Optional

from gallery.exceptions import NotFoundError
from gallery.services.media_base import MediaService
from gallery.services.upload_service import UploadService
from gallery.stores.base import ImageRecord, ImageStore

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"


class GalleryService:
    """
    Stateless apart from its collaborators, which are fixed at startup.
    """

    def __init__(self, images: ImageStore, uploads: UploadService, media: MediaService):
        self.images = images
        self.uploads = uploads
        self.media = media

    async def list_images(self) -> List[ImageRecord]:
        return await self.images.list_all()

    async def upload_image(
        self,
        filename: Optional[str],
        content_type: Optional[str],
        content: Optional[bytes],
        title: Optional[str] = None,
    ) -> ImageRecord:
        """
        Validate, push to the media host, and record a new image.

        Raises:
            ValidationError: no file, wrong type, or too large (before any I/O)
            FileStorageError: staging directory not writable
            MediaServiceError: media host upload failed
            DatabaseError: record insert failed (remote object is orphaned)
        """
        self.uploads.check(filename, content_type, content, title).raise_if_rejected()

        staged_path = await self.uploads.stage(filename, content)

        uploaded = await self.media.upload(staged_path)

        await self.uploads.discard(staged_path)

        try:
            record = await self.images.insert(
                title=title or DEFAULT_TITLE,
                url=uploaded.url,
                remote_object_id=uploaded.remote_object_id,
            )
        except Exception:
            logger.error(
                "Image record insert failed; remote object %s is orphaned",
                uploaded.remote_object_id,
            )
            raise

        logger.info("Image %s uploaded (remote object %s)", record.id, record.remote_object_id)
        return record

    async def update_title(self, image_id: str, title: str) -> ImageRecord:
        record = await self.images.update_title(image_id, title)
        if record is None:
            raise NotFoundError(resource="Image", resource_id=image_id)
        logger.info("Image %s retitled", image_id)
        return record

    async def delete_image(self, image_id: str) -> None:
        """
        Raises:
            NotFoundError: no such image
            MediaServiceError: the remote object could not be released
        """
        record = await self.images.get_by_id(image_id)
        if record is None:
            raise NotFoundError(resource="Image", resource_id=image_id)

        if record.remote_object_id:
            await self.media.delete(record.remote_object_id)

        removed = await self.images.delete_by_id(image_id)
        if removed is None:
            # A concurrent delete won the race after our lookup
            raise NotFoundError(resource="Image", resource_id=image_id)

        logger.info("Image %s deleted", image_id)
