"""
Gallery Backend — Cloudinary Media Service
============================================

What:  Concrete MediaService backed by Cloudinary.
How:   Uses the official `cloudinary` SDK. The SDK is synchronous, so every
       call runs in a worker thread; a slow upload only delays its own
       request, never the event loop.
Who:   Instantiated once at startup (services/storage_mode.py); called by
       GalleryService for uploads and deletes.

Resilience Strategy:
    - Tenacity retry with exponential backoff plus random jitter, but ONLY for
      rate-limit responses. A retried upload after an ambiguous failure
      could create a second remote object nobody references, so other
      errors fail the request immediately.
    - Every SDK error is wrapped in MediaServiceError (→ 500).
"""

import asyncio
import logging
import time
import uuid
from pathlib import Path

import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import RateLimited
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from gallery.config import settings
from gallery.exceptions import MediaServiceError
from gallery.services.media_base import MediaService, UploadedMedia

logger = logging.getLogger(__name__)


def build_media_wait(min_wait: float, max_wait: float):
    """Exponential backoff from min_wait, capped at max_wait, plus up to 1s of jitter."""
    return wait_exponential(multiplier=min_wait, max=max_wait) + wait_random(0, min(1, max_wait))


_media_retry = retry(
    retry=retry_if_exception_type(RateLimited),
    stop=stop_after_attempt(settings.retry_max_attempts),
    wait=build_media_wait(settings.retry_min_wait, settings.retry_max_wait),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class CloudinaryService(MediaService):
    """
    Cloudinary upload/destroy wrapper.

    Uploads land in the configured folder (default "image-gallery"); the
    public_id Cloudinary assigns is what we store as remote_object_id.
    """

    def __init__(
        self,
        cloud_name: str = "",
        api_key: str = "",
        api_secret: str = "",
        folder: str = "image-gallery",
    ):
        self.folder = folder
        # The SDK keeps credentials in module-level state
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        logger.info("CloudinaryService initialized (cloud=%s, folder=%s)", cloud_name or "<unset>", folder)

    async def upload(self, local_path: str) -> UploadedMedia:
        request_id = str(uuid.uuid4())[:8]
        logger.info("[%s] Uploading %s to media host", request_id, Path(local_path).name)

        try:
            result = await self._upload_with_retry(local_path)
        except (CloudinaryError, ValueError) as e:
            # The SDK raises ValueError for missing credentials
            logger.error("[%s] Media upload failed: %s", request_id, str(e))
            raise MediaServiceError(
                message="Error uploading image",
                context={"request_id": request_id, "error": str(e), "error_type": type(e).__name__},
            )

        url = result.get("secure_url") or result.get("url")
        public_id = result.get("public_id")
        if not url or not public_id:
            logger.error("[%s] Media host response missing url/public_id: %s", request_id, list(result))
            raise MediaServiceError(
                message="Error uploading image",
                context={"request_id": request_id, "error": "incomplete upload response"},
            )

        return UploadedMedia(url=url, remote_object_id=public_id)

    async def delete(self, remote_object_id: str) -> None:
        try:
            result = await self._destroy_with_retry(remote_object_id)
        except (CloudinaryError, ValueError) as e:
            logger.error("Media delete failed for %s: %s", remote_object_id, str(e))
            raise MediaServiceError(
                message="Error deleting image",
                context={"remote_object_id": remote_object_id, "error": str(e)},
            )

        outcome = result.get("result")
        if outcome == "not found":
            logger.warning("Remote object %s was already gone", remote_object_id)
        elif outcome != "ok":
            raise MediaServiceError(
                message="Error deleting image",
                context={"remote_object_id": remote_object_id, "error": f"unexpected result: {outcome}"},
            )
        else:
            logger.info("Remote object %s released", remote_object_id)

    @_media_retry
    async def _upload_with_retry(self, local_path: str) -> dict:
        start_time = time.time()
        result = await asyncio.to_thread(
            cloudinary.uploader.upload,
            local_path,
            folder=self.folder,
            resource_type="image",
        )
        logger.info("Media upload completed in %.0fms", (time.time() - start_time) * 1000)
        return result

    @_media_retry
    async def _destroy_with_retry(self, remote_object_id: str) -> dict:
        return await asyncio.to_thread(cloudinary.uploader.destroy, remote_object_id)

    async def health_check(self) -> bool:
        """
        Ping the Admin API. Lightweight; does not consume upload quota.
        """
        try:
            await asyncio.to_thread(cloudinary.api.ping)
            return True
        except Exception as e:
            logger.warning("Media host health check failed: %s", str(e))
            return False


def build_media_service() -> CloudinaryService:
    return CloudinaryService(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        folder=settings.cloudinary_folder,
    )
