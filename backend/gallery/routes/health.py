"""
Gallery Backend — Health Check Route
======================================

What:  Health check endpoint for monitoring and container probes.
How:   Reports which store the process settled on at startup and how many
       images it holds. Pings the database when one is in use, then the
       media host.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   Every dependency in use is reachable
    - degraded:  Database or media host unreachable, or running on the
                 in-memory fallback. Still HTTP 200: the listing keeps working
                 and monitoring decides what to do about it.

The storage mode never changes after startup; a database that drops later
shows up here as "disconnected" and as 500s on the routes that touch it.
"""

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text

from gallery import __version__
from gallery.dependencies import get_state
from gallery.exceptions import DatabaseError
from gallery.schemas.gallery import HealthResponse
from gallery.services.storage_mode import GalleryState, StorageMode

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(state: GalleryState = Depends(get_state)) -> HealthResponse:
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    if state.mode == StorageMode.IN_MEMORY or state.engine is None:
        db_status = "not_used"
        overall = "degraded"
    else:
        db_status = "connected"
        try:
            async with state.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            db_status = "disconnected"
            overall = "degraded"
            logger.warning("Health check: database unreachable: %s", str(e))

    image_count = None
    if db_status != "disconnected":
        try:
            image_count = await state.images.count()
        except DatabaseError:
            overall = "degraded"

    # ── Check Media Host ──────────────────────────────────────────────────
    media_status = "available"
    if not await state.media.health_check():
        media_status = "unavailable"
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        storage_mode=state.mode.value,
        database=db_status,
        media=media_status,
        image_count=image_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
