"""
Gallery Backend — Storage Mode Selection & Process State
==========================================================

What:  Decides, once at startup, whether the persistent store or the
       in-memory fallback is authoritative, seeds default accounts into it,
       and assembles the process-scoped GalleryState every handler uses.
Who:   Called from the FastAPI lifespan in main.py.

Selection rules:
    USE_IN_MEMORY_STORE set, or DATABASE_URL empty  → IN_MEMORY
    probe (SELECT 1 + create_all) succeeds in time  → PERSISTENT
    probe raises anything or times out              → IN_MEMORY

    The decision is final for the process lifetime. A later outage does not
    switch to memory (requests fail with 500 instead), and a later recovery
    does not switch back.

Seeding:
    PERSISTENT: admin@gmail.com (admin) is created only if absent; running
                several processes against one database never duplicates it.
    IN_MEMORY:  admin@gmail.com (admin) and user@gmail.com (non-admin) are
                created unconditionally; the store starts empty every run.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from gallery.config import Settings
from gallery.database import (
    build_engine,
    build_session_factory,
    dispose_engine,
    probe_database,
)
from gallery.services.auth_service import AuthService, PasswordHasher, build_token_service
from gallery.services.gallery_service import GalleryService
from gallery.services.media_base import MediaService
from gallery.services.upload_service import UploadService
from gallery.stores.base import CredentialStore, DuplicateAccountError, ImageStore
from gallery.stores.memory import InMemoryCredentialStore, InMemoryImageStore
from gallery.stores.sql import SqlCredentialStore, SqlImageStore

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@gmail.com"
DEFAULT_ADMIN_PASSWORD = "admin123"
DEMO_USER_EMAIL = "user@gmail.com"
DEMO_USER_PASSWORD = "password123"


class StorageMode(str, enum.Enum):
    PERSISTENT = "persistent"
    IN_MEMORY = "in_memory"


@dataclass
class StoreBackends:
    mode: StorageMode
    credentials: CredentialStore
    images: ImageStore
    engine: Optional[AsyncEngine] = None


@dataclass
class GalleryState:
    """
    Everything a request handler needs, built once per process.

    Stored on app.state.gallery and handed to handlers through the
    dependencies in dependencies.py.
    """

    mode: StorageMode
    credentials: CredentialStore
    images: ImageStore
    auth: AuthService
    gallery: GalleryService
    media: MediaService
    uploads: UploadService
    engine: Optional[AsyncEngine] = None

    async def close(self) -> None:
        if self.engine is not None:
            await dispose_engine(self.engine)


def in_memory_backends() -> StoreBackends:
    return StoreBackends(
        mode=StorageMode.IN_MEMORY,
        credentials=InMemoryCredentialStore(),
        images=InMemoryImageStore(),
    )


async def select_storage_mode(settings: Settings) -> StoreBackends:
    """Try the persistent store once; fall back to memory on any failure."""
    if settings.use_in_memory_store:
        logger.info("USE_IN_MEMORY_STORE is set; using in-memory storage")
        return in_memory_backends()

    if not settings.database_url:
        logger.warning("DATABASE_URL is empty; using in-memory storage as fallback")
        return in_memory_backends()

    engine = None
    try:
        engine = build_engine(settings)
        await asyncio.wait_for(probe_database(engine), timeout=settings.db_connect_timeout)
    except Exception as e:
        logger.error("Database connection error: %s: %s", type(e).__name__, str(e))
        logger.warning("Using in-memory storage as fallback")
        if engine is not None:
            await dispose_engine(engine)
        return in_memory_backends()

    logger.info("Database connected; using persistent storage")
    session_factory = build_session_factory(engine)
    return StoreBackends(
        mode=StorageMode.PERSISTENT,
        credentials=SqlCredentialStore(session_factory),
        images=SqlImageStore(session_factory),
        engine=engine,
    )


async def seed_persistent_accounts(credentials: CredentialStore, hasher: PasswordHasher) -> None:
    """
    Ensure the default admin exists. Failures are logged; startup continues.
    """
    try:
        if await credentials.find_by_email(DEFAULT_ADMIN_EMAIL) is not None:
            logger.debug("Admin user already present")
            return
        password_hash = await hasher.hash(DEFAULT_ADMIN_PASSWORD)
        await credentials.create(DEFAULT_ADMIN_EMAIL, password_hash, is_admin=True)
        logger.info("Admin user created")
    except DuplicateAccountError:
        # Another process seeded it between our lookup and insert
        logger.debug("Admin user created concurrently by another process")
    except Exception as e:
        logger.error("Error initializing users: %s", str(e), exc_info=True)


async def seed_in_memory_accounts(credentials: CredentialStore, hasher: PasswordHasher) -> None:
    """Create the admin and the demo user in a fresh in-memory store."""
    admin_hash = await hasher.hash(DEFAULT_ADMIN_PASSWORD)
    user_hash = await hasher.hash(DEMO_USER_PASSWORD)
    await credentials.create(DEFAULT_ADMIN_EMAIL, admin_hash, is_admin=True)
    await credentials.create(DEMO_USER_EMAIL, user_hash, is_admin=False)
    logger.info("In-memory users initialized")


async def seed_default_accounts(backends: StoreBackends, hasher: PasswordHasher) -> None:
    if backends.mode is StorageMode.PERSISTENT:
        await seed_persistent_accounts(backends.credentials, hasher)
    else:
        await seed_in_memory_accounts(backends.credentials, hasher)


def assemble_state(
    backends: StoreBackends,
    settings: Settings,
    hasher: PasswordHasher,
    media: MediaService,
    uploads: UploadService,
) -> GalleryState:
    auth = AuthService(
        credentials=backends.credentials,
        hasher=hasher,
        tokens=build_token_service(settings),
    )
    return GalleryState(
        mode=backends.mode,
        credentials=backends.credentials,
        images=backends.images,
        auth=auth,
        gallery=GalleryService(images=backends.images, uploads=uploads, media=media),
        media=media,
        uploads=uploads,
        engine=backends.engine,
    )


async def build_gallery_state(
    settings: Settings,
    media: MediaService,
    uploads: Optional[UploadService] = None,
) -> GalleryState:
    """
    Select the storage mode, seed it, and wire every service.

    Called exactly once per process, from the lifespan handler.
    """
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    backends = await select_storage_mode(settings)
    await seed_default_accounts(backends, hasher)

    uploads = uploads or UploadService(
        upload_dir=settings.upload_dir,
        max_file_size=settings.max_file_size,
    )
    state = assemble_state(backends, settings, hasher, media, uploads)
    logger.info("Storage mode: %s", state.mode.value)
    return state
