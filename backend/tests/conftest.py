"""
Gallery Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Test environment variables are set BEFORE anything from `gallery` is
       imported, because gallery.config builds its Settings at import time.

Fixture Hierarchy (all function-scoped):
    ├── fake_media: In-process MediaService double (no network)
    ├── upload_service: UploadService staging into tmp_path
    ├── sample_image_bytes: Tiny JPEG for upload tests
    ├── memory_state: GalleryState on the in-memory store, seeded
    ├── test_client: HTTPX AsyncClient wired to memory_state
    └── admin_token / user_token: bearer tokens for the seeded accounts
"""

import os
import tempfile

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

os.environ["USE_IN_MEMORY_STORE"] = "true"
os.environ["DATABASE_URL"] = ""
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["BCRYPT_ROUNDS"] = "4"  # Minimum cost keeps the suite fast
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="gallery_test_")
os.environ["CLOUDINARY_CLOUD_NAME"] = "test-cloud"
os.environ["CLOUDINARY_API_KEY"] = "test-key-not-real"
os.environ["CLOUDINARY_API_SECRET"] = "test-secret-not-real"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import List  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from gallery.config import Settings  # noqa: E402
from gallery.exceptions import MediaServiceError  # noqa: E402
from gallery.services.media_base import MediaService, UploadedMedia  # noqa: E402
from gallery.services.storage_mode import (  # noqa: E402
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_PASSWORD,
    DEMO_USER_EMAIL,
    DEMO_USER_PASSWORD,
    build_gallery_state,
)
from gallery.services.upload_service import UploadService  # noqa: E402


class FakeMediaService(MediaService):
    """
    Records every call instead of talking to a media host.

    Set fail_upload / fail_delete to make the next calls raise
    MediaServiceError the way CloudinaryService does.
    """

    def __init__(self):
        self.uploaded: List[str] = []
        self.deleted: List[str] = []
        self.fail_upload = False
        self.fail_delete = False
        self.healthy = True
        self._counter = 0

    async def upload(self, local_path: str) -> UploadedMedia:
        if self.fail_upload:
            raise MediaServiceError(message="Error uploading image")
        self._counter += 1
        self.uploaded.append(local_path)
        public_id = f"image-gallery/test-{self._counter}"
        return UploadedMedia(
            url=f"https://res.cloudinary.com/test-cloud/image/upload/{public_id}.jpg",
            remote_object_id=public_id,
        )

    async def delete(self, remote_object_id: str) -> None:
        if self.fail_delete:
            raise MediaServiceError(message="Error deleting image")
        self.deleted.append(remote_object_id)

    async def health_check(self) -> bool:
        return self.healthy


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_media():
    return FakeMediaService()


@pytest.fixture
def upload_service(tmp_path):
    """UploadService staging into a per-test directory."""
    staging = tmp_path / "uploads"
    staging.mkdir()
    return UploadService(upload_dir=str(staging), max_file_size=5 * 1024 * 1024)


@pytest.fixture
def sample_image_bytes():
    """
    Minimal JPEG: Start of Image (FFD8) + JFIF marker + End of Image (FFD9).

    Not a real photograph; only extension and declared type are checked.
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def memory_settings():
    return Settings(use_in_memory_store=True, database_url="", bcrypt_rounds=4)


@pytest_asyncio.fixture
async def memory_state(memory_settings, fake_media, upload_service):
    """A fully wired, seeded GalleryState on the in-memory store."""
    state = await build_gallery_state(memory_settings, media=fake_media, uploads=upload_service)
    yield state
    await state.close()


@pytest_asyncio.fixture
async def test_client(memory_state):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    ASGITransport does not run the lifespan handler, so the state the
    lifespan would build is assigned here instead.
    """
    from gallery.main import app

    app.state.gallery = memory_state
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def admin_token(memory_state):
    token, _ = await memory_state.auth.login(DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD)
    return token


@pytest_asyncio.fixture
async def user_token(memory_state):
    token, _ = await memory_state.auth.login(DEMO_USER_EMAIL, DEMO_USER_PASSWORD)
    return token
