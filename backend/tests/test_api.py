"""
Gallery Backend — API Endpoint Tests
======================================

What:  Drives the FastAPI app in-process through HTTPX (ASGITransport) on
       the seeded in-memory store with a fake media host.

What we test:
    ✅ The full admin journey: login → upload → list → retitle → delete
    ✅ The auth-gate outcomes: 401 missing, 403 invalid or expired, 403 non-admin
    ✅ Upload validation happens before the media host is contacted
    ✅ 404s for unknown images, 400 for malformed bodies and long titles
    ✅ 500 bodies carry operation diagnostics, never driver detail
    ✅ Health reports the storage mode
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from gallery.exceptions import DatabaseError
from gallery.services.storage_mode import (
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_PASSWORD,
    DEMO_USER_EMAIL,
)

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def png_upload(size: int, name: str = "sunset.png") -> dict:
    return {"file": (name, PNG_HEADER + b"\x00" * (size - len(PNG_HEADER)), "image/png")}


class TestEndToEnd:

    @pytest.mark.asyncio
    async def test_admin_journey(self, test_client, fake_media):
        # Login as admin
        response = await test_client.post(
            "/api/login",
            json={"email": DEFAULT_ADMIN_EMAIL, "password": DEFAULT_ADMIN_PASSWORD},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["isAdmin"] is True
        assert body["token"]
        headers = bearer(body["token"])

        # Wrong password for the demo user
        response = await test_client.post(
            "/api/login",
            json={"email": DEMO_USER_EMAIL, "password": "not-it"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

        # Upload a 2 MiB PNG titled "Sunset"
        response = await test_client.post(
            "/api/images/upload",
            files=png_upload(2 * 1024 * 1024),
            data={"title": "Sunset"},
            headers=headers,
        )
        assert response.status_code == 200
        image = response.json()
        assert image["title"] == "Sunset"
        assert image["url"]
        assert image["remoteObjectId"] == "image-gallery/test-1"
        assert set(image) == {"id", "title", "url", "remoteObjectId", "createdAt", "updatedAt"}

        # Listed first
        response = await test_client.get("/api/images")
        assert response.status_code == 200
        assert response.json()[0]["id"] == image["id"]

        # Retitle
        response = await test_client.put(
            f"/api/images/{image['id']}",
            json={"title": "Dusk"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Dusk"
        assert response.json()["createdAt"] == image["createdAt"]

        # Delete
        response = await test_client.delete(f"/api/images/{image['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Image deleted successfully"}
        assert fake_media.deleted == [image["remoteObjectId"]]

        response = await test_client.get("/api/images")
        assert all(listed["id"] != image["id"] for listed in response.json())

    @pytest.mark.asyncio
    async def test_demo_user_can_log_in_without_admin(self, test_client):
        response = await test_client.post(
            "/api/login",
            json={"email": DEMO_USER_EMAIL, "password": "password123"},
        )
        assert response.status_code == 200
        assert response.json()["isAdmin"] is False

    @pytest.mark.asyncio
    async def test_unknown_email_matches_wrong_password(self, test_client):
        unknown = await test_client.post(
            "/api/login", json={"email": "nobody@gmail.com", "password": "admin123"}
        )
        wrong = await test_client.post(
            "/api/login", json={"email": DEFAULT_ADMIN_EMAIL, "password": "admin124"}
        )
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json()["message"] == wrong.json()["message"]

    @pytest.mark.asyncio
    async def test_listing_is_public(self, test_client):
        response = await test_client.get("/api/images")
        assert response.status_code == 200
        assert response.json() == []


class TestAuthGate:

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, test_client, fake_media):
        response = await test_client.post("/api/images/upload", files=png_upload(1024))

        assert response.status_code == 401
        assert response.json()["message"] == "Access denied"
        assert fake_media.uploaded == []

    @pytest.mark.asyncio
    async def test_non_bearer_scheme_is_401(self, test_client):
        response = await test_client.delete("/api/images/1", headers={"Authorization": "Basic YWRtaW4="})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token_is_403(self, test_client):
        response = await test_client.put(
            "/api/images/1",
            json={"title": "x"},
            headers=bearer("not.a.token"),
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_expired_token_is_403(self, test_client, memory_state, fake_media):
        admin = await memory_state.credentials.find_by_email(DEFAULT_ADMIN_EMAIL)
        expired = memory_state.auth.tokens.issue(
            admin, now=datetime.now(timezone.utc) - timedelta(hours=25)
        )

        response = await test_client.post(
            "/api/images/upload",
            files=png_upload(1024),
            headers=bearer(expired),
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Invalid token"
        assert fake_media.uploaded == []

    @pytest.mark.asyncio
    async def test_non_admin_is_403(self, test_client, user_token, fake_media):
        response = await test_client.post(
            "/api/images/upload",
            files=png_upload(1024),
            headers=bearer(user_token),
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Admin access required"
        assert fake_media.uploaded == []


class TestUploadValidation:

    @pytest.mark.asyncio
    async def test_oversize_rejected_before_media(self, test_client, admin_token, fake_media):
        response = await test_client.post(
            "/api/images/upload",
            files=png_upload(5 * 1024 * 1024 + 1),
            headers=bearer(admin_token),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "File too large. Maximum size is 5MB."
        assert fake_media.uploaded == []

    @pytest.mark.asyncio
    async def test_disallowed_type_rejected_before_media(self, test_client, admin_token, fake_media):
        response = await test_client.post(
            "/api/images/upload",
            files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")},
            headers=bearer(admin_token),
        )
        assert response.status_code == 400
        assert response.json()["message"].startswith("Only image files are allowed!")
        assert fake_media.uploaded == []

    @pytest.mark.asyncio
    async def test_overlong_title_rejected_before_media(self, test_client, admin_token, fake_media):
        response = await test_client.post(
            "/api/images/upload",
            files=png_upload(1024),
            data={"title": "t" * 300},
            headers=bearer(admin_token),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Title must be at most 255 characters"
        assert response.json()["details"] == {"field": "title"}
        assert fake_media.uploaded == []

    @pytest.mark.asyncio
    async def test_missing_file_rejected(self, test_client, admin_token):
        response = await test_client.post(
            "/api/images/upload",
            data={"title": "no file"},
            headers=bearer(admin_token),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "No file uploaded"

    @pytest.mark.asyncio
    async def test_upload_without_title_is_untitled(self, test_client, admin_token):
        response = await test_client.post(
            "/api/images/upload",
            files=png_upload(1024),
            headers=bearer(admin_token),
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Untitled"

    @pytest.mark.asyncio
    async def test_media_failure_is_500(self, test_client, admin_token, fake_media):
        fake_media.fail_upload = True
        response = await test_client.post(
            "/api/images/upload",
            files=png_upload(1024),
            headers=bearer(admin_token),
        )
        assert response.status_code == 500
        assert response.json()["message"] == "Error uploading image"

        listed = await test_client.get("/api/images")
        assert listed.json() == []


class TestImageErrors:

    @pytest.mark.asyncio
    async def test_update_unknown_image_is_404(self, test_client, admin_token):
        response = await test_client.put(
            "/api/images/999", json={"title": "x"}, headers=bearer(admin_token)
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Image not found"

    @pytest.mark.asyncio
    async def test_delete_unknown_image_is_404(self, test_client, admin_token):
        response = await test_client.delete("/api/images/999", headers=bearer(admin_token))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_title_is_400(self, test_client, admin_token, memory_state):
        image = await memory_state.images.insert("keep", "https://cdn/x.jpg", "image-gallery/x")

        response = await test_client.put(
            f"/api/images/{image.id}", json={"title": ""}, headers=bearer(admin_token)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_database_error_reports_operation_only(self, test_client, admin_token, memory_state):
        memory_state.images.update_title = AsyncMock(
            side_effect=DatabaseError(
                context={
                    "operation": "update_title",
                    "error_type": "OperationalError",
                    "dsn": "postgresql://gallery:secret@db/gallery",
                }
            )
        )

        response = await test_client.put(
            "/api/images/1", json={"title": "x"}, headers=bearer(admin_token)
        )

        assert response.status_code == 500
        assert response.json()["details"] == {
            "operation": "update_title",
            "error_type": "OperationalError",
        }
        assert "secret" not in response.text

    @pytest.mark.asyncio
    async def test_remote_delete_failure_keeps_image(self, test_client, admin_token, memory_state, fake_media):
        image = await memory_state.images.insert("keep", "https://cdn/x.jpg", "image-gallery/x")
        fake_media.fail_delete = True

        response = await test_client.delete(f"/api/images/{image.id}", headers=bearer(admin_token))

        assert response.status_code == 500
        assert response.json()["message"] == "Error deleting image"
        assert await memory_state.images.get_by_id(image.id) is not None


class TestHealthAndHeaders:

    @pytest.mark.asyncio
    async def test_health_reports_in_memory_mode(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["storageMode"] == "in_memory"
        assert body["database"] == "not_used"
        assert body["media"] == "available"
        assert body["imageCount"] == 0
        assert body["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/api/images", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.delete("/api/images/1", headers={"X-Request-ID": "trace-me"})
        assert response.json()["request_id"] == "trace-me"

    @pytest.mark.asyncio
    async def test_unsafe_request_id_is_replaced(self, test_client):
        response = await test_client.get("/api/images", headers={"X-Request-ID": "not a safe id!"})

        rid = response.headers["X-Request-ID"]
        assert rid != "not a safe id!"
        assert len(rid) == 8
