"""
Gallery Backend — Pydantic Request/Response Schemas
=====================================================

What:  Pydantic models defining the API contract with the frontend.
How:   FastAPI validates request bodies and serializes responses with these
       models and generates the OpenAPI docs from them.

Wire format:
    Field names are camelCase on the wire (isAdmin, remoteObjectId,
    createdAt) via an alias generator; Python code uses snake_case.
    Responses are serialized by alias (FastAPI's default); requests accept
    either spelling.

Schemas are separate from store records so that we control exactly what is
exposed: the login response carries only the token and the admin flag, never
other user fields.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class LoginRequest(CamelModel):
    email: str = Field(description="Account email (case-sensitive)")
    password: str = Field(description="Account password")


class UpdateImageRequest(CamelModel):
    title: str = Field(min_length=1, max_length=255, description="New image title")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class LoginResponse(CamelModel):
    """
    Returned by POST /api/login.

    token: Signed bearer token, valid for 24 hours
    is_admin: Lets the frontend show or hide admin controls
    """
    token: str
    is_admin: bool


class ImageResponse(CamelModel):
    """One gallery image. Built directly from an ImageRecord."""
    id: str = Field(description="Opaque image identifier")
    title: str = Field(description="Display title ('Untitled' if none given)")
    url: str = Field(description="Public URL on the media host")
    remote_object_id: str = Field(description="Object id on the media host")
    created_at: datetime = Field(description="Upload time (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last title change (UTC ISO 8601)")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "forbidden",
            "message": "Admin access required",
            "request_id": "1f3e9a2b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    storage_mode: str = Field(description="persistent or in_memory")
    database: str = Field(description="connected, disconnected, or not_used")
    media: str = Field(description="available or unavailable")
    image_count: Optional[int] = Field(default=None, description="Images on record; null if the store is unreachable")
    uptime_seconds: float = Field(description="Seconds since service started")
