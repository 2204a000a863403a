"""
Gallery Backend — Login Route
===============================

What:  POST /api/login exchanges email + password for a bearer token.
Who:   Called by the frontend login form.

Responses:
    200 {token, isAdmin}
    401 "Invalid credentials" — identical for unknown email and wrong password
    500 unexpected (e.g. persistent store unreachable)
"""

import logging

from fastapi import APIRouter, Depends

from gallery.dependencies import get_state
from gallery.schemas.gallery import ErrorResponse, LoginRequest, LoginResponse
from gallery.services.storage_mode import GalleryState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Log in and receive a bearer token",
)
async def login(
    body: LoginRequest,
    state: GalleryState = Depends(get_state),
) -> LoginResponse:
    token, is_admin = await state.auth.login(body.email, body.password)
    return LoginResponse(token=token, is_admin=is_admin)
