"""
Gallery Backend — Request Dependencies & Auth Gate
====================================================

What:  FastAPI dependencies that hand the process-scoped GalleryState to
       handlers and guard protected routes.

Auth gate, per protected request:
    1. No "Authorization: Bearer <token>" header → AuthenticationError (401)
    2. Token fails signature/expiry check        → InvalidTokenError   (403)
    3. Otherwise the Identity is returned and stored on request.state
    4. require_admin additionally rejects non-admins
                                                 → InsufficientPrivilegeError (403)

Usage:
    @router.put("/images/{image_id}")
    async def update(..., identity: Identity = Depends(require_admin)):
        ...
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gallery.exceptions import AuthenticationError, InsufficientPrivilegeError
from gallery.services.auth_service import Identity
from gallery.services.storage_mode import GalleryState

# auto_error=False: we raise our own 401 so the body matches every other error
bearer_scheme = HTTPBearer(auto_error=False)


def get_state(request: Request) -> GalleryState:
    """The GalleryState built by the lifespan handler."""
    return request.app.state.gallery


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    state: GalleryState = Depends(get_state),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    identity = state.auth.tokens.verify(credentials.credentials)
    request.state.identity = identity
    return identity


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        raise InsufficientPrivilegeError(context={"user_id": identity.user_id})
    return identity
