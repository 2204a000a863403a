"""
Gallery Backend — Authentication Service
==========================================

What:  Password hashing, bearer token issuance/verification, and login.
Why:   Keeps every credential decision in one place; the request gate in
       dependencies.py only calls TokenService.verify().
How:   bcrypt for password hashes, PyJWT (HS256) for signed tokens.

Token Claims:
    {
        "sub":     "<user id>",
        "userId":  "<user id>",
        "email":   "admin@gmail.com",
        "isAdmin": true,
        "iat":     <issued-at>,
        "exp":     <issued-at + 24h>
    }

Information-leak hygiene:
    Login answers an unknown email and a wrong password with the same
    InvalidCredentialsError. For an unknown email a dummy bcrypt check is
    still performed so both paths cost one hash comparison.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
import jwt

from gallery.config import Settings
from gallery.exceptions import InvalidCredentialsError, InvalidTokenError
from gallery.stores.base import CredentialStore, UserRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated principal attached to a protected request."""

    user_id: str
    email: str
    is_admin: bool


class PasswordHasher:
    """
    bcrypt wrapper.

    bcrypt is CPU-bound (tens of milliseconds at cost 10), so both
    operations run in a worker thread instead of on the event loop.
    """

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        # Compared against when the email is unknown, to keep timing uniform
        self._dummy_hash = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds))

    def _hash_sync(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(self.rounds)).decode("utf-8")

    def _verify_sync(self, password: str, password_hash: bytes) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash)
        except ValueError:
            # Malformed stored hash
            logger.warning("Stored password hash is not a valid bcrypt hash")
            return False

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(self._hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(
            self._verify_sync, password, password_hash.encode("utf-8")
        )

    async def burn(self, password: str) -> None:
        """Spend one verification's worth of time without a real hash."""
        await asyncio.to_thread(self._verify_sync, password, self._dummy_hash)


class TokenService:
    """Issues and verifies signed bearer tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", expiry_hours: int = 24):
        self.secret = secret
        self.algorithm = algorithm
        self.expiry = timedelta(hours=expiry_hours)

    def issue(self, user: UserRecord, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": user.id,
            "userId": user.id,
            "email": user.email,
            "isAdmin": user.is_admin,
            "iat": issued_at,
            "exp": issued_at + self.expiry,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Identity:
        """
        Check signature and expiry, then decode the identity claims.

        Raises:
            InvalidTokenError: bad signature, expired, malformed, or missing
                claims. The reason goes to the log, never to the client.
        """
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise InvalidTokenError(context={"reason": "expired"})
        except jwt.InvalidTokenError as e:
            logger.info("Rejected invalid token: %s", type(e).__name__)
            raise InvalidTokenError(context={"reason": type(e).__name__})

        email = claims.get("email")
        is_admin = claims.get("isAdmin")
        if not isinstance(email, str) or not isinstance(is_admin, bool):
            raise InvalidTokenError(context={"reason": "missing identity claims"})

        return Identity(user_id=str(claims["sub"]), email=email, is_admin=is_admin)


class AuthService:
    """Login against whichever CredentialStore is active."""

    def __init__(
        self,
        credentials: CredentialStore,
        hasher: PasswordHasher,
        tokens: TokenService,
    ):
        self.credentials = credentials
        self.hasher = hasher
        self.tokens = tokens

    async def login(self, email: str, password: str) -> Tuple[str, bool]:
        """
        Exchange email + password for a signed token.

        Returns:
            (token, is_admin)

        Raises:
            InvalidCredentialsError: unknown email or wrong password (same error)
            DatabaseError: persistent store unreachable
        """
        user = await self.credentials.find_by_email(email)

        if user is None:
            await self.hasher.burn(password)
            logger.info("Login rejected: unknown account")
            raise InvalidCredentialsError()

        if not await self.hasher.verify(password, user.password_hash):
            logger.info("Login rejected: password mismatch for user %s", user.id)
            raise InvalidCredentialsError()

        token = self.tokens.issue(user)
        logger.info("Login succeeded for user %s (admin=%s)", user.id, user.is_admin)
        return token, user.is_admin


def build_token_service(settings: Settings) -> TokenService:
    return TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expiry_hours=settings.jwt_expiry_hours,
    )
