"""
Gallery Backend — User SQLAlchemy Model
=========================================

What:  ORM model representing the `users` table.
Who:   Used by SqlCredentialStore; rows are only created by startup seeding.

Users are looked up by email at login and never by id elsewhere, so email
carries a unique constraint (which also makes concurrent seeding safe).
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from gallery.database import Base


class User(Base):
    """An account that can log in. Never mutated or deleted by the API."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Case-sensitive, exactly as stored
    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
    )

    # bcrypt hash, never the plaintext
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', is_admin={self.is_admin})>"
