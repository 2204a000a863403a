"""
Gallery Backend — Image SQLAlchemy Model
==========================================

What:  ORM model representing the `images` table.
Who:   Used by SqlImageStore for CRUD operations and by Alembic.

Table Design Rationale:
    - Integer autoincrement primary key: doubles as the insertion-order
      tie-break when two images share a created_at timestamp
    - url: Fully-qualified URL served by the remote media host
    - remote_object_id: Media host object id, needed to release the object
      on delete; unique because no two images may share one remote object
    - created_at / updated_at: UTC with timezone

    Index on created_at DESC:
        The listing endpoint always returns newest first.
"""

from datetime import datetime, timezone

from sqlalchemy import Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from gallery.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Image(Base):
    """
    Metadata for one image held by the remote media host.

    Lifecycle:
        1. Created after a successful remote upload
        2. Only the title is ever updated
        3. Deleted after its remote object has been released
    """

    __tablename__ = "images"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="Untitled",
        comment="Display title; 'Untitled' when none was supplied",
    )

    url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
        comment="Public URL on the remote media host",
    )

    remote_object_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Object id on the remote media host, used for deletion",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_images_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Image(id={self.id}, title='{self.title}', created_at='{self.created_at}')>"
