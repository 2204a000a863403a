"""
Gallery Backend — SQL Store Backends
======================================

What:  Persistent implementations of CredentialStore and ImageStore on top of
       async SQLAlchemy.
How:   Each call opens its own AsyncSession from the shared factory, commits
       on success, and converts ORM rows into immutable records before the
       session closes. Driver/ORM failures are wrapped in DatabaseError so
       the global handler answers 500 without leaking SQL details.
When:  Active when the startup probe reached the database.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gallery.exceptions import DatabaseError
from gallery.models.image import Image
from gallery.models.user import User
from gallery.stores.base import (
    CredentialStore,
    DuplicateAccountError,
    ImageRecord,
    ImageStore,
    UserRecord,
)

logger = logging.getLogger(__name__)


# Upper bound of the Integer primary key column (32-bit signed on PostgreSQL)
MAX_PRIMARY_KEY = 2**31 - 1


def _parse_id(image_id: str) -> Optional[int]:
    """Integer primary key for an opaque id, or None if it cannot be one."""
    try:
        value = int(image_id)
    except (TypeError, ValueError):
        return None
    if value < 1 or value > MAX_PRIMARY_KEY:
        return None
    return value


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_image_record(row: Image) -> ImageRecord:
    return ImageRecord(
        id=str(row.id),
        title=row.title,
        url=row.url,
        remote_object_id=row.remote_object_id,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _to_user_record(row: User) -> UserRecord:
    return UserRecord(
        id=str(row.id),
        email=row.email,
        password_hash=row.password_hash,
        is_admin=row.is_admin,
    )


class SqlCredentialStore(CredentialStore):
    """Accounts in the `users` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(User).where(User.email == email))
                row = result.scalar_one_or_none()
                return _to_user_record(row) if row is not None else None
        except SQLAlchemyError as e:
            logger.error("Database error looking up user: %s", str(e))
            raise DatabaseError(context={"operation": "find_by_email", "error_type": type(e).__name__})

    async def create(self, email: str, password_hash: str, is_admin: bool) -> UserRecord:
        try:
            async with self._session_factory() as session:
                row = User(email=email, password_hash=password_hash, is_admin=is_admin)
                session.add(row)
                await session.commit()
                return _to_user_record(row)
        except IntegrityError:
            raise DuplicateAccountError(email)
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e))
            raise DatabaseError(context={"operation": "create_user", "error_type": type(e).__name__})


class SqlImageStore(ImageStore):
    """Image metadata in the `images` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def _wrap(self, operation: str, e: SQLAlchemyError) -> DatabaseError:
        logger.error("Database error during %s: %s", operation, str(e))
        return DatabaseError(context={"operation": operation, "error_type": type(e).__name__})

    async def list_all(self) -> List[ImageRecord]:
        try:
            async with self._session_factory() as session:
                # id DESC breaks created_at ties in favour of the later insert
                result = await session.execute(
                    select(Image).order_by(desc(Image.created_at), desc(Image.id))
                )
                return [_to_image_record(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._wrap("list_all", e)

    async def insert(self, title: str, url: str, remote_object_id: str) -> ImageRecord:
        try:
            async with self._session_factory() as session:
                now = datetime.now(timezone.utc)
                row = Image(
                    title=title,
                    url=url,
                    remote_object_id=remote_object_id,
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
                await session.commit()
                return _to_image_record(row)
        except SQLAlchemyError as e:
            raise self._wrap("insert", e)

    async def get_by_id(self, image_id: str) -> Optional[ImageRecord]:
        pk = _parse_id(image_id)
        if pk is None:
            return None
        try:
            async with self._session_factory() as session:
                row = await session.get(Image, pk)
                return _to_image_record(row) if row is not None else None
        except SQLAlchemyError as e:
            raise self._wrap("get_by_id", e)

    async def update_title(self, image_id: str, title: str) -> Optional[ImageRecord]:
        pk = _parse_id(image_id)
        if pk is None:
            return None
        try:
            async with self._session_factory() as session:
                row = await session.get(Image, pk)
                if row is None:
                    return None
                row.title = title
                row.updated_at = datetime.now(timezone.utc)
                await session.commit()
                return _to_image_record(row)
        except SQLAlchemyError as e:
            raise self._wrap("update_title", e)

    async def delete_by_id(self, image_id: str) -> Optional[ImageRecord]:
        pk = _parse_id(image_id)
        if pk is None:
            return None
        try:
            async with self._session_factory() as session:
                row = await session.get(Image, pk)
                if row is None:
                    return None
                record = _to_image_record(row)
                await session.delete(row)
                await session.commit()
                return record
        except SQLAlchemyError as e:
            raise self._wrap("delete_by_id", e)

    async def count(self) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(func.count(Image.id)))
                return result.scalar() or 0
        except SQLAlchemyError as e:
            raise self._wrap("count", e)
