"""
Gallery Backend — In-Memory Store Backends
============================================

What:  Fallback implementations of CredentialStore and ImageStore held in
       plain process-local lists.
When:  Active only when the persistent store was unreachable at startup (or
       USE_IN_MEMORY_STORE is set). Contents vanish when the process exits.

Concurrency:
    No method awaits anything between reading and writing the lists, so each
    operation runs to completion on the event loop without interleaving.
    That is the only reason these classes need no lock; they must not be
    shared across OS threads.
"""

import dataclasses
import itertools
from datetime import datetime, timezone
from typing import List, Optional

from gallery.stores.base import (
    CredentialStore,
    DuplicateAccountError,
    ImageRecord,
    ImageStore,
    UserRecord,
)


class InMemoryCredentialStore(CredentialStore):
    """Accounts for fallback mode. Ids are "1", "2", ... in creation order."""

    def __init__(self):
        self._users: List[UserRecord] = []
        self._ids = itertools.count(1)

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self._users:
            if user.email == email:
                return user
        return None

    async def create(self, email: str, password_hash: str, is_admin: bool) -> UserRecord:
        if any(user.email == email for user in self._users):
            raise DuplicateAccountError(email)
        user = UserRecord(
            id=str(next(self._ids)),
            email=email,
            password_hash=password_hash,
            is_admin=is_admin,
        )
        self._users.append(user)
        return user


class InMemoryImageStore(ImageStore):
    """
    Image metadata for fallback mode.

    _images is kept in insertion order; list_all() derives the newest-first
    view on every call so the stored order is never disturbed.
    """

    def __init__(self):
        self._images: List[ImageRecord] = []
        self._ids = itertools.count(1)

    def _index_of(self, image_id: str) -> Optional[int]:
        for index, image in enumerate(self._images):
            if image.id == image_id:
                return index
        return None

    async def list_all(self) -> List[ImageRecord]:
        # sorted() is stable: walking insertion order backwards puts the
        # later insert first whenever two timestamps are equal
        return sorted(
            reversed(self._images),
            key=lambda image: image.created_at,
            reverse=True,
        )

    async def insert(self, title: str, url: str, remote_object_id: str) -> ImageRecord:
        now = datetime.now(timezone.utc)
        image = ImageRecord(
            id=str(next(self._ids)),
            title=title,
            url=url,
            remote_object_id=remote_object_id,
            created_at=now,
            updated_at=now,
        )
        self._images.append(image)
        return image

    async def get_by_id(self, image_id: str) -> Optional[ImageRecord]:
        index = self._index_of(image_id)
        return self._images[index] if index is not None else None

    async def update_title(self, image_id: str, title: str) -> Optional[ImageRecord]:
        index = self._index_of(image_id)
        if index is None:
            return None
        updated = dataclasses.replace(
            self._images[index],
            title=title,
            updated_at=datetime.now(timezone.utc),
        )
        self._images[index] = updated
        return updated

    async def delete_by_id(self, image_id: str) -> Optional[ImageRecord]:
        index = self._index_of(image_id)
        if index is None:
            return None
        return self._images.pop(index)

    async def count(self) -> int:
        return len(self._images)
