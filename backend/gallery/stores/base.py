"""
Gallery Backend — Store Interfaces & Records
==============================================

What:  Abstract interfaces for the Credential Store and the Image Metadata
       Store, plus the immutable records both backends return.
Why:   Two interchangeable backends (SQL, in-memory) sit behind one contract.
       The backend is chosen once at startup; no caller ever branches on it.
Who:   Implemented by stores/sql.py and stores/memory.py; consumed by the
       auth and gallery services.

Contract shared by every implementation:
    - Ids are opaque strings. An id the backend cannot interpret is
      reported as "not found", never as an error.
    - Lookups that miss return None; services translate None to NotFoundError.
    - Returned records are copies; mutating them never touches the store.
    - Backend failures (persistent mode only) raise DatabaseError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class UserRecord:
    id: str
    email: str
    password_hash: str
    is_admin: bool = False


@dataclass(frozen=True)
class ImageRecord:
    id: str
    title: str
    url: str
    remote_object_id: str
    created_at: datetime
    updated_at: datetime


class CredentialStore(ABC):
    """User accounts. Read-only after startup seeding."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Exact, case-sensitive lookup. None when no account matches."""
        ...

    @abstractmethod
    async def create(self, email: str, password_hash: str, is_admin: bool) -> UserRecord:
        """
        Insert an account. Only startup seeding calls this.

        Raises DuplicateAccountError if the email is already taken.
        """
        ...


class ImageStore(ABC):
    """Image metadata records."""

    @abstractmethod
    async def list_all(self) -> List[ImageRecord]:
        """
        Every record, newest created_at first.

        Records sharing a timestamp come out most-recently-inserted first.
        """
        ...

    @abstractmethod
    async def insert(self, title: str, url: str, remote_object_id: str) -> ImageRecord:
        """Store a new record with a fresh id and the current UTC time."""
        ...

    @abstractmethod
    async def get_by_id(self, image_id: str) -> Optional[ImageRecord]:
        ...

    @abstractmethod
    async def update_title(self, image_id: str, title: str) -> Optional[ImageRecord]:
        """Overwrite the title. None (and no change) when the id is unknown."""
        ...

    @abstractmethod
    async def delete_by_id(self, image_id: str) -> Optional[ImageRecord]:
        """Remove a record and return it as it was just before removal."""
        ...

    @abstractmethod
    async def count(self) -> int:
        ...


class DuplicateAccountError(Exception):
    """An account with this email already exists."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Account already exists: {email}")
