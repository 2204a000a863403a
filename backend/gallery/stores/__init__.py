# Stores package init
"""
Gallery Backend — Store Layer
==============================

Store Inventory:
    - CredentialStore / ImageStore (base.py): the interfaces
    - SqlCredentialStore / SqlImageStore (sql.py): persistent backend
    - InMemoryCredentialStore / InMemoryImageStore (memory.py): fallback backend

Exactly one backend is authoritative per process; services/storage_mode.py
picks it at startup.
"""

from gallery.stores.base import (
    CredentialStore,
    DuplicateAccountError,
    ImageRecord,
    ImageStore,
    UserRecord,
)
from gallery.stores.memory import InMemoryCredentialStore, InMemoryImageStore
from gallery.stores.sql import SqlCredentialStore, SqlImageStore

__all__ = [
    "CredentialStore",
    "DuplicateAccountError",
    "ImageRecord",
    "ImageStore",
    "UserRecord",
    "InMemoryCredentialStore",
    "InMemoryImageStore",
    "SqlCredentialStore",
    "SqlImageStore",
]
