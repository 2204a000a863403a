"""
Gallery Backend — Application Package Initializer
==================================================

What: Marks the `gallery` directory as a Python package.
Who:  Imported by uvicorn (`gallery.main:app`), Alembic, and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth gate deps
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← upload flow, login, media host
    ├─────────────────────────────────────┤
    │     Stores (Credential / Image)     │  ← SQL backend or in-memory backend
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy engine
    └─────────────────────────────────────┘

    Which store backend is active is decided once at startup (see
    services/storage_mode.py) and never re-evaluated while the process runs.
"""

__version__ = "1.0.0"
