# Services package init
"""
Gallery Backend — Services Layer
==================================

Service Inventory:
    - AuthService: login, bcrypt password checks, JWT issue/verify
    - MediaService (abstract) / CloudinaryService: remote media host
    - UploadService: upload validation pipeline and local staging
    - GalleryService: list / upload / update / delete orchestration
    - storage_mode: once-per-process store selection, seeding, GalleryState
"""
