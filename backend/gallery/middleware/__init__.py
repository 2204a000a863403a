# Middleware package init
"""
Gallery Backend — Middleware Package
======================================

Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID first, so every later log line can carry it
    2. Logging records status and duration once the response is back
    3. CORS is FastAPI's CORSMiddleware (handles preflight)
"""
