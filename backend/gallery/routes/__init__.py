# Routes package init
"""
Gallery Backend — API Routes Package
======================================

Route Inventory:
    - auth.py:    POST   /api/login
    - images.py:  GET    /api/images
                  POST   /api/images/upload      (admin)
                  PUT    /api/images/{id}        (admin)
                  DELETE /api/images/{id}        (admin)
    - health.py:  GET    /health

Routes stay thin: pull data out of the request, call a service, shape the
response. Business rules live in services/.
"""
