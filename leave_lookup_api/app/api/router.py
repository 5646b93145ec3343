"""
Top‑level routers.

``api_router`` aggregates the JSON endpoints and is mounted under
``/api`` by ``create_app``.  ``frontend_router`` holds the catch‑all
front‑end route and must be included last so that it only sees paths no
other route matched.
"""

from fastapi import APIRouter

from .endpoints import client_config, frontend, leaves

api_router = APIRouter()
api_router.include_router(leaves.router, tags=["leaves"])
api_router.include_router(client_config.router, tags=["config"])

frontend_router = frontend.router
